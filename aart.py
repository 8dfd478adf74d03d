import sys
import math
import argparse
from collections import namedtuple

from PIL import Image
import numpy as np

__version__ = '0.1.0'

ERRORS = {
    "scale_range": "scale must be between 0.01 and 1.0",
    "char_range": "must be an integer between 1 and 256",
    "image_read": "Cannot read image from path.",
}

DEFAULT_SCALE = 1.0
DEFAULT_CHAR_WIDTH = 10
DEFAULT_CHAR_HEIGHT = 18
MIN_SCALE = 0.01
MAX_SCALE = 1.0
MIN_CHAR_SIZE = 1
MAX_CHAR_SIZE = 256

# darkest to brightest, 70 chars
ascii_map = " .'`^\",:;Il!i><~+_-?][}{1)(|\\/tfjrxnuvczXYUJCLQ0OZmwqpdbkhao*#MW&8%B@$"
ascii_lookup = np.array(list(ascii_map))

Config = namedtuple('Config', ['image_path', 'scale', 'char_width', 'char_height'])
Config.__new__.__defaults__ = ('', 1.0, 1, 1)

def scale_image(image, config):
    '''
    desc: resize an image so each pixel printed as one char looks proportionate
    params:
        image = PIL image, left untouched
        config = Config holding scale, char_width and char_height
    return: new nearest-neighbour resized image, possibly zero-area
    '''

    char_scale = config.char_width / config.char_height
    width, height = image.size
    new_size = (math.floor(width*config.scale), math.floor(height*config.scale*char_scale))

    # pillow won't resample to an empty size
    if 0 in new_size:
        return Image.new(image.mode, new_size)
    return image.resize(new_size, Image.NEAREST)

def ramp_index(avg):
    # floored modulo, never negative; works on scalars and arrays
    return np.floor(avg).astype(np.int64) % len(ascii_map)

def to_8bit(image):
    '''
    desc: rescale 16-bit and 32-bit integer grayscale images to 8-bit L
    params:
        image = PIL image
    return: L image for I;16/I modes, the input image otherwise
    '''

    if image.mode != 'I' and not image.mode.startswith('I;16'):
        return image
    pixels = np.asarray(image).astype(np.float64)
    return Image.fromarray(np.clip(np.rint(pixels / 257), 0, 255).astype(np.uint8))

def get_char(pixel):
    '''
    desc: pick the ramp char for a pixel by its mean of the first three channels
    params:
        pixel = sequence of channel values, a fourth (alpha) one is ignored
    return: single-char string from ascii_map
    '''

    return ascii_map[ramp_index(sum(pixel[:3]) / 3.0)]

def image_to_ascii(image):
    '''
    desc: map every pixel of an image to a ramp char, row-major
    params:
        image = PIL image of any mode, read as 8-bit RGBA
    return: string with one newline-terminated line per pixel row
    '''

    width, height = image.size
    if not width or not height:
        return ''

    pixels = np.asarray(to_8bit(image).convert('RGBA'))[:, :, :3].astype(np.float64)
    indices = ramp_index(pixels.sum(axis=2) / 3.0)

    return ''.join(''.join(row) + '\n' for row in ascii_lookup[indices])

def convert_image_to_ascii(image, config):
    return image_to_ascii(scale_image(image, config))

def load_file(fpath):
    '''
    desc: open and fully decode an image file
    params:
        fpath = path to image file
    return: decoded PIL image
    '''

    with Image.open(fpath) as image:
        image.load()
    return image

def run(config, out=None):
    out = out if out is not None else sys.stdout
    image = load_file(config.image_path)
    print(convert_image_to_ascii(image, config), file=out)

def char_size(value):
    try:
        size = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("invalid int value: %r" % value)
    if not MIN_CHAR_SIZE <= size <= MAX_CHAR_SIZE:
        raise argparse.ArgumentTypeError("%s %s" % (value, ERRORS["char_range"]))
    return size

def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='aart', description="Print an image as ASCII art.")
    parser.add_argument('image_path', help="path to image file")
    parser.add_argument('-s', '--scale', type=float, default=DEFAULT_SCALE,
        help="image scaling factor, %s to %s (default: %%(default)s)" % (MIN_SCALE, MAX_SCALE))
    parser.add_argument('-x', '--char-width', type=char_size, default=DEFAULT_CHAR_WIDTH,
        help="character width (default: %(default)s)")
    parser.add_argument('-y', '--char-height', type=char_size, default=DEFAULT_CHAR_HEIGHT,
        help="character height (default: %(default)s)")
    parser.add_argument('-V', '--version', action='version', version='%(prog)s ' + __version__)
    return parser.parse_args(argv)

def main(argv=None):
    args = parse_args(argv)
    if not MIN_SCALE <= args.scale <= MAX_SCALE:
        print("error: %s" % ERRORS["scale_range"], file=sys.stderr)
        return 1

    config = Config(args.image_path, args.scale, args.char_width, args.char_height)
    try:
        run(config)
    except (OSError, Image.DecompressionBombError) as e:
        print("error: %s" % (str(e) or ERRORS["image_read"]), file=sys.stderr)
        return 1
    return 0

if __name__ == '__main__':
    sys.exit(main())
