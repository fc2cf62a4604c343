import argparse
import shutil
import sys
from dataclasses import dataclass
from typing import Optional

from aac_convert import MIN_ASPECT, convert
from aac_image import open_raster
from aac_sink import open_sink

DEFAULT_WIDTH = 120 # used when the terminal size cannot be queried
TERMINAL_FALLBACK = (DEFAULT_WIDTH, 30)
DEFAULT_ASPECT = 0.5 # width/height of a glyph for most monospace fonts
DEFAULT_CHARSET = "@%#*+=-:. " # dark -> light

ERRORS = {
    "invalid_out": "Not a valid output file path: %s (%s)",
    "empty_charset": "Charset must not be empty.",
}

EXAMPLES = '''examples:
  aac photo.jpg -w 100
  aac photo.jpg -w 80 -a 0.45 -c "MWNXK0Okxol:,. " -o out.txt
'''


@dataclass(frozen=True)
class RenderConfig:
    source: str
    columns: int
    aspect: float = DEFAULT_ASPECT
    charset: str = DEFAULT_CHARSET
    invert: bool = False
    output: Optional[str] = None
    progress: bool = False


class ArgumentParser(argparse.ArgumentParser):
    # any argument problem is a plain failure, not argparse's status 2
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, '%s: error: %s\n' % (self.prog, message))


def build_parser():
    parser = ArgumentParser(
        prog='aac',
        description='Convert an image to ASCII art.',
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('image', help='input image path')
    parser.add_argument('-w', '--width', type=int, metavar='COLS',
                        help='target width in characters (default: terminal width, or %d)' % DEFAULT_WIDTH)
    parser.add_argument('-a', '--aspect', type=float, default=DEFAULT_ASPECT, metavar='RATIO',
                        help='character width/height aspect ratio (default %s)' % DEFAULT_ASPECT)
    parser.add_argument('-c', '--charset', default=DEFAULT_CHARSET, metavar='CHARS',
                        help='characters from dark to light (default "%(default)s")')
    parser.add_argument('-i', '--invert', action='store_true',
                        help='invert mapping (light uses dense chars)')
    parser.add_argument('-o', '--output', metavar='FILE',
                        help='write result to file instead of stdout')
    parser.add_argument('-p', '--progress', action='store_true',
                        help='show a progress bar on stderr while writing')
    return parser


def terminal_width():
    return shutil.get_terminal_size(fallback=TERMINAL_FALLBACK).columns


def parse_config(argv=None):
    '''
    desc: build a RenderConfig from command line arguments
    params:
        argv = argument list without program name, sys.argv[1:] when None
    return: RenderConfig; raises SystemExit on help or bad arguments, ValueError on empty charset
    '''

    args = build_parser().parse_args(argv)
    if not args.charset:
        raise ValueError(ERRORS["empty_charset"])

    columns = args.width if args.width is not None else terminal_width()
    return RenderConfig(
        source=args.image,
        columns=max(1, columns),
        aspect=max(MIN_ASPECT, args.aspect),
        charset=args.charset,
        invert=args.invert,
        output=args.output,
        progress=args.progress,
    )


def run(config, sink=None):
    '''
    desc: decode, convert and write one image
    params:
        config = RenderConfig
        sink = object with write(lines); opened from config.output when None
    return: none; raises ValueError on decode failure, OSError if the output cannot be opened
    '''

    with open_raster(config.source) as image:
        lines = convert(image, config.columns, config.aspect, config.charset, config.invert)

    if sink is not None:
        sink.write(lines)
        return

    try:
        out = open_sink(config.output, config.progress)
    except OSError as exc:
        raise OSError(ERRORS["invalid_out"] % (config.output, exc.strerror or exc)) from exc
    with out:
        out.write(lines)


def main(argv=None):
    try:
        config = parse_config(argv)
    except SystemExit as exc:
        return exc.code or 0
    except ValueError as exc:
        print("ERROR: %s" % exc, file=sys.stderr)
        return 1

    try:
        run(config)
    except (ValueError, OSError) as exc:
        print("ERROR: %s" % exc, file=sys.stderr)
        return 1

    if config.output is not None:
        print("Wrote ASCII art to: %s" % config.output, file=sys.stderr)
    return 0


if __name__ == '__main__':
    sys.exit(main())
