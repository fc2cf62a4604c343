import os
from contextlib import contextmanager
from dataclasses import dataclass

import numpy as np
from PIL import Image as im
from PIL import UnidentifiedImageError

ERRORS = {
    "invalid_in": "Not a valid input file path: %s",
    "image_read": "Failed to load image: %s (%s)",
    "bad_size": "Image dimensions must be positive, got %dx%d.",
    "bad_channels": "Unsupported channel count: %d.",
    "bad_buffer": "Pixel buffer holds %d samples, expected %d.",
}

# pillow mode -> mode with 1-4 plain uint8 channels
MODES = {
    'L': 'L',
    'LA': 'LA',
    'RGB': 'RGB',
    'RGBA': 'RGBA',
    '1': 'L',
    'La': 'LA',
    'RGBa': 'RGBA',
    'PA': 'RGBA',
}

# integer modes carrying 16-bit samples, kept in 8 bits by dropping the low byte
WIDE_MODES = ('I', 'I;16', 'I;16L', 'I;16B', 'I;16N')


@dataclass(frozen=True)
class RasterImage:
    '''
    desc: decoded image, row-major uint8 samples shaped (height, width, channels)
    '''

    width: int
    height: int
    channels: int
    pixels: np.ndarray

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(ERRORS["bad_size"] % (self.width, self.height))
        if self.channels not in (1, 2, 3, 4):
            raise ValueError(ERRORS["bad_channels"] % self.channels)
        expected = self.width * self.height * self.channels
        if self.pixels.size != expected:
            raise ValueError(ERRORS["bad_buffer"] % (self.pixels.size, expected))

    @classmethod
    def from_buffer(cls, width, height, channels, buffer):
        '''
        desc: wrap a flat row-major sample buffer
        params:
            buffer = any sequence of width*height*channels values in [0,255]
        return: RasterImage
        '''

        flat = np.asarray(buffer, dtype=np.uint8).ravel()
        expected = width * height * channels
        if flat.size != expected:
            raise ValueError(ERRORS["bad_buffer"] % (flat.size, expected))
        return cls(width, height, channels, flat.reshape((height, width, channels)))


def normalize_mode(image):
    if image.mode in WIDE_MODES:
        samples = np.clip(np.asarray(image, dtype=np.int64), 0, 65535) >> 8
        return im.fromarray(samples.astype(np.uint8))
    if image.mode == 'F':
        # float samples are read as 0.0 (black) to 1.0 (white)
        samples = np.clip(np.asarray(image, dtype=np.float64), 0, 1) * 255
        return im.fromarray(np.floor(samples + 0.5).astype(np.uint8))
    if image.mode == 'P':
        return image.convert('RGBA' if 'transparency' in image.info else 'RGB')
    target = MODES.get(image.mode, 'RGB')
    if target != image.mode:
        return image.convert(target)
    return image


def to_raster(image):
    '''
    desc: convert a pillow image (first frame only) to a RasterImage
    params:
        image = PIL.Image.Image in any mode
    return: RasterImage with 1-4 channels
    '''

    plain = normalize_mode(image)
    pixels = np.array(plain, dtype=np.uint8)
    if pixels.ndim == 2:
        pixels = pixels[:, :, np.newaxis]
    height, width, channels = pixels.shape
    return RasterImage(width, height, channels, pixels)


@contextmanager
def open_raster(path):
    '''
    desc: decode an image file, yield it, release the decoder on exit
    params:
        path = path to image file
    return: context manager yielding RasterImage
    '''

    path = os.fspath(path)
    if not os.path.isfile(path):
        raise ValueError(ERRORS["invalid_in"] % path)

    try:
        source = im.open(path)
    except (UnidentifiedImageError, im.DecompressionBombError, OSError) as exc:
        raise ValueError(ERRORS["image_read"] % (path, exc)) from exc

    with source:
        try:
            raster = to_raster(source)
        except (im.DecompressionBombError, OSError, ValueError) as exc:
            raise ValueError(ERRORS["image_read"] % (path, exc)) from exc
        yield raster
