import numpy as np

MIN_ASPECT = 0.05 # narrowest character cell accepted, width/height
LUMA = np.array([0.2126, 0.7152, 0.0722]) # ITU-R BT.709

# half away from zero; every value rounded here is non-negative
round_half_up = lambda x: np.floor(np.asarray(x, dtype=np.float64) + 0.5)


def resolve_geometry(source_width, source_height, columns, aspect):
    '''
    desc: size the character grid for an image
    params:
        source_width, source_height = image size in pixels
        columns = requested output width in characters
        aspect = width/height of one character cell
    return: (cols, rows)
    '''

    cols = max(1, int(columns))
    scale = cols / source_width
    # cells are taller than wide, so fewer rows than height*scale
    rows = int(round_half_up(source_height * scale / max(MIN_ASPECT, aspect)))
    return cols, max(1, rows)


def sample_indices(count, size):
    '''
    desc: nearest-neighbour source index for each of count output cells along one axis
    params:
        count = number of output cells
        size = number of source pixels
    return: monotonic int array, every entry in [0, size-1]
    '''

    centers = (np.arange(count, dtype=np.float64) + 0.5) * size / count
    return np.clip(np.floor(centers).astype(np.intp), 0, size - 1)


def luminance_array(pixels):
    '''
    desc: perceptual brightness of uint8 pixels, alpha composited on black
    params:
        pixels = array shaped (..., channels) with 1 to 4 channels
    return: uint8 array shaped (...)
    '''

    pixels = np.asarray(pixels)
    channels = pixels.shape[-1]
    values = pixels.astype(np.float64) / 255

    if channels == 1:
        y = values[..., 0]
    elif channels == 2:
        y = values[..., 0] * values[..., 1]
    elif channels in (3, 4):
        rgb = values[..., :3]
        if channels == 4:
            rgb = rgb * values[..., 3:4]
        y = rgb @ LUMA
    else:
        raise ValueError("Unsupported channel count: %d." % channels)

    return np.clip(round_half_up(y * 255), 0, 255).astype(np.uint8)


def luminance(pixel, channels):
    values = np.asarray(pixel, dtype=np.uint8).ravel()
    if values.size != channels:
        raise ValueError("Expected %d channel values, got %d." % (channels, values.size))
    return int(luminance_array(values[np.newaxis, :])[0])


def sample_grid(image, cols, rows):
    '''
    desc: pick one source pixel per output cell and take its brightness
    params:
        image = RasterImage
        cols, rows = grid size, usually from resolve_geometry
    return: (rows, cols) uint8 luminance grid
    '''

    ys = sample_indices(rows, image.height)
    xs = sample_indices(cols, image.width)
    return luminance_array(image.pixels[np.ix_(ys, xs)])


def quantize(grid, charset, invert=False):
    '''
    desc: map brightness samples onto a dark->light palette
    params:
        grid = uint8 luminance array of any shape
        charset = non-empty string, index 0 is the darkest glyph
        invert = bright pixels take the dark end of the palette
    return: array of single-glyph strings, same shape as grid
    '''

    palette = np.array(list(charset))
    last = len(palette) - 1
    t = np.asarray(grid, dtype=np.float64) / 255
    if invert:
        t = 1 - t
    index = np.clip(round_half_up(t * last).astype(np.intp), 0, last)
    return palette[index]


def glyph_for(value, charset, invert=False):
    return str(quantize(np.array([value]), charset, invert)[0])


def render(glyphs):
    return [''.join(row) for row in glyphs]


def convert(image, columns, aspect, charset, invert=False):
    '''
    desc: full pipeline from decoded image to lines of text
    params:
        image = RasterImage
        columns, aspect = see resolve_geometry
        charset, invert = see quantize
    return: list of rows strings, each exactly cols glyphs
    '''

    cols, rows = resolve_geometry(image.width, image.height, columns, aspect)
    return render(quantize(sample_grid(image, cols, rows), charset, invert))
