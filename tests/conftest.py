import pytest
from PIL import Image


@pytest.fixture
def write_image(tmp_path):
    '''Save a small generated image and return its path.'''
    def _write(name, mode, size, color):
        path = tmp_path / name
        Image.new(mode, size, color).save(path)
        return path
    return _write


@pytest.fixture
def white_png(write_image):
    return write_image("white.png", "RGB", (2, 2), (255, 255, 255))


@pytest.fixture
def gradient_png(tmp_path):
    '''16x8 grayscale image, brightness rising left to right.'''
    path = tmp_path / "gradient.png"
    img = Image.new("L", (16, 8))
    img.putdata([x * 17 for _ in range(8) for x in range(16)])
    img.save(path)
    return path
