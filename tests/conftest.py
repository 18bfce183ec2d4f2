import numpy as np
import pytest

from qtcompress.config import QuadTreeConfig

COLOR_A = (200, 40, 10)
COLOR_B = (10, 120, 250)


@pytest.fixture
def seq_config():
    return QuadTreeConfig(workers=1)


@pytest.fixture
def two_tone_4x4():
    img = np.empty((4, 4, 3), dtype=np.uint8)
    img[:] = COLOR_B
    img[:2, :2] = COLOR_A
    return img


@pytest.fixture
def noisy_image():
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, size=(37, 53, 3), dtype=np.uint8)
