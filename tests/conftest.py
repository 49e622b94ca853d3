"""Shared fixtures -- synthetic broadcast-like frames built with NumPy."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure src/ is importable when running tests directly or via pytest
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = str(_PROJECT_ROOT / "src")
if _SRC_DIR not in sys.path:
    sys.path.insert(0, _SRC_DIR)

# BGR colours.  GRASS is hue 60 / sat ~187 / val 150 -- inside the grass band.
GRASS_BGR = (40, 150, 40)
CROWD_BGR = (90, 60, 170)


def _solid(height: int, width: int, color: tuple[int, int, int]) -> np.ndarray:
    frame = np.empty((height, width, 3), dtype=np.uint8)
    frame[:, :] = color
    return frame


def _textured_grass(height: int, width: int, seed: int = 0, block: int = 8) -> np.ndarray:
    """Grass made of random-brightness blocks; every block stays in the grass band."""
    rng = np.random.default_rng(seed)
    levels = rng.integers(110, 191, size=(height // block + 1, width // block + 1))
    green = np.kron(levels, np.ones((block, block), dtype=np.int64))[:height, :width]
    frame = np.empty((height, width, 3), dtype=np.uint8)
    frame[:, :, 1] = green
    frame[:, :, 0] = np.round(green * 0.27)
    frame[:, :, 2] = frame[:, :, 0]
    return frame


@pytest.fixture
def solid_frame():
    """Factory: ``solid_frame(height, width, bgr)``."""
    return _solid


@pytest.fixture
def grass_frame():
    """Factory: uniform grass ``grass_frame(height, width)``."""
    return lambda height, width: _solid(height, width, GRASS_BGR)


@pytest.fixture
def crowd_frame():
    """Factory: frame without a single grass pixel."""
    return lambda height, width: _solid(height, width, CROWD_BGR)


@pytest.fixture
def textured_grass():
    """Factory: ``textured_grass(height, width, seed=0, block=8)``."""
    return _textured_grass
