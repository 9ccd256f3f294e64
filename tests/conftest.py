"""Shared fixtures for imgcmp tests."""

from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np
import pytest


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def write_png(tmp_path: Path):  # type: ignore[no-untyped-def]
    """Write an image array to a PNG under tmp_path and return its path."""

    def _write(name: str, image: np.ndarray) -> Path:
        path = tmp_path / name
        assert cv2.imwrite(str(path), image)
        return path

    return _write
