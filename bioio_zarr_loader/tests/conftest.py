from typing import Any, Tuple

import numpy as np
import pytest
import zarr


def array_constructor(
    shape: Tuple[int, ...],
    chunks: Tuple[int, ...],
    dtype: Any = np.int32,
    fill_value: Any = 0,
) -> zarr.Array:
    """In-memory zarr array of the given geometry, filled with `fill_value`."""
    return zarr.create_array(
        store=zarr.storage.MemoryStore(),
        shape=shape,
        chunks=chunks,
        dtype=dtype,
        fill_value=fill_value,
    )


@pytest.fixture
def image_2d() -> zarr.Array:
    """(2, 500, 250): channel 0 set to 42, row 0 of channel 1 set to arange."""
    arr = array_constructor((2, 500, 250), (1, 100, 100))
    arr[0, :, :] = 42
    arr[1, 0, :] = np.arange(250, dtype=np.int32)
    return arr


@pytest.fixture
def pyramid_levels() -> Tuple[zarr.Array, zarr.Array, zarr.Array]:
    """Three levels of a (4, Y, X) image, each level filled with its index."""
    return (
        array_constructor((4, 100, 150), (1, 10, 10), fill_value=0),
        array_constructor((4, 50, 75), (1, 10, 10), fill_value=1),
        array_constructor((4, 25, 38), (1, 10, 10), fill_value=2),
    )


@pytest.fixture
def image_rgba() -> zarr.Array:
    return array_constructor((2, 500, 250, 4), (1, 100, 100, 4), fill_value=42)
