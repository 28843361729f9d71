"""
Boundary between the loader and the chunked-array store.

The loader only ever talks to an ArraySource. Zarr arrays, synchronous or
asynchronous, are wrapped in ZarrArraySource; anything else implementing the
protocol can be passed to the loader as is.
"""

import math
from typing import Any, List, Protocol, Sequence, Tuple, Union, runtime_checkable

import numpy as np
import zarr

# Wildcard marker: read the whole axis.
FULL_AXIS = slice(None)

IndexEntry = Union[int, slice]


@runtime_checkable
class ArraySource(Protocol):
    @property
    def shape(self) -> Tuple[int, ...]: ...

    @property
    def chunks(self) -> Tuple[int, ...]: ...

    @property
    def dtype(self) -> np.dtype: ...

    async def retrieve_chunk(
        self, index: Sequence[IndexEntry], chunk_axes: Sequence[int]
    ) -> np.ndarray: ...

    async def retrieve_full_plane(self, index: Sequence[IndexEntry]) -> np.ndarray: ...


class ZarrArraySource:
    """
    ArraySource backed by a zarr (v2 or v3 format) array.

    Integer entries of an index vector are element indices and drop their
    axis from the result; FULL_AXIS entries keep the whole axis. For chunk
    requests, entries at `chunk_axes` are chunk-grid coordinates and the
    result always spans one full chunk along those axes: chunks overhanging
    the array edge are padded with the array's fill value.
    """

    def __init__(self, array: Union[zarr.Array, zarr.AsyncArray]) -> None:
        if isinstance(array, zarr.Array):
            array = array.async_array
        self._array: zarr.AsyncArray = array

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} shape={self.shape} chunks={self.chunks}>"

    @property
    def array(self) -> zarr.AsyncArray:
        return self._array

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(self._array.shape)

    @property
    def chunks(self) -> Tuple[int, ...]:
        return tuple(self._array.chunks)

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self._array.dtype)

    @property
    def fill_value(self) -> Any:
        fill = getattr(self._array.metadata, "fill_value", None)
        return 0 if fill is None else fill

    async def retrieve_chunk(
        self, index: Sequence[IndexEntry], chunk_axes: Sequence[int]
    ) -> np.ndarray:
        selection: List[IndexEntry] = []
        pad_width: List[Tuple[int, int]] = []
        for axis, entry in enumerate(index):
            if axis in chunk_axes:
                size = self.chunks[axis]
                grid = math.ceil(self.shape[axis] / size)
                if not 0 <= entry < grid:
                    raise IndexError(
                        f"Chunk coordinate {entry} out of range for axis {axis} "
                        f"with {grid} chunks"
                    )
                start = entry * size
                stop = min(start + size, self.shape[axis])
                selection.append(slice(start, stop))
                pad_width.append((0, size - (stop - start)))
            else:
                selection.append(entry)
                if isinstance(entry, slice):
                    pad_width.append((0, 0))

        data = np.asarray(await self._array.getitem(tuple(selection)))
        if any(after for _, after in pad_width):
            data = np.pad(data, pad_width, constant_values=self.fill_value)
        return data

    async def retrieve_full_plane(self, index: Sequence[IndexEntry]) -> np.ndarray:
        return np.asarray(await self._array.getitem(tuple(index)))


def as_array_source(array: Any) -> ArraySource:
    """Wrap zarr arrays in ZarrArraySource; pass other ArraySources through."""
    if isinstance(array, (zarr.Array, zarr.AsyncArray)):
        return ZarrArraySource(array)
    if isinstance(array, ArraySource):
        return array
    raise TypeError(
        f"Expected a zarr array or an ArraySource, got {type(array).__name__}"
    )
