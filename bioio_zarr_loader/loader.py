import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, List, Optional, Sequence, Tuple

import numpy as np

from .dimensions import Dimension, DimensionModel
from .pyramid import ImageSource, as_image_source
from .rgb import get_spatial_axes, guess_rgb
from .selection import ChannelSelection, SelectionInput, normalize_channel_selections
from .sources import FULL_AXIS, ArraySource, IndexEntry

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoaderMetadata:
    image_width: int
    image_height: int
    tile_size: int
    min_zoom: int
    dtype: np.dtype
    scale: float
    translate: Tuple[float, float]


@dataclass
class Raster:
    data: List[np.ndarray]
    width: int
    height: int


class ZarrLoader:
    """
    Tile and raster access to a chunked zarr image, optionally multiscale.

    The loader keeps an ordered set of channel selections, one index vector
    per channel to read. Every tile or raster request reads one buffer per
    selection, concurrently, and returns them in selection order.

    Parameters
    ----------
    data : zarr.Array | zarr.AsyncArray | ArraySource | Sequence
        A single array, or the levels of a pyramid ordered from highest to
        lowest resolution.
    dimensions : Optional[Sequence[Dimension]]
        One dimension per array axis. Required for label-based selections.
    is_rgb : Optional[bool]
        Treat the trailing axis as RGB/RGBA samples. Guessed from the base
        shape when None.
    scale : float
        Display scale, passed through to `metadata`.
    translate : Tuple[float, float]
        Display translation, passed through to `metadata`.

    Raises
    ------
    ConfigurationError
        If dimensions do not match the array rank, or pyramid levels do not
        shrink strictly in height and width.
    """

    type = "zarr"

    def __init__(
        self,
        data: Any,
        dimensions: Optional[Sequence[Dimension]] = None,
        is_rgb: Optional[bool] = None,
        scale: float = 1.0,
        translate: Tuple[float, float] = (0.0, 0.0),
    ) -> None:
        self._image: ImageSource = as_image_source(data)
        rank = len(self._image.base.shape)

        self._dimensions = (
            DimensionModel(dimensions, rank) if dimensions is not None else None
        )
        self._is_rgb = (
            guess_rgb(self._image.base.shape) if is_rgb is None else bool(is_rgb)
        )
        self._axes = get_spatial_axes(rank, self._is_rgb)
        self._image.validate(self._axes)

        self.scale = scale
        self.translate = tuple(translate)

        self._channel_selections: Tuple[ChannelSelection, ...] = (
            tuple([0] * rank),
        )

    @property
    def is_rgb(self) -> bool:
        return self._is_rgb

    @property
    def is_pyramid(self) -> bool:
        return self._image.is_pyramid

    @property
    def dimensions(self) -> Optional[List[Dimension]]:
        if self._dimensions is None:
            return None
        return self._dimensions.to_list()

    @property
    def base(self) -> ArraySource:
        return self._image.base

    @property
    def levels(self) -> Tuple[ArraySource, ...]:
        return self._image.levels

    @property
    def dtype(self) -> np.dtype:
        return self.base.dtype

    @property
    def tile_size(self) -> int:
        return self.base.chunks[self._axes.x]

    @property
    def metadata(self) -> LoaderMetadata:
        base = self.base
        return LoaderMetadata(
            image_width=base.shape[self._axes.x],
            image_height=base.shape[self._axes.y],
            tile_size=self.tile_size,
            min_zoom=self._image.min_zoom,
            dtype=base.dtype,
            scale=self.scale,
            translate=self.translate,
        )

    @property
    def channel_selections(self) -> List[List[int]]:
        return [list(sel) for sel in self._channel_selections]

    def set_channel_selections(self, selections: SelectionInput) -> None:
        """
        Replace the channel selections.

        Accepts one selection or a list of selections. A selection is either
        a full-length list of integer indices, e.g. ``[1, 0, 0]``, or a list
        of DimensionSelection descriptors, e.g.
        ``[DimensionSelection("channel", "DAPI")]``, with unmentioned axes
        defaulting to 0. Nothing is replaced if any selection is invalid.
        """
        batch = normalize_channel_selections(
            selections,
            rank=len(self.base.shape),
            dimensions=self._dimensions,
            is_rgb=self._is_rgb,
        )
        self._channel_selections = tuple(batch)
        log.debug(f"Channel selections set to {batch}")

    def get_tile(
        self, x: int, y: int, level: Optional[int] = None
    ) -> Awaitable[List[np.ndarray]]:
        """
        Read one chunk of the spatial plane for every channel selection.

        The channel selections in effect when this is called are used, even
        if they are replaced before the result is awaited.

        Parameters
        ----------
        x, y : int
            Chunk coordinates along the x and y axes.
        level : Optional[int]
            Resolution level; defaults to the highest resolution.

        Returns
        -------
        Awaitable[List[np.ndarray]]
            One buffer per channel selection, in selection order.
        """
        indices = [
            self._pin_spatial_axes(sel, y, x) for sel in self._channel_selections
        ]
        return self._retrieve_tiles(indices, level)

    def get_raster(self, level: Optional[int] = None) -> Awaitable[Raster]:
        """
        Read the full spatial plane for every channel selection.

        Returns
        -------
        Awaitable[Raster]
            Buffers in selection order, with the width and height of the
            requested resolution level.
        """
        indices = [
            self._pin_spatial_axes(sel, FULL_AXIS, FULL_AXIS)
            for sel in self._channel_selections
        ]
        return self._retrieve_rasters(indices, level)

    def _pin_spatial_axes(
        self, selection: ChannelSelection, y: IndexEntry, x: IndexEntry
    ) -> List[IndexEntry]:
        index: List[IndexEntry] = list(selection)
        index[self._axes.y] = y
        index[self._axes.x] = x
        if self._axes.color is not None:
            index[self._axes.color] = FULL_AXIS
        return index

    async def _retrieve_tiles(
        self, indices: List[List[IndexEntry]], level: Optional[int]
    ) -> List[np.ndarray]:
        source = self._image.resolve(level)
        chunk_axes = (self._axes.y, self._axes.x)
        log.debug(f"Retrieving {len(indices)} tile(s) at level {level}: {indices}")
        return list(
            await asyncio.gather(
                *(source.retrieve_chunk(index, chunk_axes) for index in indices)
            )
        )

    async def _retrieve_rasters(
        self, indices: List[List[IndexEntry]], level: Optional[int]
    ) -> Raster:
        source = self._image.resolve(level)
        log.debug(f"Retrieving {len(indices)} raster(s) at level {level}")
        data = await asyncio.gather(
            *(source.retrieve_full_plane(index) for index in indices)
        )
        return Raster(
            data=list(data),
            width=source.shape[self._axes.x],
            height=source.shape[self._axes.y],
        )
