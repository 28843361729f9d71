#!/usr/bin/env python
# -*- coding: utf-8 -*-

from .config import get_zarr_loader_config
from .dimensions import Dimension, DimensionModel, DimensionSelection, Unit
from .exceptions import ConfigurationError
from .loader import LoaderMetadata, Raster, ZarrLoader
from .pyramid import PyramidSource, SingleSource
from .reader import open_zarr_loader
from .rgb import SpatialAxes, get_spatial_axes, guess_rgb
from .selection import normalize_channel_selections
from .sources import FULL_AXIS, ArraySource, ZarrArraySource

__all__ = [
    "ArraySource",
    "ConfigurationError",
    "Dimension",
    "DimensionModel",
    "DimensionSelection",
    "FULL_AXIS",
    "LoaderMetadata",
    "PyramidSource",
    "Raster",
    "SingleSource",
    "SpatialAxes",
    "Unit",
    "ZarrArraySource",
    "ZarrLoader",
    "get_spatial_axes",
    "get_zarr_loader_config",
    "guess_rgb",
    "normalize_channel_selections",
    "open_zarr_loader",
]
