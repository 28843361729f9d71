import logging
from typing import Any, Dict, Optional, Union

import zarr
from bioio_base import exceptions, io, types
from s3fs import S3FileSystem

from .config import get_multiscale, get_zarr_loader_config
from .loader import ZarrLoader

log = logging.getLogger(__name__)

STORAGE_OPTIONS = {"anon": True}


def _open(
    image: types.PathLike, fs_kwargs: Dict[str, Any]
) -> Union[zarr.Group, zarr.Array]:
    fs, path = io.pathlike_to_fs(image, enforce_exists=False, fs_kwargs=fs_kwargs)
    try:
        if isinstance(fs, S3FileSystem):
            return zarr.open(str(image), mode="r", storage_options=STORAGE_OPTIONS)
        return zarr.open(path, mode="r")
    except Exception as e:
        raise exceptions.UnsupportedFileFormatError(
            "ZarrLoader",
            str(image),
            f"Failed to open the Zarr store: {e}",
        )


def open_zarr_loader(
    image: types.PathLike,
    scene: int = 0,
    fs_kwargs: Optional[Dict[str, Any]] = None,
    **loader_kwargs: Any,
) -> ZarrLoader:
    """
    Open a zarr array or OME-Zarr image as a ZarrLoader.

    For OME-Zarr groups, every dataset of the selected multiscale becomes a
    pyramid level, and dimensions, scale and translation are read from the
    NGFF metadata. A bare array opens as a single-resolution loader.

    Parameters
    ----------
    image : types.PathLike
        Local path or fsspec URL of the store. S3 stores are read anonymously.
    scene : int
        Index into the multiscales list. Default: 0.
    fs_kwargs : Optional[Dict[str, Any]]
        Extra arguments for the fsspec filesystem.
    **loader_kwargs
        Passed to ZarrLoader, overriding values read from metadata.

    Raises
    ------
    exceptions.UnsupportedFileFormatError
        If the store cannot be opened or holds no multiscale image.
    """
    opened = _open(image, fs_kwargs or {})
    if isinstance(opened, zarr.Array):
        log.info(f"Opened zarr array {image} with shape {opened.shape}")
        return ZarrLoader(opened, **loader_kwargs)

    try:
        multiscale = get_multiscale(opened, scene)
        paths = [dataset["path"] for dataset in multiscale.get("datasets", [])]
        levels = [opened[path] for path in paths]
    except (KeyError, ValueError) as e:
        raise exceptions.UnsupportedFileFormatError(
            "ZarrLoader",
            str(image),
            f"Could not read multiscale datasets: {e}",
        )
    if not levels:
        raise exceptions.UnsupportedFileFormatError(
            "ZarrLoader", str(image), "Multiscales metadata lists no datasets."
        )

    config = get_zarr_loader_config(opened, levels[0].shape, scene=scene)
    config.update(loader_kwargs)
    log.info(f"Opened OME-Zarr image {image} with {len(levels)} resolution level(s)")
    data = levels if len(levels) > 1 else levels[0]
    return ZarrLoader(data, **config)
