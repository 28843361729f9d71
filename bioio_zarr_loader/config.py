import warnings
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import zarr

from .dimensions import Dimension, Unit

MULTISCALES_KEY = "multiscales"


def get_ngff_attrs(group: zarr.Group) -> Mapping[str, Any]:
    """
    Get the OME-NGFF attributes of a group: nested under "ome" for NGFF 0.5
    (Zarr v3), at the top level for NGFF 0.4 and earlier.
    """
    attrs = group.attrs
    if "ome" in attrs:
        return attrs["ome"]
    return attrs


def get_multiscale(group: zarr.Group, scene: int = 0) -> Dict[str, Any]:
    multiscales = get_ngff_attrs(group).get(MULTISCALES_KEY, [])
    if not multiscales:
        raise ValueError("No multiscales metadata found.")
    try:
        return multiscales[scene]
    except IndexError:
        raise ValueError(
            f"Scene index {scene} out of range for {len(multiscales)} multiscales."
        )


def get_channel_names(group: zarr.Group) -> Optional[List[str]]:
    channels = get_ngff_attrs(group).get("omero", {}).get("channels", [])
    try:
        return [str(ch["label"]) for ch in channels] or None
    except (KeyError, TypeError):
        return None


def _get_transform(
    transforms: Sequence[Mapping[str, Any]], kind: str, ndim: int
) -> Optional[List[float]]:
    for transform in transforms:
        if transform.get("type") == kind:
            values = transform.get(kind)
            if values is None or len(values) != ndim:
                raise ValueError(
                    f"{kind} transformation does not match the number of "
                    f"dimensions ({ndim}): {values}"
                )
            return [float(v) for v in values]
    return None


def get_level0_transforms(
    multiscale: Mapping[str, Any], ndim: int
) -> Tuple[List[float], List[float]]:
    """
    Get the effective per-axis (scale, translation) of the first dataset.

    The multiscale-level scale, if present, multiplies the dataset scale.
    """
    overall = _get_transform(
        multiscale.get("coordinateTransformations", []), "scale", ndim
    ) or [1.0] * ndim

    datasets = multiscale.get("datasets", [])
    if not datasets:
        raise ValueError("Multiscales metadata lists no datasets.")
    transforms = datasets[0].get("coordinateTransformations", [])
    if not transforms:
        raise ValueError("Missing coordinateTransformations in dataset metadata.")

    scale = _get_transform(transforms, "scale", ndim) or [1.0] * ndim
    translation = _get_transform(transforms, "translation", ndim) or [0.0] * ndim
    return [o * s for o, s in zip(overall, scale)], translation


def _get_axes(multiscale: Mapping[str, Any]) -> List[Dict[str, Any]]:
    # NGFF 0.3 lists axis names only
    return [
        dict(axis) if isinstance(axis, Mapping) else {"name": str(axis)}
        for axis in multiscale.get("axes", [])
    ]


def get_dimensions(
    axes: Sequence[Mapping[str, Any]],
    shape: Sequence[int],
    scale: Sequence[float],
    channel_names: Optional[List[str]] = None,
) -> List[Dimension]:
    """
    Build loader dimensions from NGFF axes.

    Channel axes become nominal dimensions labelled with the OMERO channel
    names, or "C:<index>" when those are missing or do not match. All other
    axes become quantitative, with the level-0 scale as unit magnitude.
    """
    dims: List[Dimension] = []
    for i, axis in enumerate(axes):
        name = str(axis["name"]).lower()
        if axis.get("type") == "channel" or (axis.get("type") is None and name == "c"):
            if channel_names is not None and len(channel_names) == shape[i]:
                categories = tuple(channel_names)
            else:
                categories = tuple(f"C:{c}" for c in range(shape[i]))
            dims.append(Dimension(id=name, kind="nominal", categories=categories))
        else:
            unit = Unit(magnitude=float(scale[i]), label=str(axis.get("unit") or ""))
            dims.append(Dimension(id=name, kind="quantitative", unit=unit))
    return dims


def get_zarr_loader_config(
    group: zarr.Group, shape: Sequence[int], scene: int = 0
) -> Dict[str, Any]:
    """
    Generate ZarrLoader kwargs from the OME-NGFF metadata of a group.

    Parameters
    ----------
    group : zarr.Group
        Opened OME-Zarr image group.
    shape : Sequence[int]
        Shape of the level-0 array.
    scene : int
        Index into the multiscales list.

    Returns
    -------
    config : Dict[str, Any]
        "dimensions", "scale" and "translate" to pass into `ZarrLoader`.
        Customize fields after calling this function.

    Example
    -------
    >>> group = zarr.open_group("image.ome.zarr", mode="r")
    >>> base = group["0"]
    >>> config = get_zarr_loader_config(group, base.shape)
    >>> loader = ZarrLoader(base, **config)
    """
    ndim = len(shape)
    multiscale = get_multiscale(group, scene)
    axes = _get_axes(multiscale)

    try:
        scale, translation = get_level0_transforms(multiscale, ndim)
    except ValueError as e:
        warnings.warn(f"Could not parse coordinate transformations: {e}")
        scale, translation = [1.0] * ndim, [0.0] * ndim

    config: Dict[str, Any] = {
        "dimensions": None,
        "scale": 1.0,
        "translate": (0.0, 0.0),
    }
    if len(axes) != ndim:
        if axes:
            warnings.warn(
                f"Ignoring {len(axes)} axes for {ndim}-D image: "
                f"{[a['name'] for a in axes]}"
            )
        return config

    names = [str(a["name"]).lower() for a in axes]
    config["dimensions"] = get_dimensions(
        axes, shape, scale, channel_names=get_channel_names(group)
    )
    if "x" in names and "y" in names:
        x, y = names.index("x"), names.index("y")
        config["scale"] = scale[x]
        config["translate"] = (translation[x], translation[y])
    return config
