import pathlib
from typing import Any, Dict, List

import numpy as np
import pytest
import zarr
from bioio_base import exceptions

from bioio_zarr_loader import (
    Dimension,
    DimensionSelection,
    Unit,
    get_zarr_loader_config,
    open_zarr_loader,
)

LEVEL_SHAPES = [(2, 64, 48), (2, 32, 24)]


def _multiscales(
    axes: List[Any], datasets: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    return [{"name": "image", "axes": axes, "datasets": datasets}]


def _datasets(scale: List[float], translation: List[float]) -> List[Dict[str, Any]]:
    return [
        {
            "path": str(lvl),
            "coordinateTransformations": [
                {"type": "scale", "scale": [s * (2**lvl) for s in scale]},
                {"type": "translation", "translation": translation},
            ],
        }
        for lvl in range(len(LEVEL_SHAPES))
    ]


AXES = [
    {"name": "c", "type": "channel"},
    {"name": "y", "type": "space", "unit": "micrometer"},
    {"name": "x", "type": "space", "unit": "micrometer"},
]
OMERO = {"channels": [{"label": "DAPI"}, {"label": "GFP"}]}


def write_ome_zarr(
    path: pathlib.Path,
    zarr_format: int,
    axes: List[Any] = AXES,
    datasets: List[Dict[str, Any]] = _datasets([1.0, 0.5, 0.5], [0.0, 10.0, 20.0]),
    omero: Dict[str, Any] = OMERO,
) -> zarr.Group:
    root = zarr.open_group(str(path), mode="w", zarr_format=zarr_format)
    for lvl, shape in enumerate(LEVEL_SHAPES):
        arr = root.create_array(
            name=str(lvl),
            shape=shape,
            chunks=(1, 16, 16),
            dtype="uint16",
            fill_value=0,
        )
        arr[1] = 7
    ngff = {"multiscales": _multiscales(axes, datasets), "omero": omero}
    if zarr_format == 3:
        root.attrs.update({"ome": {"version": "0.5", **ngff}})
    else:
        root.attrs.update(ngff)
    return root


EXPECTED_DIMENSIONS = [
    Dimension(id="c", kind="nominal", categories=("DAPI", "GFP")),
    Dimension(id="y", kind="quantitative", unit=Unit(0.5, "micrometer")),
    Dimension(id="x", kind="quantitative", unit=Unit(0.5, "micrometer")),
]


@pytest.mark.parametrize("zarr_format", [2, 3])
def test_loader_config(tmp_path: pathlib.Path, zarr_format: int) -> None:
    root = write_ome_zarr(tmp_path / "image.zarr", zarr_format)
    config = get_zarr_loader_config(root, LEVEL_SHAPES[0])
    assert set(config.keys()) == {"dimensions", "scale", "translate"}
    assert config["dimensions"] == EXPECTED_DIMENSIONS
    assert config["scale"] == 0.5
    assert config["translate"] == (20.0, 10.0)


def test_loader_config_generated_channel_names(tmp_path: pathlib.Path) -> None:
    root = write_ome_zarr(
        tmp_path / "image.zarr", 3, omero={"channels": [{"label": "only-one"}]}
    )
    config = get_zarr_loader_config(root, LEVEL_SHAPES[0])
    assert config["dimensions"][0].categories == ("C:0", "C:1")


def test_loader_config_axis_names_only(tmp_path: pathlib.Path) -> None:
    root = write_ome_zarr(tmp_path / "image.zarr", 2, axes=["c", "y", "x"])
    dims = get_zarr_loader_config(root, LEVEL_SHAPES[0])["dimensions"]
    assert [d.kind for d in dims] == ["nominal", "quantitative", "quantitative"]
    assert dims[2].unit == Unit(0.5, "")


def test_loader_config_missing_transforms(tmp_path: pathlib.Path) -> None:
    datasets = [{"path": str(lvl)} for lvl in range(len(LEVEL_SHAPES))]
    root = write_ome_zarr(tmp_path / "image.zarr", 3, datasets=datasets)
    with pytest.warns(UserWarning, match="coordinate transformations"):
        config = get_zarr_loader_config(root, LEVEL_SHAPES[0])
    assert config["scale"] == 1.0
    assert config["translate"] == (0.0, 0.0)
    assert config["dimensions"][1].unit == Unit(1.0, "micrometer")


def test_loader_config_axes_mismatch(tmp_path: pathlib.Path) -> None:
    root = write_ome_zarr(tmp_path / "image.zarr", 3, axes=AXES[1:])
    with pytest.warns(UserWarning, match="Ignoring 2 axes"):
        config = get_zarr_loader_config(root, LEVEL_SHAPES[0])
    assert config["dimensions"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize("zarr_format", [2, 3])
async def test_open_ome_zarr(tmp_path: pathlib.Path, zarr_format: int) -> None:
    write_ome_zarr(tmp_path / "image.zarr", zarr_format)
    loader = open_zarr_loader(tmp_path / "image.zarr")
    assert loader.is_pyramid
    assert [lvl.shape for lvl in loader.levels] == LEVEL_SHAPES
    assert loader.dimensions == EXPECTED_DIMENSIONS
    assert loader.metadata.min_zoom == -2
    assert loader.metadata.scale == 0.5
    assert loader.metadata.dtype == np.dtype("uint16")

    loader.set_channel_selections([DimensionSelection("c", "GFP")])
    assert loader.channel_selections == [[1, 0, 0]]
    (tile,) = await loader.get_tile(x=0, y=0, level=1)
    assert tile.shape == (16, 16)
    assert (tile == 7).all()


def test_open_overrides_metadata(tmp_path: pathlib.Path) -> None:
    write_ome_zarr(tmp_path / "image.zarr", 3)
    loader = open_zarr_loader(tmp_path / "image.zarr", scale=2.0, dimensions=None)
    assert loader.metadata.scale == 2.0
    assert loader.dimensions is None


@pytest.mark.asyncio
async def test_open_plain_array(tmp_path: pathlib.Path) -> None:
    zarr.create_array(
        store=str(tmp_path / "plain.zarr"),
        shape=(32, 32),
        chunks=(16, 16),
        dtype="uint8",
        fill_value=3,
    )
    loader = open_zarr_loader(tmp_path / "plain.zarr")
    assert not loader.is_pyramid
    assert loader.dimensions is None
    (tile,) = await loader.get_tile(x=1, y=1)
    assert (tile == 3).all()


def test_open_missing_store(tmp_path: pathlib.Path) -> None:
    with pytest.raises(exceptions.UnsupportedFileFormatError):
        open_zarr_loader(tmp_path / "missing.zarr")


def test_open_group_without_multiscales(tmp_path: pathlib.Path) -> None:
    root = zarr.open_group(str(tmp_path / "bare.zarr"), mode="w")
    root.create_array(name="0", shape=(8, 8), chunks=(4, 4), dtype="uint8")
    with pytest.raises(exceptions.UnsupportedFileFormatError):
        open_zarr_loader(tmp_path / "bare.zarr")
