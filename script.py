import asyncio
import shutil
from pathlib import Path

import numpy as np
import zarr

from bioio_zarr_loader import DimensionSelection, open_zarr_loader

# --------------------------
# Config: CYX demo dataset
# --------------------------
shape = (3, 512, 768)  # (C, Y, X)
chunks = (1, 128, 128)
dtype = np.uint16
num_levels = 3
channel_names = ["DAPI", "GFP", "RFP"]

p = Path("loader_demo.ome.zarr")
shutil.rmtree(p, ignore_errors=True)

# -----------------------------------------
# 1) Write a small NGFF 0.5 (Zarr v3) pyramid
# -----------------------------------------
root = zarr.open_group(str(p), mode="w", zarr_format=3)
datasets = []
for lvl in range(num_levels):
    f = 2**lvl
    lvl_shape = (shape[0], shape[1] // f, shape[2] // f)
    arr = root.create_array(
        name=str(lvl), shape=lvl_shape, chunks=chunks, dtype=dtype, fill_value=0
    )
    for c in range(shape[0]):
        arr[c] = (c + 1) * 1000 + lvl
    datasets.append(
        {
            "path": str(lvl),
            "coordinateTransformations": [
                {"type": "scale", "scale": [1.0, 0.325 * f, 0.325 * f]}
            ],
        }
    )

root.attrs.update(
    {
        "ome": {
            "version": "0.5",
            "multiscales": [
                {
                    "name": "demo",
                    "axes": [
                        {"name": "c", "type": "channel"},
                        {"name": "y", "type": "space", "unit": "micrometer"},
                        {"name": "x", "type": "space", "unit": "micrometer"},
                    ],
                    "datasets": datasets,
                }
            ],
            "omero": {"channels": [{"label": name} for name in channel_names]},
        }
    }
)

# -----------------------------------------
# 2) Read tiles and rasters through a loader
# -----------------------------------------
loader = open_zarr_loader(p)
print("Metadata:", loader.metadata)

loader.set_channel_selections(
    [[DimensionSelection("c", "GFP")], [DimensionSelection("c", "DAPI")]]
)
print("Channel selections:", loader.channel_selections)


async def main() -> None:
    tiles = await loader.get_tile(x=1, y=0, level=1)
    print("Tile values:", [int(t[0, 0]) for t in tiles])
    raster = await loader.get_raster(level=2)
    print("Raster:", raster.width, "x", raster.height, [d.shape for d in raster.data])


asyncio.run(main())
