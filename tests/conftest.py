from pathlib import Path

import numpy as np
import pytest
import rasterio
from rasterio.transform import from_origin

from ndvicalc.utils.settings import NdviSettings

UTM33N = "EPSG:32633"
TRANSFORM = from_origin(300000.0, 5000040.0, 20.0, 20.0)


def write_band(path: Path, data, crs=UTM33N, transform=TRANSFORM, dtype="uint16") -> Path:
    data = np.asarray(data, dtype=dtype)
    profile = {
        "driver": "GTiff",
        "height": data.shape[0],
        "width": data.shape[1],
        "count": 1,
        "dtype": dtype,
        "crs": crs,
        "transform": transform,
    }
    with rasterio.open(path, "w", **profile) as dst:
        dst.write(data, 1)
    return path


@pytest.fixture
def band_pair(tmp_path):
    """B8A / B04 style inputs, 3 rows x 4 cols of raw digital numbers."""
    nir = [
        [5000, 0, 3000, 8000],
        [4000, 100, 0, 2500],
        [6000, 6000, 1, 0],
    ]
    red = [
        [2000, 0, 1000, 500],
        [4000, 900, 700, 2500],
        [0, 3000, 0, 0],
    ]
    return (
        write_band(tmp_path / "B8A.tif", nir),
        write_band(tmp_path / "B04.tif", red),
    )


@pytest.fixture
def settings(tmp_path, band_pair):
    nir_path, red_path = band_pair
    return NdviSettings(
        nir_path=nir_path,
        red_path=red_path,
        output_path=tmp_path / "out" / "ndvi.tif",
    )


class FakeSource:
    def __init__(self, data, projection="FAKE_WKT", geotransform=(10.0, 1.0, 0.0, 20.0, 0.0, -1.0)):
        self.data = np.asarray(data, dtype="float32")
        self.height, self.width = self.data.shape
        self._projection = projection
        self._geotransform = tuple(geotransform)
        self.closed = False

    def projection(self):
        return self._projection

    def geotransform(self):
        return self._geotransform

    def read_band(self, index=1, dtype="float32"):
        return self.data.astype(dtype)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True


class FakeSink:
    def __init__(self, path, width, height, count=1, dtype="float32", **kwargs):
        self.path = path
        self.width = width
        self.height = height
        self.dtype = dtype
        self.options = kwargs
        self.bands = {}
        self.nodata = {}
        self.scale_offset = {}
        self.descriptions = {}
        self.projection = None
        self.geotransform = None
        self.closed = False

    def set_projection(self, wkt):
        self.projection = wkt

    def set_geotransform(self, gt):
        self.geotransform = tuple(gt)

    def write_band(self, index, data):
        self.bands[index] = np.asarray(data).copy()

    def set_nodata(self, index, value):
        self.nodata[index] = value

    def set_scale_offset(self, index, scale, offset):
        self.scale_offset[index] = (scale, offset)

    def set_description(self, index, text):
        self.descriptions[index] = text

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
