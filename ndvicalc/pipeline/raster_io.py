#!/usr/bin/env python3
"""
ndvicalc.pipeline.raster_io

Thin capability layer over rasterio:

  - open_raster(path)   -> RasterSource  (read side)
  - create_raster(...)  -> RasterSink    (write side)

Both are context managers. The controller only talks to these two
shapes, so it can be driven by in-memory fakes in tests.

Metadata is exchanged in GDAL terms: projection as a WKT string and the
geotransform as the 6-tuple (x0, dx, rx, y0, ry, dy).
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import rasterio
from rasterio.crs import CRS
from rasterio.errors import DriverRegistrationError, RasterioError, RasterioIOError
from rasterio.transform import Affine


class NdviError(RuntimeError):
    """Base class for fatal errors of an NDVI run."""


class CannotOpenInput(NdviError):
    pass


class CannotCreateOutput(NdviError):
    pass


class RasterShapeMismatch(NdviError, ValueError):
    pass


# ---------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------
class RasterSource:
    def __init__(self, dataset: rasterio.io.DatasetReader, path: Path):
        self._ds = dataset
        self.path = path

    @property
    def width(self) -> int:
        return self._ds.width

    @property
    def height(self) -> int:
        return self._ds.height

    @property
    def count(self) -> int:
        return self._ds.count

    def projection(self) -> str:
        crs = self._ds.crs
        return crs.to_wkt() if crs else ""

    def geotransform(self) -> Tuple[float, ...]:
        return tuple(self._ds.transform.to_gdal())

    def read_band(self, index: int = 1, dtype: str = "float32") -> np.ndarray:
        if index < 1 or index > self._ds.count:
            raise ValueError(
                f"Invalid band index {index} for {self.path}. "
                f"Available bands: 1..{self._ds.count}"
            )
        return self._ds.read(index).astype(dtype)

    def close(self) -> None:
        self._ds.close()

    def __enter__(self) -> "RasterSource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def open_raster(path: Path | str) -> RasterSource:
    path = Path(path)
    if not path.exists():
        raise CannotOpenInput(f"Input raster does not exist: {path}")
    try:
        ds = rasterio.open(path)
    except RasterioIOError as e:
        raise CannotOpenInput(f"Could not open input raster {path}: {e}") from e
    return RasterSource(ds, path)


# ---------------------------------------------------------------------
# Write side
# ---------------------------------------------------------------------
class RasterSink:
    def __init__(self, dataset: rasterio.io.DatasetWriter, path: Path):
        self._ds = dataset
        self.path = path

    def set_projection(self, wkt: str) -> None:
        # Sources without a spatial reference report ""
        if wkt:
            self._ds.crs = CRS.from_wkt(wkt)

    def set_geotransform(self, geotransform: Sequence[float]) -> None:
        if len(geotransform) != 6:
            raise ValueError(
                f"Geotransform needs 6 coefficients, got {len(geotransform)}"
            )
        self._ds.transform = Affine.from_gdal(*geotransform)

    def write_band(self, index: int, data: np.ndarray) -> None:
        self._ds.write(np.asarray(data, dtype=self._ds.dtypes[index - 1]), index)

    def set_nodata(self, index: int, value: float) -> None:
        # GDAL keeps one NoData value per band; rasterio sets it dataset-wide
        self._ds.nodata = value

    def set_scale_offset(self, index: int, scale: float, offset: float) -> None:
        scales = list(self._ds.scales)
        offsets = list(self._ds.offsets)
        scales[index - 1] = scale
        offsets[index - 1] = offset
        self._ds.scales = scales
        self._ds.offsets = offsets

    def set_description(self, index: int, text: str) -> None:
        self._ds.set_band_description(index, text)

    def close(self) -> None:
        self._ds.close()

    def __enter__(self) -> "RasterSink":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def create_raster(
    path: Path | str,
    width: int,
    height: int,
    count: int = 1,
    dtype: str = "float32",
    driver: str = "GTiff",
    creation_options: Optional[Dict[str, str]] = None,
) -> RasterSink:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        ds = rasterio.open(
            path,
            "w",
            driver=driver,
            width=width,
            height=height,
            count=count,
            dtype=dtype,
            **(creation_options or {}),
        )
    except (RasterioError, DriverRegistrationError, ValueError, OSError) as e:
        raise CannotCreateOutput(f"Could not create output raster {path}: {e}") from e
    return RasterSink(ds, path)
