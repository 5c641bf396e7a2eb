#!/usr/bin/env python3
"""
ndvicalc.pipeline.ndvi

Per-pixel NDVI transform for two co-registered reflectance grids.

    n = (NIR + offset) / scale
    r = (RED + offset) / scale

    NDVI = (n - r) / (n + r)    where n + r > 0
         = nodata               otherwise

The "n + r > 0" test is strict: zero AND negative sums are flagged as
NoData (no vegetation signal), while tiny positive sums are computed
normally.

Sentinel-2 L2A digital numbers are reflectance * 10000. Products from
processing baseline 04.00 onwards also carry BOA_ADD_OFFSET = -1000,
which is what `offset` is for.
"""

import numpy as np


DEFAULT_SCALE = 10000.0
DEFAULT_NODATA = -999.0

# Fixed-point (int16) output: NDVI * 10000, -10000 doubles as NoData
FIXED_POINT_SCALE = 10000
FIXED_POINT_NODATA = -10000


def compute_ndvi(
    nir: np.ndarray,
    red: np.ndarray,
    scale: float = DEFAULT_SCALE,
    nodata: float = DEFAULT_NODATA,
    offset: float = 0.0,
) -> np.ndarray:
    """
    Compute NDVI from raw NIR and RED samples.

    Inputs may be any numeric arrays (or sequences) of identical shape;
    arithmetic is carried out in float32. Returns a new float32 array of
    the same shape holding the ratio or exactly `nodata`. The ratio stays
    in [-1, 1] for non-negative reflectances; negative ones (dark pixels
    after an offset) are written unclipped.
    """
    if scale <= 0:
        raise ValueError(f"Reflectance scale must be positive, got {scale}")

    nir = np.asarray(nir, dtype=np.float32)
    red = np.asarray(red, dtype=np.float32)
    if nir.shape != red.shape:
        raise ValueError(
            f"NIR and RED grids differ in shape: {nir.shape} vs {red.shape}"
        )

    scale32 = np.float32(scale)
    offset32 = np.float32(offset)

    n = (nir + offset32) / scale32
    r = (red + offset32) / scale32

    num = n - r
    den = n + r

    ndvi = np.full(num.shape, nodata, dtype=np.float32)
    # NaN sums compare False here, so they stay NoData too
    valid = den > 0
    np.divide(num, den, out=ndvi, where=valid)

    return ndvi


def to_fixed_point(
    ndvi: np.ndarray,
    nodata: float = DEFAULT_NODATA,
    fixed_scale: int = FIXED_POINT_SCALE,
    fixed_nodata: int = FIXED_POINT_NODATA,
) -> np.ndarray:
    """
    Convert a float NDVI grid into int16 (round(ndvi * fixed_scale)).

    Pixels equal to `nodata` (or non-finite) become `fixed_nodata`.
    """
    ndvi = np.asarray(ndvi, dtype=np.float32)
    invalid = (ndvi == np.float32(nodata)) | ~np.isfinite(ndvi)

    clamped = np.clip(np.where(invalid, 0.0, ndvi), -1.0, 1.0)
    scaled = np.rint(clamped * fixed_scale).astype(np.int16)
    scaled[invalid] = fixed_nodata
    return scaled


def summarize(ndvi: np.ndarray, nodata: float = DEFAULT_NODATA) -> dict:
    """
    Basic statistics over the valid (non-NoData) pixels.
    """
    ndvi = np.asarray(ndvi)
    valid = ndvi[(ndvi != nodata) & np.isfinite(ndvi)]
    total = int(ndvi.size)

    if valid.size == 0:
        return {"pixels": total, "valid": 0, "min": None, "max": None, "mean": None}

    return {
        "pixels": total,
        "valid": int(valid.size),
        "min": float(valid.min()),
        "max": float(valid.max()),
        "mean": float(valid.mean()),
    }
