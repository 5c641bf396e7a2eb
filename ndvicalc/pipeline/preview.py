#!/usr/bin/env python3
"""
ndvicalc.pipeline.preview

Quick-look colour PNG of an NDVI grid (RdYlGn, 2-98 percentile stretch,
NoData left transparent).
"""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np


def save_preview(arr: np.ndarray, out_path: Path, nodata: float, title: str = "NDVI") -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    valid = np.isfinite(arr) & (arr != nodata)
    if not np.any(valid):
        raise RuntimeError("[Preview] No valid values to render.")

    vals = arr[valid]
    vmin, vmax = np.percentile(vals, [2, 98])
    if vmin == vmax:
        vmin -= 0.1
        vmax += 0.1

    print(f"[Preview] Rendering PNG with vmin={vmin:.3f}, vmax={vmax:.3f}")

    masked = np.ma.masked_where(~valid, arr)

    plt.figure(figsize=(10, 8))
    im = plt.imshow(masked, cmap="RdYlGn", vmin=vmin, vmax=vmax)
    plt.colorbar(im, label="NDVI")
    plt.title(title)
    plt.tight_layout()
    plt.savefig(out_path, dpi=200)
    plt.close()

    print(f"[Preview] PNG saved: {out_path}")
    return out_path
