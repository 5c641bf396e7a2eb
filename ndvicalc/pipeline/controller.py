#!/usr/bin/env python3
"""
ndvicalc.pipeline.controller

Orchestrates one NDVI run:

    NIR raster ─┐
                ├─> compute_ndvi ─> output raster (+ optional PNG preview)
    RED raster ─┘

Projection and geotransform of the output are copied from the NIR input.
Every raster handle is closed on all exit paths.
"""

from contextlib import ExitStack
from pathlib import Path
import time
from typing import Callable

from ndvicalc.pipeline.ndvi import compute_ndvi, summarize, to_fixed_point
from ndvicalc.pipeline.preview import save_preview
from ndvicalc.pipeline.raster_io import RasterShapeMismatch, create_raster, open_raster
from ndvicalc.utils.settings import NdviSettings


def _write_output(out, settings: NdviSettings, ndvi, projection: str, geotransform) -> None:
    out.set_projection(projection)
    out.set_geotransform(geotransform)

    if settings.dtype == "int16":
        out.write_band(
            1,
            to_fixed_point(
                ndvi,
                nodata=settings.nodata,
                fixed_scale=settings.fixed_point_scale,
                fixed_nodata=settings.fixed_point_nodata,
            ),
        )
        out.set_nodata(1, settings.fixed_point_nodata)
        out.set_scale_offset(1, 1.0 / settings.fixed_point_scale, 0.0)
        out.set_description(1, f"NDVI (scaled by {settings.fixed_point_scale})")
    else:
        out.write_band(1, ndvi)
        out.set_nodata(1, settings.nodata)
        out.set_description(1, "NDVI")


def run_ndvi(
    settings: NdviSettings,
    open_input: Callable = open_raster,
    create_output: Callable = create_raster,
) -> Path:
    """
    Compute NDVI for settings.nir_path / settings.red_path and write it to
    settings.output_path. Returns the output path.
    """
    start = time.perf_counter()

    print("\n[NDVI] Computation starting...")
    print(f"  NIR    : {settings.nir_path}")
    print(f"  RED    : {settings.red_path}")
    print(f"  Output : {settings.output_path} ({settings.dtype})")
    print(f"  scale={settings.scale}, offset={settings.offset}, nodata={settings.nodata}")

    with ExitStack() as stack:
        nir_src = stack.enter_context(open_input(settings.nir_path))
        red_src = stack.enter_context(open_input(settings.red_path))

        width, height = nir_src.width, nir_src.height
        if (red_src.width, red_src.height) != (width, height):
            raise RasterShapeMismatch(
                f"Input rasters differ in size: NIR is {width}x{height}, "
                f"RED is {red_src.width}x{red_src.height}"
            )
        print(f"[NDVI] Image size: {width}x{height}")

        print("[NDVI] Reading bands...")
        nir = nir_src.read_band(1, dtype="float32")
        red = red_src.read_band(1, dtype="float32")

        print("[NDVI] Calculating NDVI...")
        ndvi = compute_ndvi(
            nir,
            red,
            scale=settings.scale,
            nodata=settings.nodata,
            offset=settings.offset,
        )

        stats = summarize(ndvi, nodata=settings.nodata)
        print(f"[NDVI] Valid pixels: {stats['valid']}/{stats['pixels']}")
        if stats["valid"]:
            print(
                f"[NDVI] min={stats['min']:.4f}, max={stats['max']:.4f}, "
                f"mean={stats['mean']:.4f}"
            )

        print("[NDVI] Writing result...")
        with create_output(
            settings.output_path,
            width,
            height,
            count=1,
            dtype=settings.dtype,
            driver=settings.driver,
            creation_options=settings.creation_options,
        ) as out:
            _write_output(out, settings, ndvi, nir_src.projection(), nir_src.geotransform())

    if settings.preview_path is not None:
        if stats["valid"]:
            save_preview(ndvi, settings.preview_path, nodata=settings.nodata)
        else:
            print("[Preview] Skipped: no valid NDVI pixels.")

    print(f"[NDVI] Done in {time.perf_counter() - start:.3f}s")
    return settings.output_path
