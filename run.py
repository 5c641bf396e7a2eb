#!/usr/bin/env python3
"""
NDVI entry point.

Compute NDVI with the paths and parameters from config.yaml:

    python run.py

Override any of them on the command line:

    python run.py --nir B8A.jp2 --red B04.jp2 --output ndvi.tif
    python run.py --offset -1000 --dtype int16
    python run.py --preview output/ndvi_color.png
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from ndvicalc.pipeline.controller import run_ndvi
from ndvicalc.pipeline.raster_io import NdviError
from ndvicalc.utils.settings import SUPPORTED_DTYPES, build_settings, load_config


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compute NDVI from a near-infrared and a red raster band."
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.yaml (default: config.yaml in the project root).",
    )
    parser.add_argument("--nir", type=Path, help="Near-infrared input raster.")
    parser.add_argument("--red", type=Path, help="Red input raster.")
    parser.add_argument("--output", "-o", type=Path, help="Output NDVI raster.")
    parser.add_argument(
        "--scale",
        type=float,
        help="Divisor turning digital numbers into reflectance (default 10000).",
    )
    parser.add_argument(
        "--offset",
        type=float,
        help=(
            "Added to digital numbers before scaling. "
            "Use -1000 for Sentinel-2 processing baseline 04.00+ products."
        ),
    )
    parser.add_argument(
        "--nodata",
        type=float,
        help="NoData value written where NIR + RED <= 0 (default -999).",
    )
    parser.add_argument(
        "--dtype",
        choices=SUPPORTED_DTYPES,
        help="Output pixel type: float32 NDVI or int16 NDVI * 10000.",
    )
    parser.add_argument(
        "--preview",
        type=Path,
        help="Also save a colour PNG of the result to this path.",
    )

    return parser.parse_args(argv)


def _abs(p: Optional[Path]) -> Optional[Path]:
    # Command-line paths are relative to the working directory, not the project
    return p.resolve() if p is not None else None


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)

    try:
        config = load_config(args.config)
        settings = build_settings(
            config,
            nir_path=_abs(args.nir),
            red_path=_abs(args.red),
            output_path=_abs(args.output),
            preview_path=_abs(args.preview),
            scale=args.scale,
            offset=args.offset,
            nodata=args.nodata,
            dtype=args.dtype,
        )
        out_path = run_ndvi(settings)
    except (NdviError, FileNotFoundError, ValueError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)

    print(f"NDVI calculation complete. Output saved to {out_path}")


if __name__ == "__main__":
    main()
