"""
ndvicalc.utils.settings

Load config.yaml and merge it with command-line overrides.

config.yaml layout:

paths:
  nir: data/T33TTG_20250305T100029_B8A_20m.jp2
  red: data/T33TTG_20250305T100029_B04_20m.jp2
  output: output/ndvi.tif
  preview: null
ndvi:
  scale: 10000.0
  offset: 0.0
  nodata: -999.0
output:
  driver: GTiff
  dtype: float32
  creation_options: {...}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

_PROJECT_ROOT = Path(__file__).resolve().parents[2]
_CONFIG_PATH = _PROJECT_ROOT / "config.yaml"

SUPPORTED_DTYPES = ("float32", "int16")


def get_project_root() -> Path:
    return _PROJECT_ROOT


def load_config(path: Path | str | None = None) -> dict:
    config_path = Path(path) if path is not None else _CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with config_path.open("r", encoding="utf-8") as f:
        try:
            config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid config file {config_path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(
            f"Invalid config file {config_path}: expected a mapping at the top level, "
            f"got {type(config).__name__}"
        )
    return config


@dataclass
class NdviSettings:
    nir_path: Path
    red_path: Path
    output_path: Path
    preview_path: Optional[Path] = None
    scale: float = 10000.0
    offset: float = 0.0
    nodata: float = -999.0
    driver: str = "GTiff"
    dtype: str = "float32"
    fixed_point_scale: int = 10000
    fixed_point_nodata: int = -10000
    creation_options: Dict[str, str] = field(default_factory=dict)


def _resolve(p: Any, root: Path) -> Optional[Path]:
    if p is None or p == "":
        return None
    p = Path(p)
    return p if p.is_absolute() else root / p


def build_settings(config: dict, root: Path | None = None, **overrides: Any) -> NdviSettings:
    """
    Merge a loaded config dict with explicit overrides.

    Overrides use the NdviSettings field names; None values are ignored so
    argparse defaults never mask the config file.
    """
    root = root if root is not None else get_project_root()

    paths = config.get("paths", {}) or {}
    ndvi = config.get("ndvi", {}) or {}
    output = config.get("output", {}) or {}

    values: Dict[str, Any] = {
        "nir_path": paths.get("nir"),
        "red_path": paths.get("red"),
        "output_path": paths.get("output"),
        "preview_path": paths.get("preview"),
        "scale": ndvi.get("scale", 10000.0),
        "offset": ndvi.get("offset", 0.0),
        "nodata": ndvi.get("nodata", -999.0),
        "driver": output.get("driver", "GTiff"),
        "dtype": output.get("dtype", "float32"),
        "fixed_point_scale": output.get("fixed_point_scale", 10000),
        "fixed_point_nodata": output.get("fixed_point_nodata", -10000),
        "creation_options": output.get("creation_options", {}) or {},
    }
    values.update({k: v for k, v in overrides.items() if v is not None})

    for key in ("nir_path", "red_path", "output_path"):
        if not values[key]:
            raise ValueError(f"Missing required path setting: {key}")

    scale = float(values["scale"])
    if scale <= 0:
        raise ValueError(f"Reflectance scale must be positive, got {scale}")

    dtype = str(values["dtype"]).strip().lower()
    if dtype not in SUPPORTED_DTYPES:
        raise ValueError(
            f"Unsupported output dtype '{dtype}'. "
            f"Supported: {', '.join(SUPPORTED_DTYPES)}"
        )

    return NdviSettings(
        nir_path=_resolve(values["nir_path"], root),
        red_path=_resolve(values["red_path"], root),
        output_path=_resolve(values["output_path"], root),
        preview_path=_resolve(values["preview_path"], root),
        scale=scale,
        offset=float(values["offset"]),
        nodata=float(values["nodata"]),
        driver=str(values["driver"]),
        dtype=dtype,
        fixed_point_scale=int(values["fixed_point_scale"]),
        fixed_point_nodata=int(values["fixed_point_nodata"]),
        # GDAL expects string option values; YAML turns YES into True
        creation_options={
            str(k).upper(): ("YES" if v is True else "NO" if v is False else str(v))
            for k, v in values["creation_options"].items()
        },
    )
