# src/snowfake/utils.py
from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

from .params import ConfigurationError, GrowthParams, params_from_mapping


@dataclass
class CrystalResult:
    """Final state of a run: which cells froze, and how much mass each holds."""

    attached: Optional[np.ndarray] = None
    crystal_mass: Optional[np.ndarray] = None
    meta: Optional[Dict[str, Any]] = None

    @property
    def size(self) -> int:
        if self.attached is None:
            raise ValueError("result has no attached grid")
        return int(self.attached.shape[0])


def save_crystal(
    path: str | os.PathLike[str], result: CrystalResult, *, overwrite: bool = True
) -> None:
    """Serialize a CrystalResult to a compressed .npz file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not overwrite and path.exists():
        raise FileExistsError(f"{path} already exists")
    out: Dict[str, Any] = {}
    if result.attached is not None:
        out["attached"] = result.attached.astype("uint8")
    if result.crystal_mass is not None:
        out["crystal_mass"] = np.asarray(result.crystal_mass, dtype=np.float64)
    out["meta"] = json.dumps(result.meta or {})
    np.savez_compressed(path, **out)


def load_crystal(path: str | os.PathLike[str]) -> CrystalResult:
    """Load a .npz written by save_crystal."""
    with np.load(path, allow_pickle=False) as data:
        attached = data["attached"].astype(bool) if "attached" in data else None
        crystal_mass = (
            data["crystal_mass"].astype(np.float64) if "crystal_mass" in data else None
        )
        meta = json.loads(data["meta"].item()) if "meta" in data else {}
    return CrystalResult(attached=attached, crystal_mass=crystal_mass, meta=meta)


def load_params(path: str | os.PathLike[str]) -> GrowthParams:
    """
    Load physical constants from JSON or TOML.

    A TOML file may put the constants at top level or under a [params] table.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    with open(path, "rb") as fh:
        data = fh.read()
    if suffix not in {".json", "", ".toml", ".tml"}:
        raise ConfigurationError(f"Unsupported parameter file format: {suffix}")
    try:
        text = data.decode("utf-8")
        if suffix in {".json", ""}:
            raw = json.loads(text)
        else:
            raw = tomllib.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigurationError(f"Cannot parse {path}: {exc}") from None
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path} must contain a table of parameters")
    if isinstance(raw.get("params"), dict):
        raw = raw["params"]
    return params_from_mapping(raw)
