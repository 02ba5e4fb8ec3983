"""
Snowfake - Gravner-Griffeath 2D snow crystal growth.

This package provides:
- SnowfakeSimulator: double-buffered mesoscopic lattice model driver
- GrowthParams / SnowfakeConfig: physical constants and run configuration
- render: SVG export of the finished crystal
- analysis: shape statistics of the finished crystal
"""

from .params import (
    AllocationError,
    ConfigurationError,
    GrowthParams,
    SnowfakeConfig,
    validate_size,
)
from .lattice import Cell, LatticeStore
from .simulator import RunState, SnowfakeSimulator, StopReason
from . import analysis, render, utils

__all__ = [
    # Simulator
    "SnowfakeSimulator",
    "RunState",
    "StopReason",
    # Lattice
    "LatticeStore",
    "Cell",
    # Configuration classes
    "GrowthParams",
    "SnowfakeConfig",
    "validate_size",
    # Errors
    "ConfigurationError",
    "AllocationError",
    # Utilities
    "analysis",
    "render",
    "utils",
]
