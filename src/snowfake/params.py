"""
Physical constants and run configuration for the Gravner-Griffeath model.

Janko Gravner and David Griffeath, "Modeling Snow Crystal Growth II:
A mesoscopic lattice map with plausible dynamics", Physica D 237 (2008).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Mapping, Optional

# Smallest odd grid whose center keeps all six neighbors in bounds.
MIN_SIZE = 5
MAX_TICKS = 100_000
PROGRESS_EVERY = 1000


class ConfigurationError(ValueError):
    """Invalid grid size or physical constant."""


class AllocationError(MemoryError):
    """The lattice buffers could not be allocated."""


@dataclass(frozen=True)
class GrowthParams:
    # initial vapor density: typ 0.3..0.9
    rho: float = 0.42
    # freezing fraction for boundary: typ 0.001..0.02
    kappa: float = 0.01
    # min boundary mass to join for 1..2 neighbors: typ 1.05..3.0
    beta: float = 1.9
    # max neighborhood diffusive mass to join for 3 neighbors: typ 0.01..0.04
    theta: float = 0.025
    # min boundary mass to join for 3 neighbors: typ 0.02..0.1
    alpha: float = 0.08
    # melting boundary mass fraction: typ 0.04..0.09
    mu: float = 0.06
    # crystal mass melting fraction: typ "very small"
    gamma: float = 0.006
    # noise amplitude on diffusive mass: typ "tiny", 0 disables noise
    sigma: float = 0.0

    def validate(self) -> "GrowthParams":
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ConfigurationError(f"{f.name} must be a number, got {value!r}")
            if value != value or value < 0:
                raise ConfigurationError(f"{f.name} must be non-negative, got {value}")
        for name in ("kappa", "mu", "gamma"):
            if getattr(self, name) > 1.0:
                raise ConfigurationError(f"{name} is a fraction and must be <= 1")
        if self.sigma >= 1.0:
            raise ConfigurationError("sigma must be < 1 to keep masses non-negative")
        return self

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def params_from_mapping(mapping: Optional[Mapping[str, Any]] = None) -> GrowthParams:
    """Build validated GrowthParams from a plain dict (e.g. a parsed TOML table)."""
    mapping = dict(mapping or {})
    known = {f.name for f in fields(GrowthParams)}
    unknown = sorted(set(mapping) - known)
    if unknown:
        raise ConfigurationError(f"Unknown parameter(s): {', '.join(unknown)}")
    values = {}
    for key, value in mapping.items():
        if isinstance(value, bool):
            raise ConfigurationError(f"{key} must be a number, got {value!r}")
        try:
            values[key] = float(value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"{key} must be a number, got {value!r}") from None
    return GrowthParams(**values).validate()


def validate_size(value: Any) -> int:
    """
    Parse and check a grid size.

    The size must be a positive odd integer, and large enough that the six
    neighbors of the seed cell fit on the grid.
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"grid size must be an integer, got {value!r}")
    try:
        size = int(str(value).strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError, OverflowError):
        raise ConfigurationError(f"grid size must be an integer, got {value!r}") from None
    if isinstance(value, float) and value != size:
        raise ConfigurationError(f"grid size must be an integer, got {value!r}")
    if size <= 0:
        raise ConfigurationError(f"grid size must be positive, got {size}")
    if size % 2 == 0:
        raise ConfigurationError(f"grid size must be odd, got {size}")
    if size < MIN_SIZE:
        raise ConfigurationError(f"grid size must be at least {MIN_SIZE}, got {size}")
    return size


@dataclass(frozen=True)
class SnowfakeConfig:
    """Everything a single run needs; passed to the simulator at construction."""
    size: int
    params: GrowthParams = field(default_factory=GrowthParams)
    max_ticks: Optional[int] = MAX_TICKS
    seed: Optional[int] = None
    verbose: bool = False
    progress_every: int = PROGRESS_EVERY

    def __post_init__(self) -> None:
        object.__setattr__(self, "size", validate_size(self.size))
        self.params.validate()
        if self.max_ticks is not None and self.max_ticks < 0:
            raise ConfigurationError(f"max_ticks must be >= 0, got {self.max_ticks}")
        if self.progress_every <= 0:
            raise ConfigurationError("progress_every must be positive")
