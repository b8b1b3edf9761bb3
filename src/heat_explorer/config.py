"""Simulation parameters and their validation."""

from dataclasses import dataclass, fields, replace as dc_replace
from enum import Enum
from typing import Any, Mapping


class ConfigurationError(ValueError):
    """Raised when simulation parameters cannot produce a valid session."""


class Method(Enum):
    """
    Time-stepping schemes.

    Currently supported methods:
        FORWARD_EULER (explicit)
        BACKWARD_EULER (implicit)
        CRANK_NICOLSON
    """
    FORWARD_EULER = "forward-euler"
    BACKWARD_EULER = "backward-euler"
    CRANK_NICOLSON = "crank-nicolson"

    @classmethod
    def parse(cls, value: Any) -> "Method":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("_", "-")
        key = _METHOD_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            names = ", ".join(m.value for m in cls)
            raise ConfigurationError(
                f"Unknown method {value!r}; expected one of: {names}"
            ) from None


_METHOD_ALIASES = {
    "explicit": "forward-euler",
    "implicit": "backward-euler",
    "cn": "crank-nicolson",
}


class Dimension(Enum):
    ONE_D = "1d"
    TWO_D = "2d"

    @property
    def ndim(self) -> int:
        return 1 if self is Dimension.ONE_D else 2

    @classmethod
    def parse(cls, value: Any) -> "Dimension":
        if isinstance(value, cls):
            return value
        if value in (1, 2):
            return cls.ONE_D if value == 1 else cls.TWO_D
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown dimension {value!r}; expected '1d' or '2d'"
            ) from None


@dataclass(frozen=True)
class Parameters:
    """
    Parameters of one simulation session.

    Attributes:
        L: Domain length (the 2D domain is the square [0, L] x [0, L]).
        alpha: Diffusivity.
        nx: Grid points per axis, boundaries included.
        dt: Time step size.
        t_max: Simulation end time.
        method: Time-stepping scheme.
        dimension: 1D interval or 2D square.
        speed: Steps performed per driver tick.
    """

    L: float = 1.0
    alpha: float = 0.01
    nx: int = 41
    dt: float = 0.001
    t_max: float = 2.0
    method: Method = Method.FORWARD_EULER
    dimension: Dimension = Dimension.ONE_D
    speed: int = 5

    def __post_init__(self):
        # Accept string names and numbers coming from UI widgets
        object.__setattr__(self, "method", Method.parse(self.method))
        object.__setattr__(self, "dimension", Dimension.parse(self.dimension))
        for name in _FLOAT_FIELDS:
            object.__setattr__(self, name, _as_float(name, getattr(self, name)))
        for name in _INT_FIELDS:
            object.__setattr__(self, name, _as_int(name, getattr(self, name)))
        self.validate()

    @property
    def ndim(self) -> int:
        return self.dimension.ndim

    @property
    def dx(self) -> float:
        return self.L / (self.nx - 1)

    def validate(self) -> None:
        """Raise ConfigurationError if the parameters are not usable."""
        if self.nx < 3:
            raise ConfigurationError(
                f"nx must be at least 3 (one interior point), got {self.nx}"
            )
        for name in _FLOAT_FIELDS:
            value = getattr(self, name)
            if not value > 0 or value == float("inf"):
                raise ConfigurationError(f"{name} must be positive and finite, got {value!r}")
        if self.speed < 1:
            raise ConfigurationError(f"speed must be at least 1, got {self.speed}")

    def replace(self, **changes) -> "Parameters":
        """Return a validated copy with the given fields changed."""
        return dc_replace(self, **changes)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "Parameters":
        """Build parameters from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown parameter(s): {', '.join(sorted(unknown))}"
            )
        return cls(**dict(values))


_FLOAT_FIELDS = ("L", "alpha", "dt", "t_max")
_INT_FIELDS = ("nx", "speed")


def _as_float(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None


def _as_int(name: str, value: Any) -> int:
    number = _as_float(name, value)
    if not number.is_integer():
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    return int(number)
