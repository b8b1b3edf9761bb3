"""Type aliases to improve type hint readability."""

from typing import Tuple, TypeAlias, Union

from jax import Array

SolveResult: TypeAlias = Tuple[Array, Array]
DiffusionNumber: TypeAlias = Union[float, Tuple[float, float]]
