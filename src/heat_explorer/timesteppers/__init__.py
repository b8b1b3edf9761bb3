"""Time-stepping schemes for the heat equation."""

from .base import AbstractStepper
from .protocol import StepperProtocol
from .explicit import ForwardEuler
from .implicit import BackwardEuler
from .cranknicolson import CrankNicolson

__all__ = [
    # Base class and protocol
    'AbstractStepper',
    'StepperProtocol',

    # Explicit methods
    'ForwardEuler',

    # Implicit methods
    'BackwardEuler',
    'CrankNicolson',
]
