"""
Fitness evaluation interfaces and the cached fitness state of a program.

A FitnessEvaluator computes the raw fitness of a program. The FitnessCache
memoizes that raw value and applies the parsimony scaling factor each time
the value is read, so the stored number never carries the scaling.
"""

import math
from abc import ABC, abstractmethod
from typing import Callable, Optional, TYPE_CHECKING

from ..entities import FitnessState

if TYPE_CHECKING:
    from .programs import ProgramBase


# Raw fitness of a program that has not produced a usable value yet
NO_FITNESS_VALUE = -1.0


class FitnessEvaluator(ABC):
    """Abstract base class for fitness functions plugged into a context."""

    @abstractmethod
    def evaluate(self, program: "ProgramBase") -> float:
        """Compute the raw fitness of a program."""
        pass


class FunctionFitnessEvaluator(FitnessEvaluator):
    """Adapts a plain callable ``fn(program) -> float`` to the evaluator interface."""

    def __init__(self, fn: Callable[["ProgramBase"], float]):
        if not callable(fn):
            raise TypeError(f"Fitness function must be callable, got {type(fn).__name__}")
        self.fn = fn

    def evaluate(self, program: "ProgramBase") -> float:
        return self.fn(program)

    def __repr__(self) -> str:
        return f"FunctionFitnessEvaluator({getattr(self.fn, '__name__', self.fn)!r})"


def normalize_fitness(value: float) -> float:
    """Map infinite or NaN evaluator output onto NO_FITNESS_VALUE."""
    value = float(value)
    if not math.isfinite(value):
        return NO_FITNESS_VALUE
    return value


class FitnessCache:
    """
    Raw fitness value, staleness flag and scaling factor of one program.

    Not thread-safe: callers must not invalidate and read the same cache
    concurrently.
    """

    def __init__(self):
        self.raw = NO_FITNESS_VALUE
        self.needs_reevaluation = False
        self.scaling_factor = 1.0

    @property
    def state(self) -> FitnessState:
        if self.needs_reevaluation:
            return FitnessState.STALE
        if self.raw == NO_FITNESS_VALUE:
            return FitnessState.UNEVALUATED
        return FitnessState.FRESH

    @property
    def is_fresh(self) -> bool:
        return self.state is FitnessState.FRESH

    def invalidate(self):
        self.needs_reevaluation = True

    def store(self, raw: float):
        """Store a freshly computed raw value and clear the staleness flag."""
        self.raw = raw
        self.needs_reevaluation = False

    def scaled(self, raw: Optional[float] = None) -> float:
        """
        Apply the scaling factor to a raw value (the cached one by default).

        The sentinel is returned unscaled so "no value" stays recognizable.
        """
        if raw is None:
            raw = self.raw
        if raw == NO_FITNESS_VALUE:
            return NO_FITNESS_VALUE
        return self.scaling_factor * raw

    def __repr__(self) -> str:
        return (f"FitnessCache(state={self.state.value}, raw={self.raw}, "
                f"scaling_factor={self.scaling_factor})")
