"""
Entity definitions for the EvoProg program-individual core.

This module contains the plain data structures shared between program
individuals, their evolution context and the persistence layer.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Tuple


class FitnessState(Enum):
    """Lifecycle of a program's cached fitness value."""
    UNEVALUATED = "unevaluated"
    FRESH = "fresh"
    STALE = "stale"


@dataclass(frozen=True)
class OperatorDescriptor:
    """
    Describes one function or terminal that may appear in a sub-tree.

    Types are held as stable identifiers (see TypeRegistry), never as live
    classes, so descriptors can be copied and persisted freely.
    """
    name: str
    return_type: str
    arg_types: Tuple[str, ...] = ()

    def __post_init__(self):
        # Accept lists from callers and from JSON
        if not isinstance(self.arg_types, tuple):
            object.__setattr__(self, "arg_types", tuple(self.arg_types))

    @property
    def arity(self) -> int:
        return len(self.arg_types)

    @property
    def is_terminal(self) -> bool:
        return self.arity == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "return_type": self.return_type,
            "arg_types": list(self.arg_types)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OperatorDescriptor":
        return cls(
            name=data["name"],
            return_type=data["return_type"],
            arg_types=tuple(data.get("arg_types", ()))
        )


@dataclass
class EvaluationStats:
    """Fitness evaluation tracking shared by all programs of a context."""
    evaluations: int = 0
    cache_hits: int = 0
    normalized_values: int = 0
    missing_evaluator: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_evaluation(self, normalized: bool = False):
        """Add an evaluator invocation to the statistics."""
        with self._lock:
            self.evaluations += 1
            if normalized:
                self.normalized_values += 1

    def record_cache_hit(self):
        with self._lock:
            self.cache_hits += 1

    def record_missing_evaluator(self):
        with self._lock:
            self.missing_evaluator += 1

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of evaluation statistics."""
        with self._lock:
            reads = self.evaluations + self.cache_hits
            return {
                "evaluations": self.evaluations,
                "cache_hits": self.cache_hits,
                "normalized_values": self.normalized_values,
                "missing_evaluator": self.missing_evaluator,
                "cache_hit_rate": self.cache_hits / max(1, reads)
            }

    def reset(self):
        with self._lock:
            self.evaluations = 0
            self.cache_hits = 0
            self.normalized_values = 0
            self.missing_evaluator = 0
