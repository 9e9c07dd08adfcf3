"""
Program individuals for tree-based genetic programming.

ProgramBase holds everything a program individual carries apart from its
trees: the structural constraints per sub-tree (return type, ADF argument
types, operator catalog, depth bounds), the node ceiling, and the cached,
scaled fitness value. GPProgram is a concrete representation that stores each
sub-tree as a prefix-ordered list of node names.
"""

import copy
import logging
import math
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Any

from .context import EvolutionContext, InvalidConfigurationError
from .fitness import FitnessCache, normalize_fitness
from .types import TypeResolutionError, VOID_TYPE
from ..entities import FitnessState, OperatorDescriptor


logger = logging.getLogger(__name__)


class StructureMismatchError(ValueError):
    """Exception raised when per-sub-tree arrays would get out of lockstep."""
    pass


class ComparisonError(TypeError):
    """Exception raised when two programs cannot be ordered against each other."""
    pass


class ProgramBase(ABC):
    """
    Base class for program individuals.

    The per-sub-tree arrays (types, argument types, node sets, min and max
    depths) always have the same length. A program without sub-trees is
    unconfigured; the first array set on it sizes the others with
    placeholders (void type, no arguments, empty node set, depth 0). Types are
    stored as identifiers from the context's TypeRegistry and resolved when
    read.

    Fitness is computed lazily through the context's fitness evaluator and
    cached until ``invalidate()`` is called. The scaling factor is applied on
    every read and never stored into the cached value.
    """

    _STRUCTURE_FIELDS = ("types", "arg_types", "node_sets", "min_depths", "max_depths")

    def __init__(self, context: Optional[EvolutionContext] = None,
                 template: Optional["ProgramBase"] = None):
        """
        Args:
            context: The owning evolution context
            template: Program whose structure (not fitness) is copied; its
                context is used when ``context`` is omitted

        Raises:
            InvalidConfigurationError: If no context is available
        """
        if context is None and template is not None:
            context = template.context
        if context is None:
            raise InvalidConfigurationError("Context must not be None!")

        self._context = context
        self._fitness = FitnessCache()

        self._types: List[str] = []
        self._arg_types: List[List[str]] = []
        self._node_sets: List[List[OperatorDescriptor]] = []
        self._min_depths: List[int] = []
        self._max_depths: List[int] = []
        self._max_nodes: int = context.config.max_nodes

        # Free to use by the caller, never copied or persisted
        self.application_data: Any = None

        if template is not None:
            self._copy_structure_from(template)

    @property
    def context(self) -> EvolutionContext:
        return self._context

    def _copy_structure_from(self, template: "ProgramBase"):
        self._types = list(template._types)
        self._arg_types = copy.deepcopy(template._arg_types)
        self._node_sets = [list(node_set) for node_set in template._node_sets]
        self._min_depths = list(template._min_depths)
        self._max_depths = list(template._max_depths)
        self._max_nodes = template._max_nodes

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    @property
    def subtree_count(self) -> int:
        """Number of sub-trees described by the structure, 0 if unconfigured."""
        return len(self._types)

    def _subtree_count_hint(self) -> Optional[int]:
        """
        Sub-tree count implied by content held outside the structure arrays.

        Subclasses holding trees return their number so the structure cannot
        be resized underneath them. None means no constraint.
        """
        return None

    def _check_subtree_hint(self, field_name: str, length: int):
        hint = self._subtree_count_hint()
        if hint is not None and hint != length:
            raise StructureMismatchError(
                f"Cannot set {field_name} for {length} sub-trees: program holds {hint} trees"
            )

    def _check_lockstep(self, field_name: str, length: int):
        for name in self._STRUCTURE_FIELDS:
            if name == field_name:
                continue
            values = getattr(self, f"_{name}")
            if values and len(values) != length:
                raise StructureMismatchError(
                    f"Cannot set {field_name} for {length} sub-trees: "
                    f"{name} describes {len(values)}"
                )
        self._check_subtree_hint(field_name, length)

    def _set_field(self, field_name: str, values: list):
        self._check_lockstep(field_name, len(values))
        if self.subtree_count != len(values):
            self._size_placeholders(len(values))
        setattr(self, f"_{field_name}", values)

    def _size_placeholders(self, count: int):
        void = self._context.type_registry.identifier_for(VOID_TYPE)
        self._types = [void] * count
        self._arg_types = [[] for _ in range(count)]
        self._node_sets = [[] for _ in range(count)]
        self._min_depths = [0] * count
        self._max_depths = [0] * count

    def set_structure(self, types: Sequence[type], arg_types: Sequence[Sequence[type]],
                      node_sets: Sequence[Sequence[OperatorDescriptor]],
                      min_depths: Sequence[int], max_depths: Sequence[int]):
        """
        Replace all per-sub-tree arrays at once.

        Unlike the single-array setters this may change the number of
        sub-trees, as long as no trees are held that would disagree.

        Raises:
            StructureMismatchError: If the arrays differ in length, or from
                the number of trees the program holds
        """
        lengths = {len(types), len(arg_types), len(node_sets), len(min_depths), len(max_depths)}
        if len(lengths) != 1:
            raise StructureMismatchError(
                f"Structure arrays must have equal length, got {sorted(lengths)}"
            )
        self._check_subtree_hint("structure", len(types))

        registry = self._context.type_registry
        self._types = [registry.identifier_for(t) for t in types]
        self._arg_types = [[registry.identifier_for(t) for t in args] for args in arg_types]
        self._node_sets = [list(node_set) for node_set in node_sets]
        self._min_depths = [int(d) for d in min_depths]
        self._max_depths = [int(d) for d in max_depths]

    def set_types(self, types: Sequence[type]):
        """Set the return type of each sub-tree."""
        registry = self._context.type_registry
        identifiers = [registry.identifier_for(t) for t in types]
        self.set_type_identifiers(identifiers)

    def set_type_identifiers(self, identifiers: Sequence[str]):
        """Set the return types of each sub-tree as stored identifiers."""
        self._set_field("types", list(identifiers))

    @property
    def type_identifiers(self) -> List[str]:
        return list(self._types)

    def get_types(self) -> List[type]:
        """Resolve the return type of every sub-tree; unknown entries become VOID_TYPE."""
        return [self.get_type(i) for i in range(len(self._types))]

    def get_type(self, index: int) -> type:
        return self._resolve(self._types[index], f"return type of sub-tree {index}")

    def set_arg_types(self, arg_types: Sequence[Sequence[type]]):
        """Set the ADF argument types of each sub-tree."""
        registry = self._context.type_registry
        identifiers = [[registry.identifier_for(t) for t in args] for args in arg_types]
        self.set_arg_type_identifiers(identifiers)

    def set_arg_type_identifiers(self, identifiers: Sequence[Sequence[str]]):
        self._set_field("arg_types", [list(args) for args in identifiers])

    @property
    def arg_type_identifiers(self) -> List[List[str]]:
        return [list(args) for args in self._arg_types]

    def get_arg_types(self) -> List[List[type]]:
        return [self.get_arg_type(i) for i in range(len(self._arg_types))]

    def get_arg_type(self, index: int) -> List[type]:
        return [
            self._resolve(identifier, f"argument {position} of sub-tree {index}")
            for position, identifier in enumerate(self._arg_types[index])
        ]

    def _resolve(self, identifier: str, where: str) -> type:
        try:
            return self._context.type_registry.resolve(identifier)
        except TypeResolutionError as e:
            logger.warning(f"Could not resolve {where}, using {VOID_TYPE.__name__}: {e}")
            return VOID_TYPE

    def set_node_sets(self, node_sets: Sequence[Sequence[OperatorDescriptor]]):
        """Set the operators and terminals usable in each sub-tree."""
        self._set_field("node_sets", [list(node_set) for node_set in node_sets])

    def get_node_sets(self) -> List[List[OperatorDescriptor]]:
        return [list(node_set) for node_set in self._node_sets]

    def get_node_set(self, index: int) -> List[OperatorDescriptor]:
        return list(self._node_sets[index])

    def set_min_depths(self, min_depths: Sequence[int]):
        self._set_field("min_depths", [int(d) for d in min_depths])

    def get_min_depths(self) -> List[int]:
        return list(self._min_depths)

    def set_max_depths(self, max_depths: Sequence[int]):
        self._set_field("max_depths", [int(d) for d in max_depths])

    def get_max_depths(self) -> List[int]:
        return list(self._max_depths)

    @property
    def max_nodes(self) -> int:
        return self._max_nodes

    @max_nodes.setter
    def max_nodes(self, value: int):
        if int(value) <= 0:
            raise InvalidConfigurationError(f"max_nodes must be positive, got {value}")
        self._max_nodes = int(value)

    # ------------------------------------------------------------------
    # Fitness
    # ------------------------------------------------------------------

    @property
    def fitness_state(self) -> FitnessState:
        return self._fitness.state

    @property
    def raw_fitness(self) -> float:
        """Cached raw fitness, possibly NO_FITNESS_VALUE or stale."""
        return self._fitness.raw

    @property
    def needs_reevaluation(self) -> bool:
        return self._fitness.needs_reevaluation

    @property
    def scaling_factor(self) -> float:
        return self._fitness.scaling_factor

    def set_scaling_factor(self, factor: float):
        """Set the parsimony scaling factor; applies from the next read on."""
        self._fitness.scaling_factor = float(factor)

    def set_fitness_directly(self, value: float):
        """Overwrite the cached raw fitness without changing the staleness flag."""
        self._fitness.raw = float(value)

    def restore_fitness(self, value: float, needs_reevaluation: bool = False,
                        scaling_factor: float = 1.0):
        """Restore a saved fitness state, e.g. when loading programs from storage."""
        self._fitness.raw = float(value)
        self._fitness.needs_reevaluation = bool(needs_reevaluation)
        self._fitness.scaling_factor = float(scaling_factor)

    def invalidate(self):
        """Mark the cached fitness as stale so the next read recomputes it."""
        self._fitness.invalidate()

    def evaluate(self) -> float:
        """
        Compute the raw fitness through the context's evaluator and cache it.

        Returns:
            The raw fitness; NO_FITNESS_VALUE if the evaluator returned a
            non-finite value. Without a registered evaluator the cached value
            is returned unchanged.
        """
        evaluator = self._context.get_fitness_evaluator()
        if evaluator is None:
            self._context.stats.record_missing_evaluator()
            logger.debug("No fitness evaluator registered, keeping cached fitness")
            return self._fitness.raw

        raw = float(evaluator.evaluate(self))
        normalized = not math.isfinite(raw)
        if normalized:
            logger.warning(f"Fitness evaluator returned {raw}, storing NO_FITNESS_VALUE")
        value = normalize_fitness(raw)

        self._context.stats.record_evaluation(normalized=normalized)
        self._fitness.store(value)
        return value

    def fitness(self) -> float:
        """
        Get the scaled fitness, evaluating only if no fresh value is cached.

        Returns:
            scaling_factor * raw fitness, or NO_FITNESS_VALUE if none is known
        """
        if self._fitness.is_fresh:
            self._context.stats.record_cache_hit()
            return self._fitness.scaled()
        # Without an evaluator this keeps the raw value but still clears the stale flag
        value = self.evaluate()
        self._fitness.store(value)
        return self._fitness.scaled(value)

    # ------------------------------------------------------------------
    # Comparison and duplication
    # ------------------------------------------------------------------

    @abstractmethod
    def compare_to(self, other: Any) -> int:
        """
        Order this program against another.

        Returns:
            Negative, zero or positive like a three-way comparison

        Raises:
            ComparisonError: If ``other`` is not comparable with this program
        """
        pass

    @abstractmethod
    def clone(self) -> "ProgramBase":
        """Return an independent deep copy with default fitness state."""
        pass

    def __eq__(self, other: Any) -> bool:
        try:
            return self.compare_to(other) == 0
        except ComparisonError:
            return False

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, ProgramBase):
            return NotImplemented
        return self.compare_to(other) < 0

    # Mutable and compared by content
    __hash__ = None


class GPProgram(ProgramBase):
    """
    Program made of one tree per sub-tree, each stored in prefix order.

    Only the node names are kept; building and executing the trees is done by
    the tree engine plugged in around this class.
    """

    def __init__(self, context: Optional[EvolutionContext] = None,
                 template: Optional[ProgramBase] = None,
                 chromosomes: Optional[Sequence[Sequence[str]]] = None):
        super().__init__(context, template)
        self._chromosomes: List[List[str]] = []
        if chromosomes is not None:
            self._assign_chromosomes(chromosomes)

    @property
    def chromosomes(self) -> List[List[str]]:
        return [list(nodes) for nodes in self._chromosomes]

    def set_chromosomes(self, chromosomes: Sequence[Sequence[str]]):
        """
        Replace the trees of this program and mark its fitness stale.

        Raises:
            StructureMismatchError: If the count differs from the configured structure
        """
        self._assign_chromosomes(chromosomes)
        self.invalidate()

    def set_structure(self, types: Sequence[type], arg_types: Sequence[Sequence[type]],
                      node_sets: Sequence[Sequence[OperatorDescriptor]],
                      min_depths: Sequence[int], max_depths: Sequence[int],
                      chromosomes: Optional[Sequence[Sequence[str]]] = None):
        """
        Replace all per-sub-tree arrays at once, optionally with the trees.

        Passing ``chromosomes`` replaces the trees together with the structure
        and marks the fitness stale; this is the only way to change the
        sub-tree count of a program that already holds trees.
        """
        if chromosomes is None:
            super().set_structure(types, arg_types, node_sets, min_depths, max_depths)
            return

        if len(chromosomes) != len(types):
            raise StructureMismatchError(
                f"Structure describes {len(types)} sub-trees, got {len(chromosomes)} chromosomes"
            )
        held, self._chromosomes = self._chromosomes, []
        try:
            super().set_structure(types, arg_types, node_sets, min_depths, max_depths)
        except Exception:
            self._chromosomes = held
            raise
        self.set_chromosomes(chromosomes)

    def _subtree_count_hint(self) -> Optional[int]:
        return len(self._chromosomes) or None

    def _assign_chromosomes(self, chromosomes: Sequence[Sequence[str]]):
        expected = self.subtree_count
        if expected and len(chromosomes) != expected:
            raise StructureMismatchError(
                f"Program structure describes {expected} sub-trees, got {len(chromosomes)} chromosomes"
            )
        self._chromosomes = [list(nodes) for nodes in chromosomes]

    def get_chromosome(self, index: int) -> List[str]:
        return list(self._chromosomes[index])

    def size(self) -> int:
        """Number of chromosomes."""
        return len(self._chromosomes)

    def node_count(self) -> int:
        """Total number of nodes over all chromosomes."""
        return sum(len(nodes) for nodes in self._chromosomes)

    def compare_to(self, other: Any) -> int:
        if other is None:
            return 1
        if not isinstance(other, GPProgram):
            raise ComparisonError(
                f"Cannot compare GPProgram with {type(other).__name__}"
            )
        if self.size() != other.size():
            return -1 if self.size() < other.size() else 1
        for mine, theirs in zip(self._chromosomes, other._chromosomes):
            if mine != theirs:
                return -1 if mine < theirs else 1
        return 0

    def clone(self) -> "GPProgram":
        duplicate = GPProgram(template=self)
        duplicate._chromosomes = copy.deepcopy(self._chromosomes)
        return duplicate

    def __repr__(self) -> str:
        return (f"GPProgram(chromosomes={self.size()}, nodes={self.node_count()}, "
                f"fitness_state={self.fitness_state.value}, raw_fitness={self.raw_fitness})")
