"""
Core components for EvoProg - program individuals for tree-based genetic programming.
"""

from .fitness import (
    NO_FITNESS_VALUE,
    FitnessEvaluator,
    FunctionFitnessEvaluator,
    FitnessCache,
    normalize_fitness
)

from .types import (
    TypeRegistry,
    TypeResolutionError,
    VOID_TYPE
)

from .context import (
    EvolutionContext,
    EvolutionConfig,
    InvalidConfigurationError,
    config_from_dict,
    load_config,
    create_context
)

from .programs import (
    ProgramBase,
    GPProgram,
    ComparisonError,
    StructureMismatchError
)

from .serialization import (
    program_to_dict,
    program_from_dict,
    save_programs,
    load_programs
)

__all__ = [
    "NO_FITNESS_VALUE",
    "FitnessEvaluator",
    "FunctionFitnessEvaluator",
    "FitnessCache",
    "normalize_fitness",
    "TypeRegistry",
    "TypeResolutionError",
    "VOID_TYPE",
    "EvolutionContext",
    "EvolutionConfig",
    "InvalidConfigurationError",
    "config_from_dict",
    "load_config",
    "create_context",
    "ProgramBase",
    "GPProgram",
    "ComparisonError",
    "StructureMismatchError",
    "program_to_dict",
    "program_from_dict",
    "save_programs",
    "load_programs"
]
