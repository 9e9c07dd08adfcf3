"""
Evolution context shared by all program individuals of a run.

The context carries the run configuration, the registered fitness evaluator,
the type registry used to resolve stored type identifiers, and evaluation
statistics. Programs reference it but never own it.
"""

import logging
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Dict, Any, Optional, Callable, Union

import yaml

from .fitness import FitnessEvaluator, FunctionFitnessEvaluator
from .types import TypeRegistry
from ..entities import EvaluationStats


logger = logging.getLogger(__name__)


class InvalidConfigurationError(ValueError):
    """Exception raised when a program or context is configured incorrectly."""
    pass


@dataclass
class EvolutionConfig:
    """Configuration for program construction and evaluation tracking."""
    max_nodes: int = 200

    # MLflow configuration
    experiment_name: str = "evoprog"
    log_metrics: bool = False
    tracking_uri: Optional[str] = None  # Use default local tracking if None

    def __post_init__(self):
        if self.max_nodes <= 0:
            raise InvalidConfigurationError(f"max_nodes must be positive, got {self.max_nodes}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EvolutionContext:
    """
    Shared environment of a program-evolution run.

    Programs are created with a context and use it to find their fitness
    evaluator and to resolve type identifiers.
    """

    def __init__(self,
                 config: Optional[EvolutionConfig] = None,
                 fitness_evaluator: Optional[Union[FitnessEvaluator, Callable]] = None,
                 type_registry: Optional[TypeRegistry] = None):
        self.config = config or EvolutionConfig()
        self.type_registry = type_registry or TypeRegistry()
        self.stats = EvaluationStats()
        self._fitness_evaluator: Optional[FitnessEvaluator] = None
        if fitness_evaluator is not None:
            self.set_fitness_evaluator(fitness_evaluator)

    def get_fitness_evaluator(self) -> Optional[FitnessEvaluator]:
        """Get the registered fitness evaluator, or None."""
        return self._fitness_evaluator

    def set_fitness_evaluator(self, evaluator: Optional[Union[FitnessEvaluator, Callable]]):
        """
        Register the fitness evaluator used by programs of this context.

        Args:
            evaluator: A FitnessEvaluator, a plain ``fn(program) -> float``,
                or None to unregister
        """
        if evaluator is not None and not isinstance(evaluator, FitnessEvaluator):
            evaluator = FunctionFitnessEvaluator(evaluator)
        self._fitness_evaluator = evaluator
        logger.debug(f"Fitness evaluator set to {evaluator!r}")

    def __repr__(self) -> str:
        return (f"EvolutionContext(config={self.config!r}, "
                f"fitness_evaluator={self._fitness_evaluator!r})")


def config_from_dict(config_dict: Dict[str, Any]) -> EvolutionConfig:
    """
    Create EvolutionConfig from a configuration dictionary.

    Recognized sections are ``program`` and ``mlflow``; unknown keys are
    rejected so typos do not go unnoticed.
    """
    program_config = dict(config_dict.get('program') or {})
    mlflow_config = dict(config_dict.get('mlflow') or {})

    known = {f.name for f in fields(EvolutionConfig)}
    values = {**program_config, **mlflow_config}
    unknown = sorted(set(values) - known)
    if unknown:
        raise InvalidConfigurationError(f"Unknown configuration keys: {unknown}")

    return EvolutionConfig(**values)


def load_config(config_file: Union[str, Path]) -> EvolutionConfig:
    """Load EvolutionConfig from a YAML file."""
    config_file = Path(config_file)
    if not config_file.exists():
        raise InvalidConfigurationError(f"Configuration file not found: {config_file}")

    try:
        with open(config_file, 'r') as f:
            config_dict = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise InvalidConfigurationError(f"Error parsing configuration file {config_file}: {e}")

    if not isinstance(config_dict, dict):
        raise InvalidConfigurationError(f"Configuration file {config_file} must contain a mapping")

    return config_from_dict(config_dict)


# Factory function for easy context creation
def create_context(config_path: Optional[Union[str, Path]] = None,
                   evaluator: Optional[Union[FitnessEvaluator, Callable]] = None,
                   **overrides) -> EvolutionContext:
    """
    Create an EvolutionContext.

    Args:
        config_path: Optional YAML configuration file
        evaluator: Fitness evaluator or callable to register
        **overrides: EvolutionConfig fields overriding file/default values

    Returns:
        Configured EvolutionContext
    """
    config = load_config(config_path) if config_path else EvolutionConfig()
    if overrides:
        try:
            config = EvolutionConfig(**{**config.to_dict(), **overrides})
        except TypeError as e:
            raise InvalidConfigurationError(f"Invalid configuration override: {e}")

    logger.info(f"Created evolution context (max_nodes={config.max_nodes})")
    return EvolutionContext(config=config, fitness_evaluator=evaluator)
