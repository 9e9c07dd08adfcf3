"""
MLflow tracking of fitness evaluation statistics.

Each EvolutionContext counts evaluator invocations, cache hits and
normalized (non-finite) results. These helpers publish the counters of a
context to MLflow so the caching behaviour of a run can be followed over
generations.
"""

import logging
from typing import Dict, Any, Optional

import mlflow

from .core.context import EvolutionContext


logger = logging.getLogger(__name__)


def start_tracking_run(context: EvolutionContext, run_name: Optional[str] = None):
    """
    Start an MLflow run for the programs of a context.

    The run is filed under the configured experiment (created by MLflow if it
    does not exist) and records the context configuration as parameters,
    along with the registered evaluator, so runs scored by different fitness
    functions can be told apart.

    Returns:
        The active MLflow run
    """
    config = context.config
    if config.tracking_uri:
        mlflow.set_tracking_uri(config.tracking_uri)
    mlflow.set_experiment(config.experiment_name)

    run = mlflow.start_run(run_name=run_name)
    mlflow.log_params({
        "max_nodes": config.max_nodes,
        "fitness_evaluator": type(context.get_fitness_evaluator()).__name__
    })
    logger.info(f"Started MLflow run {run.info.run_id} in experiment {config.experiment_name}")
    return run


def log_evaluation_stats(context: EvolutionContext, step: Optional[int] = None,
                         prefix: str = "fitness_", reset: bool = False) -> Dict[str, Any]:
    """
    Log the evaluation statistics of a context as MLflow metrics.

    Nothing is sent when ``log_metrics`` is disabled in the configuration or
    no MLflow run is active.

    Args:
        context: Context whose statistics are logged
        step: Optional step (usually the generation number)
        prefix: Prefix for the metric names
        reset: Reset the counters after logging, giving per-step numbers

    Returns:
        The metrics that were logged, empty if none were
    """
    if not context.config.log_metrics:
        return {}

    if mlflow.active_run() is None:
        logger.warning("No active MLflow run, skipping evaluation stats logging")
        return {}

    summary = context.stats.get_summary()
    metrics = {
        f"{prefix}{key}": value
        for key, value in summary.items()
        if isinstance(value, (int, float))
    }
    mlflow.log_metrics(metrics, step=step)
    if reset:
        context.stats.reset()
    return metrics
