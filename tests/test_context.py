"""
Tests for the evolution context and its configuration.
"""

import os
import tempfile
import pytest
from unittest.mock import Mock
from evoprog.core.context import (
    EvolutionContext,
    EvolutionConfig,
    InvalidConfigurationError,
    config_from_dict,
    load_config,
    create_context
)
from evoprog.core.fitness import FitnessEvaluator, FunctionFitnessEvaluator
from evoprog.core.types import TypeRegistry


class TestEvolutionConfig:
    """Test the configuration dataclass."""

    def test_default_config(self):
        """Test default configuration values."""
        config = EvolutionConfig()

        assert config.max_nodes == 200
        assert config.experiment_name == "evoprog"
        assert config.log_metrics is False
        assert config.tracking_uri is None

    def test_invalid_max_nodes(self):
        """Test that a non-positive node ceiling is rejected."""
        with pytest.raises(InvalidConfigurationError, match="max_nodes"):
            EvolutionConfig(max_nodes=0)

    def test_from_dict_sections(self):
        """Test building a config from program and mlflow sections."""
        config = config_from_dict({
            "program": {"max_nodes": 50},
            "mlflow": {"experiment_name": "gp_test", "log_metrics": True}
        })

        assert config.max_nodes == 50
        assert config.experiment_name == "gp_test"
        assert config.log_metrics is True

    def test_from_dict_unknown_key(self):
        """Test that unknown keys are reported."""
        with pytest.raises(InvalidConfigurationError, match="max_node"):
            config_from_dict({"program": {"max_node": 50}})


class TestLoadConfig:
    """Test YAML configuration loading."""

    def _write(self, content: str) -> str:
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write(content)
            return f.name

    def test_load_yaml(self):
        """Test loading a YAML configuration file."""
        path = self._write("program:\n  max_nodes: 75\nmlflow:\n  tracking_uri: file:///tmp/mlruns\n")
        try:
            config = load_config(path)
            assert config.max_nodes == 75
            assert config.tracking_uri == "file:///tmp/mlruns"
        finally:
            os.unlink(path)

    def test_example_config(self):
        """Test the shipped example configuration loads."""
        path = os.path.join(os.path.dirname(__file__), "..", "config", "example_config.yaml")
        config = load_config(path)

        assert config.max_nodes == 200
        assert config.log_metrics is True
        assert config.tracking_uri is None

    def test_empty_yaml_uses_defaults(self):
        """Test an empty file gives the default configuration."""
        path = self._write("")
        try:
            assert load_config(path) == EvolutionConfig()
        finally:
            os.unlink(path)

    def test_missing_file(self):
        """Test a missing file raises InvalidConfigurationError."""
        with pytest.raises(InvalidConfigurationError, match="not found"):
            load_config("/nonexistent/config.yaml")

    def test_invalid_yaml(self):
        """Test malformed YAML raises InvalidConfigurationError."""
        path = self._write("program: [unclosed\n")
        try:
            with pytest.raises(InvalidConfigurationError, match="parsing"):
                load_config(path)
        finally:
            os.unlink(path)

    def test_non_mapping_yaml(self):
        """Test YAML that is not a mapping is rejected."""
        path = self._write("- a\n- b\n")
        try:
            with pytest.raises(InvalidConfigurationError, match="mapping"):
                load_config(path)
        finally:
            os.unlink(path)


class TestEvolutionContext:
    """Test the context holding the evaluator and type registry."""

    def test_defaults(self):
        """Test a context without arguments."""
        context = EvolutionContext()

        assert context.config == EvolutionConfig()
        assert isinstance(context.type_registry, TypeRegistry)
        assert context.get_fitness_evaluator() is None
        assert context.stats.evaluations == 0

    def test_evaluator_registration(self):
        """Test registering and removing an evaluator."""
        evaluator = Mock(spec=FitnessEvaluator)
        context = EvolutionContext(fitness_evaluator=evaluator)

        assert context.get_fitness_evaluator() is evaluator

        context.set_fitness_evaluator(None)
        assert context.get_fitness_evaluator() is None

    def test_callable_is_wrapped(self):
        """Test that plain functions are adapted to the evaluator interface."""
        context = EvolutionContext()
        context.set_fitness_evaluator(lambda program: 1.0)

        evaluator = context.get_fitness_evaluator()
        assert isinstance(evaluator, FunctionFitnessEvaluator)
        assert evaluator.evaluate(None) == 1.0

    def test_create_context_with_overrides(self):
        """Test the factory applies overrides on top of defaults."""
        context = create_context(max_nodes=50, evaluator=lambda program: 0.5)

        assert context.config.max_nodes == 50
        assert context.get_fitness_evaluator() is not None

    def test_create_context_bad_override(self):
        """Test unknown override names are rejected."""
        with pytest.raises(InvalidConfigurationError):
            create_context(no_such_option=1)
