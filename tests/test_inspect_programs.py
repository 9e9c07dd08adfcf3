"""
Tests for the program inspection entrypoint.
"""

import os
import tempfile
import pytest
from inspect_programs import describe_program, inspect_programs, size_fitness
from evoprog.core.context import EvolutionContext
from evoprog.core.fitness import NO_FITNESS_VALUE
from evoprog.core.programs import GPProgram
from evoprog.core.serialization import save_programs
from evoprog.entities import OperatorDescriptor


X = OperatorDescriptor("x", "builtins.float")
NEG = OperatorDescriptor("neg", "builtins.float", ("builtins.float",))


@pytest.fixture
def program():
    program = GPProgram(EvolutionContext(), chromosomes=[["neg", "x"]])
    program.set_structure([float], [[int]], [[NEG, X]], [1], [4])
    return program


def test_size_fitness(program):
    """Test the node-count fitness favours small programs."""
    assert size_fitness(program) == pytest.approx(1 / 3)
    assert size_fitness(GPProgram(EvolutionContext())) == 1.0


def test_describe_program(program):
    """Test the report lists the structure of each sub-tree."""
    program.set_fitness_directly(0.25)

    lines = describe_program(0, program)

    assert lines[0].startswith("Program 0: GPProgram(")
    assert "  sub-tree 0: (int) -> float, depth 1..4" in lines
    assert "    node set: neg, x" in lines
    assert "  fitness: 0.25 (raw 0.25, scaling 1.0)" in lines


def test_inspect_programs_evaluates_size(program, capsys):
    """Test loading a file and re-scoring by size."""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
        filepath = f.name

    try:
        save_programs([program], filepath)
        inspect_programs(filepath, evaluate_size=True)
    finally:
        os.unlink(filepath)

    out = capsys.readouterr().out
    assert "sub-tree 0: (int) -> float" in out
    assert f"raw {1 / 3}" in out


def test_inspect_programs_without_evaluator(program, capsys):
    """Test saved programs without a cached value report no fitness."""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
        filepath = f.name

    try:
        save_programs([program], filepath)
        inspect_programs(filepath)
    finally:
        os.unlink(filepath)

    assert f"fitness: {NO_FITNESS_VALUE}" in capsys.readouterr().out


def test_inspect_missing_file():
    """Test a missing programs file exits with an error."""
    with pytest.raises(SystemExit):
        inspect_programs("/nonexistent/programs.json")
