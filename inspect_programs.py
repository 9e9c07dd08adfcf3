#!/usr/bin/env python3
"""
EvoProg Entrypoint - Inspect saved program individuals.

Loads programs written by ``save_programs`` and prints their structure
(sub-tree types, depth bounds, node sets) and cached fitness. With
``--evaluate-size`` the programs are re-scored with a node-count fitness
function, which is handy for checking a saved population without the
evaluator it was scored with.

Usage:
    python inspect_programs.py programs.json
    python inspect_programs.py programs.json --config config.yaml
    python inspect_programs.py programs.json --evaluate-size
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List

from evoprog.core import (
    GPProgram,
    InvalidConfigurationError,
    ProgramBase,
    NO_FITNESS_VALUE,
    create_context,
    load_programs,
)


def setup_logging(verbose: bool = False):
    """Setup basic logging configuration."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def size_fitness(program: ProgramBase) -> float:
    """Fitness that rewards small programs: 1 / (1 + node count)."""
    if isinstance(program, GPProgram):
        return 1.0 / (1.0 + program.node_count())
    return NO_FITNESS_VALUE


def describe_program(index: int, program: ProgramBase) -> List[str]:
    """Build the report lines for one program."""
    lines = [f"Program {index}: {program!r}"]
    types = program.get_types()
    arg_types = program.get_arg_types()
    min_depths = program.get_min_depths()
    max_depths = program.get_max_depths()
    node_sets = program.get_node_sets()

    for i in range(program.subtree_count):
        args = ", ".join(t.__name__ for t in arg_types[i])
        operators = ", ".join(op.name for op in node_sets[i])
        lines.append(f"  sub-tree {i}: ({args}) -> {types[i].__name__}, "
                     f"depth {min_depths[i]}..{max_depths[i]}")
        if operators:
            lines.append(f"    node set: {operators}")

    lines.append(f"  max nodes: {program.max_nodes}")
    lines.append(f"  fitness: {program.fitness()} "
                 f"(raw {program.raw_fitness}, scaling {program.scaling_factor})")
    return lines


def inspect_programs(programs_file: Path, config_file: Path = None,
                     evaluate_size: bool = False) -> None:
    """Load and print the programs stored in a file."""
    logger = logging.getLogger(__name__)

    try:
        context = create_context(config_file, evaluator=size_fitness if evaluate_size else None)
        programs = load_programs(str(programs_file), context)
    except (InvalidConfigurationError, OSError, ValueError) as e:
        print(f"Error loading programs: {e}")
        sys.exit(1)

    if evaluate_size:
        for program in programs:
            program.invalidate()

    for i, program in enumerate(programs):
        print("\n".join(describe_program(i, program)))

    stats = context.stats.get_summary()
    logger.info(f"Evaluations: {stats['evaluations']}, cache hits: {stats['cache_hits']}")


def main():
    """Main entrypoint."""
    parser = argparse.ArgumentParser(
        description="Inspect saved EvoProg program individuals",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python inspect_programs.py programs.json
  python inspect_programs.py programs.json --config config.yaml --evaluate-size
        """
    )

    parser.add_argument(
        'programs_file',
        type=Path,
        help='Path to a JSON file written by save_programs'
    )

    parser.add_argument(
        '--config', '-c',
        type=Path,
        help='Path to YAML configuration file'
    )

    parser.add_argument(
        '--evaluate-size',
        action='store_true',
        help='Re-score programs with a node-count fitness function'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    args = parser.parse_args()

    if not args.programs_file.exists():
        print(f"Error: Programs file not found: {args.programs_file}")
        sys.exit(1)

    setup_logging(args.verbose)
    inspect_programs(args.programs_file, args.config, evaluate_size=args.evaluate_size)


if __name__ == "__main__":
    main()
