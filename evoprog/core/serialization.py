"""
Plain-data persistence for program individuals.

Programs are written as dictionaries / JSON with their types kept as
identifiers, so a saved program can be loaded even when some of its types
are not importable at the time. The context and the application data are
not persisted; a context must be supplied on load.
"""

import json
import logging
from typing import List, Dict, Any, Type, Iterable

from .context import EvolutionContext, InvalidConfigurationError
from .programs import ProgramBase, GPProgram
from ..entities import OperatorDescriptor


logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def program_to_dict(program: ProgramBase) -> Dict[str, Any]:
    """Convert a program to a JSON-compatible dictionary."""
    data = {
        "program_class": type(program).__name__,
        "types": program.type_identifiers,
        "arg_types": program.arg_type_identifiers,
        "node_sets": [
            [descriptor.to_dict() for descriptor in node_set]
            for node_set in program.get_node_sets()
        ],
        "min_depths": program.get_min_depths(),
        "max_depths": program.get_max_depths(),
        "max_nodes": program.max_nodes,
        "fitness_value": program.raw_fitness,
        "needs_reevaluation": program.needs_reevaluation,
        "scaling_factor": program.scaling_factor
    }
    if isinstance(program, GPProgram):
        data["chromosomes"] = program.chromosomes
    return data


def program_from_dict(data: Dict[str, Any], context: EvolutionContext,
                      program_class: Type[ProgramBase] = GPProgram) -> ProgramBase:
    """
    Rebuild a program from a dictionary produced by program_to_dict.

    A program saved without sub-trees stays unconfigured.

    Raises:
        InvalidConfigurationError: If required fields are missing
    """
    try:
        program = program_class(context)
        if data["types"]:
            program.set_type_identifiers(data["types"])
        if data["arg_types"]:
            program.set_arg_type_identifiers(data["arg_types"])
        if data["node_sets"]:
            program.set_node_sets([
                [OperatorDescriptor.from_dict(d) for d in node_set]
                for node_set in data["node_sets"]
            ])
        if data["min_depths"]:
            program.set_min_depths(data["min_depths"])
        if data["max_depths"]:
            program.set_max_depths(data["max_depths"])
        program.max_nodes = data["max_nodes"]
    except KeyError as e:
        raise InvalidConfigurationError(f"Missing field in saved program: {e}")

    if isinstance(program, GPProgram) and data.get("chromosomes") is not None:
        program.set_chromosomes(data["chromosomes"])

    # Restore fitness state last, set_chromosomes marks the program stale
    program.restore_fitness(
        data.get("fitness_value", program.raw_fitness),
        needs_reevaluation=data.get("needs_reevaluation", False),
        scaling_factor=data.get("scaling_factor", 1.0)
    )
    return program


def save_programs(programs: Iterable[ProgramBase], filepath: str):
    """Save programs to a JSON file."""
    programs = list(programs)
    data = {
        "format_version": FORMAT_VERSION,
        "programs": [program_to_dict(p) for p in programs]
    }

    with open(filepath, 'w') as f:
        json.dump(data, f, indent=2)

    logger.info(f"Saved {len(programs)} programs to {filepath}")


def load_programs(filepath: str, context: EvolutionContext,
                  program_class: Type[ProgramBase] = GPProgram) -> List[ProgramBase]:
    """Load programs from a JSON file written by save_programs."""
    with open(filepath, 'r') as f:
        data = json.load(f)

    version = data.get("format_version")
    if version != FORMAT_VERSION:
        raise InvalidConfigurationError(
            f"Unsupported program file version {version!r} (expected {FORMAT_VERSION})"
        )

    programs = [program_from_dict(p, context, program_class) for p in data["programs"]]
    logger.info(f"Loaded {len(programs)} programs from {filepath}")
    return programs
