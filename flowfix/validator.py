# flowfix/validator.py

from typing import Any

from flowfix.executable.parameters import validate_nodes
from flowfix.structural.analyzer import validate_graph
from flowfix.structural.checker import critical_issues, validate_structure
from flowfix.structural.issues import ValidationResult, merge_results
from flowfix.utils.logger import get_logger

log = get_logger("validator")


def validate_workflow(workflow: Any) -> ValidationResult:
    """
    Full validation: structure first, then graph and node parameters.
    Graph and parameter checks need a node array, so a critical structural
    error returns the structural result on its own.
    """
    structure = validate_structure(workflow)
    critical = critical_issues(structure)
    if critical:
        log.debug("structural short-circuit: %s", ", ".join(critical))
        return structure

    graph = validate_graph(workflow)
    nodes = validate_nodes(workflow)
    combined = merge_results(structure, graph, nodes)
    log.debug(
        "validation: %d errors, %d warnings, %d info (fixable=%s)",
        len(combined.errors), len(combined.warnings), len(combined.info), combined.fixable,
    )
    return combined


def get_validation_summary(result: ValidationResult) -> str:
    if result.is_valid:
        if not result.warnings and not result.info:
            return "✓ Workflow is valid with no issues"
        return (
            f"✓ Workflow is valid with {len(result.warnings)} warning(s) "
            f"and {len(result.info)} suggestion(s)"
        )
    return (
        f"✗ Workflow has {len(result.errors)} error(s), {len(result.warnings)} warning(s), "
        f"and {len(result.info)} suggestion(s)"
    )
