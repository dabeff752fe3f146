# flowfix/structural/checker.py

from typing import Any, Dict, List, Set

from jsonschema import Draft7Validator

from .issues import ValidationResult
from .schema import NODE_SCHEMA, WORKFLOW_SCHEMA

# Codes after which no node-level, graph or parameter check can run.
CRITICAL_CODES = frozenset({"INVALID_WORKFLOW", "MISSING_NODES", "INVALID_NODES", "EMPTY_NODES"})

_NODE_VALIDATOR = Draft7Validator(NODE_SCHEMA)
_WORKFLOW_VALIDATOR = Draft7Validator(WORKFLOW_SCHEMA)

MISSING = "missing"
INVALID = "invalid"
MALFORMED = "malformed"  # the property itself is fine but something nested inside is not


def _schema_problems(validator: Draft7Validator, instance: Dict[str, Any]) -> Dict[str, str]:
    """
    Collapse jsonschema errors into one verdict per top-level property:
    missing, invalid (wrong type / empty) or malformed (nested error).
    """
    problems: Dict[str, str] = {}
    for err in validator.iter_errors(instance):
        if err.validator == "required" and not err.path:
            for prop in err.validator_value:
                if prop not in instance:
                    problems[prop] = MISSING
            continue
        if not err.path:
            continue
        prop = err.path[0]
        verdict = INVALID if len(err.path) == 1 else MALFORMED
        if problems.get(prop) != INVALID:
            problems[prop] = verdict
    return problems


def validate_structure(workflow: Any) -> ValidationResult:
    """
    Check the document shape and every node's fields, independent of node
    semantics. Stops early when the document or its node array is unusable.
    """
    result = ValidationResult()

    if not isinstance(workflow, dict):
        result.error("INVALID_WORKFLOW", "Workflow must be a valid object")
        return result

    problems = _schema_problems(_WORKFLOW_VALIDATOR, workflow)

    if "name" in problems:
        result.error(
            "MISSING_NAME",
            "Workflow must have a name property",
            fix="Add default workflow name",
        )

    # nodes: three hard stops, none of them repairable
    nodes = workflow.get("nodes")
    if "nodes" not in workflow or nodes is None:
        result.error("MISSING_NODES", "Workflow must have a nodes array")
        return result
    if not isinstance(nodes, list):
        result.error("INVALID_NODES", "Nodes must be an array")
        return result
    if not nodes:
        result.error("EMPTY_NODES", "Workflow must have at least one node")
        return result

    conn_problem = problems.get("connections")
    if conn_problem == MISSING or ("connections" in workflow and workflow["connections"] is None):
        result.error(
            "MISSING_CONNECTIONS",
            "Workflow must have a connections object",
            fix="Create empty connections object",
        )
    elif conn_problem == INVALID:
        result.error(
            "INVALID_CONNECTIONS",
            "Connections must be an object",
            fix="Replace connections with an empty object",
        )
    elif conn_problem == MALFORMED:
        result.error(
            "MALFORMED_CONNECTIONS",
            "Connections contain entries that are not lists of {node, type} targets",
            fix="Remove malformed connection entries",
        )

    # recommended properties
    if "active" in problems:
        result.warning(
            "MISSING_ACTIVE",
            "Workflow should have a boolean active property",
            fix="Set active to false",
        )
    if "settings" in problems:
        result.warning(
            "MISSING_SETTINGS",
            "Workflow should have a settings object",
            fix="Add empty settings object",
        )
    if "id" in problems or not workflow.get("id"):
        result.warning(
            "MISSING_ID",
            "Workflow should have an id property",
            fix="Generate unique ID",
        )

    seen: Set[str] = set()
    for index, node in enumerate(nodes):
        _validate_node(node, index, seen, result)

    return result


def _validate_node(node: Any, index: int, seen: Set[str], result: ValidationResult) -> None:
    ref = f"Node {index}"

    if not isinstance(node, dict):
        result.error("INVALID_NODE", f"{ref} is not a valid object")
        return

    problems = _schema_problems(_NODE_VALIDATOR, node)
    node_id = None if "id" in problems else str(node["id"])
    name = node.get("name") if "name" not in problems else None
    ref = f"{ref} ({node_id})" if node_id else ref

    if node_id is None:
        result.error(
            "MISSING_NODE_ID",
            f"{ref} is missing id property",
            fix="Generate unique node ID",
        )
    elif node_id in seen:
        result.error(
            "DUPLICATE_NODE_ID",
            f"Duplicate node ID found: {node_id}",
            node_id=node_id,
            fix="Generate unique node ID",
        )
    else:
        seen.add(node_id)

    if "name" in problems:
        result.warning(
            "MISSING_NODE_NAME",
            f"{ref} is missing name property",
            node_id=node_id,
            fix="Generate node name from type",
        )

    if "type" in problems:
        # a type can't be guessed, so there is no fix hint
        result.error(
            "MISSING_NODE_TYPE",
            f"{ref} is missing type property",
            node_id=node_id,
            node_name=name,
        )

    if "parameters" in problems:
        result.warning(
            "MISSING_NODE_PARAMETERS",
            f"{ref} is missing parameters property",
            node_id=node_id,
            node_name=name,
            fix="Add empty parameters object",
        )

    if "position" in problems:
        result.warning(
            "INVALID_NODE_POSITION",
            f"{ref} has invalid position",
            node_id=node_id,
            node_name=name,
            fix="Calculate position based on node order",
            details={"position": node.get("position")},
        )

    if "typeVersion" in problems:
        result.warning(
            "MISSING_TYPE_VERSION",
            f"{ref} is missing typeVersion property",
            node_id=node_id,
            node_name=name,
            fix="Set typeVersion to 1",
        )

    if "credentials" in problems:
        result.warning(
            "INVALID_CREDENTIALS",
            f"{ref} has a credentials property that is not an object",
            node_id=node_id,
            node_name=name,
        )


def critical_issues(result: ValidationResult) -> List[str]:
    return [i.code for i in result.errors if i.code in CRITICAL_CODES]
