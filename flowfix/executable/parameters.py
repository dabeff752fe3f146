# flowfix/executable/parameters.py

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from jsonschema import Draft7Validator

from flowfix.registry.nodes import DEFAULT_JS_CODE, NodeDefinition, ParameterSpec, get_node_by_type
from flowfix.structural.issues import ValidationResult
from flowfix.utils.graph import node_key

# Primitive parameter types checked against a jsonschema fragment. The
# composite types (json, collection, fixedCollection) are accepted as-is.
_TYPE_VALIDATORS = {
    "string": Draft7Validator({"type": "string"}),
    "number": Draft7Validator({"type": "number"}),
    "boolean": Draft7Validator({"type": "boolean"}),
}

# Node types that run fine without a credential reference.
CREDENTIAL_EXEMPT = frozenset({
    "n8n-nodes-base.httpRequest",
    "n8n-nodes-base.webhook",
    "n8n-nodes-base.start",
    "n8n-nodes-base.manualTrigger",
    "n8n-nodes-base.cron",
    "n8n-nodes-base.scheduleTrigger",
})
CREDENTIAL_CATEGORIES = frozenset({"integration"})


def is_blank(value: Any) -> bool:
    """Missing, None or an empty/whitespace string."""
    return value is None or (isinstance(value, str) and value.strip() == "")


def validate_nodes(workflow: Dict[str, Any]) -> ValidationResult:
    """Validate every node's parameters against its registry definition."""
    result = ValidationResult()
    nodes = workflow.get("nodes")
    if not isinstance(nodes, list):
        return result
    for node in nodes:
        if isinstance(node, dict):
            _validate_single_node(node, result)
    return result


def _validate_single_node(node: Dict[str, Any], result: ValidationResult) -> None:
    node_type = node.get("type")
    if not node_type:
        # reported by the structure validator as MISSING_NODE_TYPE
        return

    nid = node_key(node)
    name = node.get("name")
    definition = get_node_by_type(node_type)
    if definition is None:
        result.error(
            "UNKNOWN_NODE_TYPE",
            f"Unknown node type: {node_type}",
            node_id=nid,
            node_name=name,
            details={"type": node_type},
        )
        return

    params = node.get("parameters")
    if not isinstance(params, dict):
        params = {}

    _validate_parameters(node, params, definition, result)

    check = NODE_CHECKS.get(definition.type)
    if check is not None:
        check(_Ctx(node, params, result))

    if _requires_credentials(definition) and not node.get("credentials"):
        result.warning(
            "MISSING_CREDENTIALS",
            f'Node "{name or nid}" ({definition.display_name}) typically requires credentials',
            node_id=nid,
            node_name=name,
            details={"type": node_type},
        )


def _validate_parameters(
    node: Dict[str, Any],
    params: Dict[str, Any],
    definition: NodeDefinition,
    result: ValidationResult,
) -> None:
    nid = node_key(node)
    name = node.get("name")
    required = definition.required_parameters

    if required and not params:
        result.error(
            "EMPTY_REQUIRED_PARAMETERS",
            f'Node "{name or nid}" ({definition.display_name}) requires parameters but has none',
            node_id=nid,
            node_name=name,
            fix="Add required parameters",
            details={"required_parameters": [p.name for p in required]},
        )

    for spec in required:
        value = params.get(spec.name)
        if value is None or value == "":
            result.error(
                "MISSING_REQUIRED_PARAMETER",
                f'Node "{name or nid}" is missing required parameter: {spec.name}',
                node_id=nid,
                node_name=name,
                fix=f"Set {spec.name} parameter",
                details={"parameter": spec.name, "description": spec.description, "type": spec.type},
            )
        else:
            _validate_parameter_type(node, spec, value, result)


def _validate_parameter_type(node: Dict[str, Any], spec: ParameterSpec, value: Any, result: ValidationResult) -> None:
    nid = node_key(node)
    name = node.get("name")

    if spec.type == "options":
        allowed = spec.option_values()
        if allowed and value not in allowed:
            # option lists are not exhaustive, so only warn
            result.warning(
                "INVALID_OPTION_VALUE",
                f'Parameter "{spec.name}" in node "{name or nid}" has invalid option value',
                node_id=nid,
                node_name=name,
                details={"parameter": spec.name, "value": value, "valid_options": allowed},
            )
        return

    validator = _TYPE_VALIDATORS.get(spec.type)
    if validator is not None and not validator.is_valid(value):
        result.error(
            "INVALID_PARAMETER_TYPE",
            f'Parameter "{spec.name}" in node "{name or nid}" has wrong type (expected {spec.type})',
            node_id=nid,
            node_name=name,
            details={"parameter": spec.name, "expected_type": spec.type, "actual_type": type(value).__name__},
        )


def _requires_credentials(definition: NodeDefinition) -> bool:
    if definition.type in CREDENTIAL_EXEMPT:
        return False
    return definition.category in CREDENTIAL_CATEGORIES


# ---------------------------------------------------------------------------
# Well-known node types
# ---------------------------------------------------------------------------

class _Ctx:
    """Node under check plus shortcuts for reporting against it."""

    def __init__(self, node: Dict[str, Any], params: Dict[str, Any], result: ValidationResult):
        self.node = node
        self.params = params
        self.result = result
        self.node_id = node_key(node)
        self.name = node.get("name") or self.node_id

    def error(self, code: str, message: str, fix: Optional[str] = None, details: Any = None) -> None:
        self.result.error(code, message, node_id=self.node_id, node_name=self.node.get("name"), fix=fix, details=details)

    def warning(self, code: str, message: str, fix: Optional[str] = None, details: Any = None) -> None:
        self.result.warning(code, message, node_id=self.node_id, node_name=self.node.get("name"), fix=fix, details=details)


def _check_http_request(ctx: _Ctx) -> None:
    url = ctx.params.get("url")
    if not isinstance(url, str) or url.strip() == "":
        ctx.error(
            "HTTP_MISSING_URL",
            f'HTTP Request node "{ctx.name}" is missing URL parameter',
            fix="Add URL parameter with placeholder",
        )
    elif not url.startswith(("http://", "https://")) and "{{" not in url:
        ctx.warning(
            "HTTP_INVALID_URL",
            f"HTTP Request node \"{ctx.name}\" has URL that doesn't start with http:// or https://",
            details={"url": url},
        )


def _check_webhook(ctx: _Ctx) -> None:
    path = ctx.params.get("path")
    if not isinstance(path, str) or path.strip() == "":
        ctx.error(
            "WEBHOOK_MISSING_PATH",
            f'Webhook node "{ctx.name}" is missing path parameter',
            fix="Add path parameter",
        )


def _mail_check(recipient_field: str, only_when_sending: bool = True) -> Callable[[_Ctx], None]:
    def check(ctx: _Ctx) -> None:
        if only_when_sending and ctx.params.get("operation") != "send":
            return
        if is_blank(ctx.params.get(recipient_field)):
            ctx.error(
                "EMAIL_MISSING_RECIPIENT",
                f'Email node "{ctx.name}" is missing recipient ({recipient_field}) parameter',
                fix="Add recipient email address",
            )
        if is_blank(ctx.params.get("subject")):
            ctx.warning(
                "EMAIL_MISSING_SUBJECT",
                f'Email node "{ctx.name}" is missing subject parameter',
                fix="Add email subject",
            )
    return check


def _identifier_check(field: str, code: str, label: str) -> Callable[[_Ctx], None]:
    def check(ctx: _Ctx) -> None:
        if is_blank(ctx.params.get(field)):
            ctx.error(code, f'{label} node "{ctx.name}" is missing {field}', fix=f"Add {label} {field}")
    return check


def _check_slack(ctx: _Ctx) -> None:
    if ctx.params.get("resource") != "message" or ctx.params.get("operation") != "post":
        return
    if is_blank(ctx.params.get("channel")):
        ctx.error("SLACK_MISSING_CHANNEL", f'Slack node "{ctx.name}" is missing channel parameter', fix="Add Slack channel")
    if is_blank(ctx.params.get("text")):
        ctx.warning("SLACK_MISSING_TEXT", f'Slack node "{ctx.name}" is missing message text', fix="Add message text")


def _check_telegram(ctx: _Ctx) -> None:
    if ctx.params.get("operation", "sendMessage") != "sendMessage":
        return
    if is_blank(ctx.params.get("chatId")):
        ctx.error("TELEGRAM_MISSING_CHAT_ID", f'Telegram node "{ctx.name}" is missing chatId parameter', fix="Add chat ID")
    if is_blank(ctx.params.get("text")):
        ctx.warning("TELEGRAM_MISSING_TEXT", f'Telegram node "{ctx.name}" is missing message text', fix="Add message text")


def _check_if(ctx: _Ctx) -> None:
    conditions = ctx.params.get("conditions")
    if not conditions:
        ctx.error(
            "IF_MISSING_CONDITIONS",
            f'IF node "{ctx.name}" has no conditions configured',
            fix="Add at least one condition",
        )


def _check_code(ctx: _Ctx) -> None:
    code = ctx.params.get("jsCode")
    if is_blank(code) or code == DEFAULT_JS_CODE:
        ctx.warning("CODE_NODE_EMPTY", f'Code node "{ctx.name}" has no custom code or only default template')


NODE_CHECKS: Dict[str, Callable[[_Ctx], None]] = {
    "n8n-nodes-base.httpRequest": _check_http_request,
    "n8n-nodes-base.webhook": _check_webhook,
    "n8n-nodes-base.gmail": _mail_check("to"),
    "n8n-nodes-base.sendGrid": _mail_check("to"),
    "n8n-nodes-base.emailSend": _mail_check("toEmail", only_when_sending=False),
    "n8n-nodes-base.googleSheets": _identifier_check("documentId", "SHEETS_MISSING_DOCUMENT_ID", "Google Sheets"),
    "n8n-nodes-base.airtable": _identifier_check("baseId", "AIRTABLE_MISSING_BASE_ID", "Airtable"),
    "n8n-nodes-base.slack": _check_slack,
    "n8n-nodes-base.telegram": _check_telegram,
    "n8n-nodes-base.if": _check_if,
    "n8n-nodes-base.code": _check_code,
}
