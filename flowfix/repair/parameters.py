# flowfix/repair/parameters.py

from __future__ import annotations

import copy
import json
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from flowfix.executable.parameters import is_blank
from flowfix.registry.nodes import NodeDefinition, ParameterSpec, get_node_by_type
from flowfix.utils.graph import node_key
from flowfix.utils.ids import PlaceholderGenerator
from flowfix.utils.logger import get_logger

log = get_logger("repair.parameters")

DEFAULT_WORKFLOW_NAME = "My workflow"
DEFAULT_POSITION = [250, 300]
DEFAULT_TYPE_VERSION = 1

URL_PLACEHOLDER = '{{$json["url"] || "https://api.example.com/endpoint"}}'

CODE_TEMPLATE = """// Process items
// Access input data via 'items' array
// Return modified items

for (const item of items) {
  // Your code here
  // Example: item.json.newField = item.json.existingField;
}

return items;"""


@dataclass
class ParameterFixReport:
    fixed: bool = False
    changes: List[str] = field(default_factory=list)
    parameters_filled: int = 0
    # workflow settings, ids, names, positions and parameter objects
    properties_normalized: int = 0

    def note(self, message: Optional[str], counted: bool = False) -> None:
        if counted:
            self.parameters_filled += 1
        else:
            self.properties_normalized += 1
        self.fixed = True
        if message:
            self.changes.append(message)
            log.debug(message)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _absent(value: Any) -> bool:
    """None, a blank string or an empty container."""
    if is_blank(value):
        return True
    return isinstance(value, (dict, list)) and not value


class _Filler:
    """One node being filled, plus the report the changes go to."""

    def __init__(self, node: Dict[str, Any], report: ParameterFixReport, generator: PlaceholderGenerator):
        self.node = node
        self.report = report
        self.generator = generator
        params = node.get("parameters")
        if not isinstance(params, dict):
            params = {}
            node["parameters"] = params
            self.change(f'Added parameters object to node "{self.label}"')
        self.params = params

    @property
    def label(self) -> str:
        return str(self.node.get("name") or node_key(self.node) or "<unnamed>")

    def change(self, message: Optional[str], counted: bool = False) -> None:
        self.report.note(message, counted)

    def set(self, key: str, value: Any, message: Optional[str] = None) -> bool:
        """Set ``parameters[key]`` if it is absent. Returns True when it wrote."""
        if not _absent(self.params.get(key)):
            return False
        self.params[key] = copy.deepcopy(value)
        self.change(message or f'Set "{key}" parameter in node "{self.label}" to {_show(value)}', counted=True)
        return True


def _show(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def fill_missing_parameters(
    workflow: Dict[str, Any],
    generator: Optional[PlaceholderGenerator] = None,
) -> ParameterFixReport:
    """
    Fill what a node needs to be runnable, in place:
      - workflow-level name/active/settings/id
      - node-type corrections (NODE_FILLERS)
      - every required registry parameter still missing
      - typeVersion / name / position / id on every node
    Only absent values are written, so a second pass changes nothing.
    """
    generator = generator or PlaceholderGenerator()
    report = ParameterFixReport()

    _fill_workflow_defaults(workflow, report, generator)

    nodes = workflow.get("nodes")
    if not isinstance(nodes, list):
        return report

    _regenerate_duplicate_ids(nodes, report, generator)

    for node in nodes:
        if not isinstance(node, dict):
            continue
        filler = _Filler(node, report, generator)
        definition = get_node_by_type(node.get("type"))
        if definition is not None:
            specific = NODE_FILLERS.get(definition.type)
            if specific is not None:
                specific(filler)
            _fill_required(filler, definition)
        _ensure_basic_properties(filler, definition, nodes)

    log.debug("filled %d parameter(s) across %d node(s)", report.parameters_filled, len(nodes))
    return report


def _fill_workflow_defaults(workflow: Dict[str, Any], report: ParameterFixReport,
                            generator: PlaceholderGenerator) -> None:
    name = workflow.get("name")
    if not isinstance(name, str) or not name.strip():
        workflow["name"] = DEFAULT_WORKFLOW_NAME
        report.note(f'Set workflow name to "{DEFAULT_WORKFLOW_NAME}"')
    if not isinstance(workflow.get("active"), bool):
        workflow["active"] = False
        report.note("Set workflow active to false")
    if not isinstance(workflow.get("settings"), dict):
        workflow["settings"] = {}
        report.note("Added empty settings object")
    wid = workflow.get("id")
    if not wid or isinstance(wid, (bool, dict, list)):
        workflow["id"] = generator.workflow_id()
        report.note(f'Generated workflow ID "{workflow["id"]}"')


def _regenerate_duplicate_ids(nodes: List[Any], report: ParameterFixReport,
                              generator: PlaceholderGenerator) -> None:
    # connections keep pointing at the first holder of an id
    seen: Set[str] = set()
    taken = {node_key(n) for n in nodes} - {None}
    for node in nodes:
        nid = node_key(node)
        if nid is None:
            continue
        if nid not in seen:
            seen.add(nid)
            continue
        new_id = _fresh_id(generator, taken)
        node["id"] = new_id
        seen.add(new_id)
        report.note(f'Replaced duplicate node ID "{nid}" with "{new_id}" in node "{node.get("name") or new_id}"')


def _fresh_id(generator: PlaceholderGenerator, taken: Set[str]) -> str:
    while True:
        candidate = generator.node_id()
        if candidate not in taken:
            taken.add(candidate)
            return candidate


# ---------------------------------------------------------------------------
# Generic registry fill
# ---------------------------------------------------------------------------

def _fill_required(filler: _Filler, definition: NodeDefinition) -> None:
    for spec in definition.required_parameters:
        value = filler.params.get(spec.name)
        if value is None or value == "":
            filler.params[spec.name] = default_parameter_value(spec)
            filler.change(
                f'Set "{spec.name}" parameter in node "{filler.label}" to {_show(filler.params[spec.name])}',
                counted=True,
            )


def default_parameter_value(spec: ParameterSpec) -> Any:
    """Declared default when it says something, else a value synthesized from the type."""
    if spec.default is not None and spec.default != "":
        return copy.deepcopy(spec.default)

    if spec.type == "string":
        return spec.placeholder or string_placeholder(spec)
    if spec.type == "number":
        return 0
    if spec.type == "boolean":
        return False
    if spec.type == "options":
        values = spec.option_values()
        return values[0] if values else ""
    if spec.type in ("json", "collection", "fixedCollection"):
        return {}
    return ""


def string_placeholder(spec: ParameterSpec) -> str:
    """Template for a string parameter, picked from keywords in its name."""
    name = spec.name.lower()

    if "url" in name or "endpoint" in name:
        return URL_PLACEHOLDER
    if "email" in name or name in ("to", "from"):
        return '{{$json["email"] || "user@example.com"}}'
    if "id" in name:
        return '{{$json["id"] || "YOUR_ID_HERE"}}'
    if "channel" in name:
        return '{{$json["channel"] || "#general"}}'
    if any(k in name for k in ("message", "text", "content", "body")):
        return '{{$json["message"] || "Your message here"}}'
    if "subject" in name:
        return '{{$json["subject"] || "Subject line"}}'
    if "path" in name:
        return spec.placeholder or "webhook-path"
    if "apikey" in name or "api_key" in name:
        return "{{$credentials.apiKey}}"
    if "token" in name:
        return "{{$credentials.token}}"
    if "sheet" in name:
        return "Sheet1"
    if "table" in name:
        return "Table 1"
    return spec.placeholder or f'{{{{$json["{name}"] || "YOUR_{name.upper()}_HERE"}}}}'


# ---------------------------------------------------------------------------
# Node normalisation
# ---------------------------------------------------------------------------

def _valid_position(pos: Any) -> bool:
    return (
        isinstance(pos, list)
        and len(pos) == 2
        and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in pos)
    )


def _ensure_basic_properties(filler: _Filler, definition: Optional[NodeDefinition], nodes: List[Any]) -> None:
    node = filler.node

    tv = node.get("typeVersion")
    if not isinstance(tv, (int, float)) or isinstance(tv, bool):
        node["typeVersion"] = DEFAULT_TYPE_VERSION
        filler.change(None, counted=True)

    name = node.get("name")
    if not isinstance(name, str) or not name.strip():
        node["name"] = definition.display_name if definition else "Node"
        filler.change(f'Generated name "{node["name"]}" for unnamed node')

    if not _valid_position(node.get("position")):
        node["position"] = list(DEFAULT_POSITION)
        filler.change(None)

    if node_key(node) is None:
        taken = {node_key(n) for n in nodes} - {None}
        node["id"] = _fresh_id(filler.generator, taken)
        filler.change(f'Generated ID "{node["id"]}" for node "{node["name"]}"')


# ---------------------------------------------------------------------------
# Well-known node types
# ---------------------------------------------------------------------------

def _fill_http_request(f: _Filler) -> None:
    f.set("url", URL_PLACEHOLDER, f'Set URL placeholder in HTTP Request node "{f.label}"')
    f.set("method", "GET", f'Set HTTP method to GET in node "{f.label}"')
    f.set("authentication", "none")


def _fill_webhook(f: _Filler) -> None:
    if _absent(f.params.get("path")):
        f.set("path", f.generator.webhook_path(), f'Set webhook path in node "{f.label}"')
    f.set("httpMethod", "POST")
    f.set("responseMode", "onReceived")


def _mail_filler(recipient: str, body: str, default_operation: Optional[str] = "send") -> Callable[[_Filler], None]:
    def fill(f: _Filler) -> None:
        if default_operation is not None:
            f.set("operation", default_operation)
            if f.params.get("operation") != "send":
                return
        f.set(recipient, '{{$json["email"] || "recipient@example.com"}}',
              f'Set recipient placeholder in email node "{f.label}"')
        f.set("subject", '{{$json["subject"] || "Email Subject"}}',
              f'Set subject placeholder in email node "{f.label}"')
        f.set(body, '{{$json["message"] || "Email body content"}}',
              f'Set message placeholder in email node "{f.label}"')
    return fill


def _fill_slack(f: _Filler) -> None:
    f.set("resource", "message")
    f.set("operation", "post")
    if f.params.get("resource") == "message" and f.params.get("operation") == "post":
        f.set("channel", '{{$json["channel"] || "#general"}}', f'Set channel placeholder in Slack node "{f.label}"')
        f.set("text", '{{$json["message"] || "Slack message"}}', f'Set message placeholder in Slack node "{f.label}"')


def _fill_telegram(f: _Filler) -> None:
    f.set("operation", "sendMessage")
    if f.params.get("operation") == "sendMessage":
        f.set("chatId", '{{$json["chatId"] || "123456789"}}', f'Set chat ID placeholder in Telegram node "{f.label}"')
        f.set("text", '{{$json["message"] || "Telegram message"}}',
              f'Set message placeholder in Telegram node "{f.label}"')


def _fill_google_sheets(f: _Filler) -> None:
    f.set("resource", "spreadsheet")
    f.set("operation", "append")
    f.set("documentId", '{{$json["sheetId"] || "YOUR_GOOGLE_SHEET_ID"}}',
          f'Set document ID placeholder in Google Sheets node "{f.label}"')
    f.set("sheetName", "Sheet1", f'Set sheet name to "Sheet1" in node "{f.label}"')


def _fill_airtable(f: _Filler) -> None:
    f.set("operation", "list")
    f.set("baseId", '{{$json["baseId"] || "appXXXXXXXXXXXXXX"}}',
          f'Set base ID placeholder in Airtable node "{f.label}"')
    f.set("table", "Table 1", f'Set table name in Airtable node "{f.label}"')


def _resource_operation(resource: str, operation: str = "get") -> Callable[[_Filler], None]:
    def fill(f: _Filler) -> None:
        f.set("resource", resource)
        f.set("operation", operation)
    return fill


def _fill_shopify_trigger(f: _Filler) -> None:
    f.set("topic", "orders/create", f'Set Shopify trigger topic to "orders/create" in node "{f.label}"')


def _fill_if(f: _Filler) -> None:
    f.set(
        "conditions",
        {
            "boolean": [],
            "number": [
                {"value1": '={{$json["value"]}}', "operation": "equal", "value2": "expected_value"},
            ],
            "string": [],
        },
        f'Added default condition to IF node "{f.label}"',
    )


def _fill_set(f: _Filler) -> None:
    f.set("mode", "manual")
    f.set(
        "values",
        {"string": [{"name": "newField", "value": '={{$json["originalField"]}}'}]},
        f'Added default value mapping to Set node "{f.label}"',
    )


def _fill_code(f: _Filler) -> None:
    f.set("mode", "runOnceForAllItems")
    f.set("jsCode", CODE_TEMPLATE, f'Added code template to Code node "{f.label}"')


NODE_FILLERS: Dict[str, Callable[[_Filler], None]] = {
    "n8n-nodes-base.httpRequest": _fill_http_request,
    "n8n-nodes-base.webhook": _fill_webhook,
    "n8n-nodes-base.gmail": _mail_filler("to", "message"),
    "n8n-nodes-base.sendGrid": _mail_filler("to", "content"),
    "n8n-nodes-base.emailSend": _mail_filler("toEmail", "text", default_operation=None),
    "n8n-nodes-base.slack": _fill_slack,
    "n8n-nodes-base.telegram": _fill_telegram,
    "n8n-nodes-base.googleSheets": _fill_google_sheets,
    "n8n-nodes-base.airtable": _fill_airtable,
    "n8n-nodes-base.hubspot": _resource_operation("contact"),
    "n8n-nodes-base.salesforce": _resource_operation("lead"),
    "n8n-nodes-base.shopify": _resource_operation("order"),
    "n8n-nodes-base.shopifyTrigger": _fill_shopify_trigger,
    "n8n-nodes-base.if": _fill_if,
    "n8n-nodes-base.set": _fill_set,
    "n8n-nodes-base.code": _fill_code,
}
