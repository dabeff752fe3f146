# flowfix/registry/nodes.py
"""
Static catalogue of known n8n node types.

Each entry declares the node's category, its parameter schema and its
input/output slots. The registry is built once at import time and is
read-only afterwards, so lookups need no locking.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

CATEGORIES = ("trigger", "action", "integration", "data", "logic", "utility")


@dataclass(frozen=True)
class ParameterOption:
    name: str
    value: str


@dataclass(frozen=True)
class ParameterSpec:
    """Declared parameter of a node type."""
    name: str
    type: str  # string | number | boolean | options | json | collection | fixedCollection
    required: bool
    description: str = ""
    default: Any = None
    options: Tuple[ParameterOption, ...] = ()
    placeholder: Optional[str] = None

    def option_values(self) -> List[str]:
        return [o.value for o in self.options]


@dataclass(frozen=True)
class NodeDefinition:
    type: str
    display_name: str
    category: str
    description: str
    parameters: Tuple[ParameterSpec, ...] = ()
    outputs: Tuple[str, ...] = ("main",)
    inputs: Tuple[str, ...] = ("main",)
    keywords: Tuple[str, ...] = ()
    examples: Tuple[str, ...] = ()

    @property
    def required_parameters(self) -> List[ParameterSpec]:
        return [p for p in self.parameters if p.required]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "displayName": self.display_name,
            "category": self.category,
            "description": self.description,
            "parameters": [
                {
                    "name": p.name,
                    "type": p.type,
                    "required": p.required,
                    "default": p.default,
                    "options": p.option_values(),
                }
                for p in self.parameters
            ],
            "outputs": list(self.outputs),
            "inputs": list(self.inputs),
            "keywords": list(self.keywords),
        }


def _opts(*pairs: Tuple[str, str]) -> Tuple[ParameterOption, ...]:
    return tuple(ParameterOption(name, value) for name, value in pairs)


def _same(*values: str) -> Tuple[ParameterOption, ...]:
    """Options whose display name equals their value (e.g. HTTP verbs)."""
    return tuple(ParameterOption(v, v) for v in values)


_CRUD_OPERATIONS = _opts(
    ("Get", "get"),
    ("Get All", "getAll"),
    ("Create", "create"),
    ("Update", "update"),
    ("Delete", "delete"),
)


def _operation(default: str = "get", options: Tuple[ParameterOption, ...] = _CRUD_OPERATIONS) -> ParameterSpec:
    return ParameterSpec("operation", "options", True, "Operation to perform", default=default, options=options)


def _resource(default: str, options: Tuple[ParameterOption, ...]) -> ParameterSpec:
    return ParameterSpec("resource", "options", True, "Resource to operate on", default=default, options=options)


# ---------------------------------------------------------------------------
# Triggers
# ---------------------------------------------------------------------------

TRIGGER_NODES: Tuple[NodeDefinition, ...] = (
    NodeDefinition(
        type="n8n-nodes-base.start",
        display_name="Start",
        category="trigger",
        description="Manual workflow start trigger",
        inputs=(),
        keywords=("manual", "start", "begin"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.manualTrigger",
        display_name="Manual Trigger",
        category="trigger",
        description="Runs the workflow when started by hand",
        inputs=(),
        keywords=("manual", "click", "test", "start"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.webhook",
        display_name="Webhook",
        category="trigger",
        description="Receives HTTP requests and triggers workflow",
        parameters=(
            ParameterSpec("httpMethod", "options", True, "HTTP method to listen for",
                          default="GET", options=_same("GET", "POST", "PUT", "DELETE")),
            ParameterSpec("path", "string", True, "Webhook path", default="", placeholder="my-webhook"),
            ParameterSpec("responseMode", "options", False, "When to respond to webhook",
                          default="onReceived",
                          options=_opts(("On Received", "onReceived"), ("Last Node", "lastNode"))),
        ),
        inputs=(),
        keywords=("webhook", "http", "api", "endpoint", "receive"),
        examples=("Receive webhook from external service", "Listen for POST requests"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.cron",
        display_name="Cron",
        category="trigger",
        description="Triggers workflow on a schedule",
        parameters=(
            ParameterSpec("triggerTimes", "fixedCollection", True, "Schedule configuration", default={}),
            ParameterSpec("mode", "options", True, "Schedule mode", default="everyMinute",
                          options=_opts(
                              ("Every Minute", "everyMinute"),
                              ("Every Hour", "everyHour"),
                              ("Every Day", "everyDay"),
                              ("Every Week", "everyWeek"),
                              ("Every Month", "everyMonth"),
                              ("Custom", "custom"),
                          )),
        ),
        inputs=(),
        keywords=("schedule", "cron", "timer", "interval", "recurring"),
        examples=("Run every Monday at 9 AM", "Execute daily at midnight", "Trigger every hour"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.scheduleTrigger",
        display_name="Schedule Trigger",
        category="trigger",
        description="Triggers workflow on a schedule (user-friendly)",
        parameters=(
            ParameterSpec("rule", "fixedCollection", True, "Schedule rule configuration", default={}),
        ),
        inputs=(),
        keywords=("schedule", "time", "recurring", "periodic"),
    ),
)

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

HTTP_NODES: Tuple[NodeDefinition, ...] = (
    NodeDefinition(
        type="n8n-nodes-base.httpRequest",
        display_name="HTTP Request",
        category="action",
        description="Makes HTTP requests to external APIs",
        parameters=(
            ParameterSpec("url", "string", True, "The URL to make the request to",
                          default="", placeholder="https://api.example.com/endpoint"),
            ParameterSpec("method", "options", True, "The HTTP method to use", default="GET",
                          options=_same("GET", "POST", "PUT", "DELETE", "PATCH")),
            ParameterSpec("authentication", "options", False, "Authentication method", default="none",
                          options=_opts(
                              ("None", "none"),
                              ("Basic Auth", "basicAuth"),
                              ("Header Auth", "headerAuth"),
                              ("OAuth2", "oAuth2"),
                          )),
            ParameterSpec("sendHeaders", "boolean", False, "Send custom headers", default=False),
            ParameterSpec("sendBody", "boolean", False, "Send request body", default=False),
        ),
        keywords=("http", "api", "rest", "request", "fetch", "call"),
        examples=("Call external API", "Fetch data from REST endpoint", "POST data to webhook"),
    ),
)

# ---------------------------------------------------------------------------
# Logic & control flow
# ---------------------------------------------------------------------------

LOGIC_NODES: Tuple[NodeDefinition, ...] = (
    NodeDefinition(
        type="n8n-nodes-base.if",
        display_name="IF",
        category="logic",
        description="Conditional routing based on comparison",
        parameters=(
            ParameterSpec("conditions", "fixedCollection", True, "Conditions to check", default={}),
            ParameterSpec("combineOperation", "options", False, "How to combine multiple conditions",
                          default="all", options=_opts(("ALL (AND)", "all"), ("ANY (OR)", "any"))),
        ),
        # index 0 carries the true branch, index 1 the false branch
        outputs=("main", "main"),
        keywords=("if", "condition", "conditional", "branch", "split"),
        examples=("Route based on status field", "Check if value exists", "Conditional logic"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.switch",
        display_name="Switch",
        category="logic",
        description="Routes items to different branches based on rules",
        parameters=(
            ParameterSpec("mode", "options", True, "Switch mode", default="rules",
                          options=_opts(("Rules", "rules"), ("Expression", "expression"))),
            ParameterSpec("rules", "fixedCollection", False, "Routing rules", default={}),
        ),
        outputs=("main", "main", "main", "main"),
        keywords=("switch", "route", "multiple", "branch", "case"),
        examples=("Route by status value", "Multiple conditional branches"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.merge",
        display_name="Merge",
        category="data",
        description="Merges data from multiple branches",
        parameters=(
            ParameterSpec("mode", "options", True, "How to merge data", default="append",
                          options=_opts(
                              ("Append", "append"),
                              ("Keep Key Matches", "keepKeyMatches"),
                              ("Merge By Index", "mergeByIndex"),
                              ("Merge By Key", "mergeByKey"),
                          )),
        ),
        inputs=("main", "main"),
        keywords=("merge", "combine", "join", "union"),
        examples=("Combine results from multiple sources", "Join two data streams"),
    ),
)

# ---------------------------------------------------------------------------
# Data manipulation
# ---------------------------------------------------------------------------

DEFAULT_JS_CODE = "// Add your code here\nreturn items;"

DATA_NODES: Tuple[NodeDefinition, ...] = (
    NodeDefinition(
        type="n8n-nodes-base.set",
        display_name="Set",
        category="data",
        description="Sets values on items",
        parameters=(
            ParameterSpec("mode", "options", True, "How to set values", default="manual",
                          options=_opts(("Manual", "manual"), ("Expression", "expression"))),
            ParameterSpec("values", "fixedCollection", False, "Values to set", default={}),
        ),
        keywords=("set", "assign", "modify", "update", "change"),
        examples=("Add new fields to items", "Transform data structure", "Set variables"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.code",
        display_name="Code",
        category="data",
        description="Run custom JavaScript code",
        parameters=(
            ParameterSpec("mode", "options", True, "Execution mode", default="runOnceForAllItems",
                          options=_opts(
                              ("Run Once for All Items", "runOnceForAllItems"),
                              ("Run Once for Each Item", "runOnceForEachItem"),
                          )),
            ParameterSpec("jsCode", "string", True, "JavaScript code to execute", default=DEFAULT_JS_CODE),
        ),
        keywords=("code", "javascript", "function", "script", "custom"),
        examples=("Custom data transformation", "Complex calculations", "Custom logic"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.filter",
        display_name="Filter",
        category="data",
        description="Filters items based on conditions",
        parameters=(
            ParameterSpec("conditions", "fixedCollection", True, "Filter conditions", default={}),
        ),
        keywords=("filter", "where", "remove", "exclude", "include"),
        examples=("Filter by status", "Remove empty items", "Keep only matching records"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.itemLists",
        display_name="Item Lists",
        category="data",
        description="Manipulate lists of items (split, aggregate, sort)",
        parameters=(
            ParameterSpec("operation", "options", True, "Operation to perform", default="splitOutItems",
                          options=_opts(
                              ("Split Out Items", "splitOutItems"),
                              ("Aggregate Items", "aggregateItems"),
                              ("Sort Items", "sortItems"),
                              ("Limit Items", "limit"),
                              ("Remove Duplicates", "removeDuplicates"),
                          )),
        ),
        keywords=("list", "array", "split", "aggregate", "sort", "limit"),
        examples=("Split array into items", "Aggregate results", "Sort by field"),
    ),
)

# ---------------------------------------------------------------------------
# Integrations: e-commerce
# ---------------------------------------------------------------------------

ECOMMERCE_NODES: Tuple[NodeDefinition, ...] = (
    NodeDefinition(
        type="n8n-nodes-base.shopify",
        display_name="Shopify",
        category="integration",
        description="Work with Shopify store data",
        parameters=(
            _resource("order", _opts(
                ("Order", "order"), ("Product", "product"), ("Customer", "customer"), ("Inventory", "inventory"),
            )),
            _operation(),
        ),
        keywords=("shopify", "ecommerce", "store", "order", "product", "customer"),
        examples=("Get order details", "Create new product", "Update inventory"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.shopifyTrigger",
        display_name="Shopify Trigger",
        category="trigger",
        description="Triggers on Shopify events (orders, products, etc.)",
        parameters=(
            ParameterSpec("topic", "options", True, "Event to listen for", default="orders/create",
                          options=_opts(
                              ("Order Created", "orders/create"),
                              ("Order Updated", "orders/updated"),
                              ("Product Created", "products/create"),
                              ("Customer Created", "customers/create"),
                          )),
        ),
        inputs=(),
        keywords=("shopify", "trigger", "webhook", "order", "product"),
        examples=("When new order is created", "When product is updated"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.wooCommerce",
        display_name="WooCommerce",
        category="integration",
        description="Work with WooCommerce store data",
        parameters=(
            _resource("order", _opts(("Order", "order"), ("Product", "product"), ("Customer", "customer"))),
            _operation(options=_opts(("Get", "get"), ("Get All", "getAll"), ("Create", "create"), ("Update", "update"))),
        ),
        keywords=("woocommerce", "wordpress", "ecommerce", "order", "product"),
    ),
)

# ---------------------------------------------------------------------------
# Integrations: CRM
# ---------------------------------------------------------------------------

CRM_NODES: Tuple[NodeDefinition, ...] = (
    NodeDefinition(
        type="n8n-nodes-base.hubspot",
        display_name="HubSpot",
        category="integration",
        description="Work with HubSpot CRM",
        parameters=(
            _resource("contact", _opts(
                ("Contact", "contact"), ("Company", "company"), ("Deal", "deal"), ("Ticket", "ticket"),
            )),
            _operation(),
        ),
        keywords=("hubspot", "crm", "contact", "deal", "company", "customer"),
        examples=("Get contact details", "Create new deal", "Update company information"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.salesforce",
        display_name="Salesforce",
        category="integration",
        description="Work with Salesforce CRM",
        parameters=(
            _resource("lead", _opts(
                ("Lead", "lead"), ("Contact", "contact"), ("Account", "account"), ("Opportunity", "opportunity"),
            )),
            _operation(),
        ),
        keywords=("salesforce", "crm", "lead", "opportunity", "account"),
        examples=("Create new lead", "Get opportunity details", "Update account"),
    ),
)

# ---------------------------------------------------------------------------
# Integrations: communication
# ---------------------------------------------------------------------------

COMMUNICATION_NODES: Tuple[NodeDefinition, ...] = (
    NodeDefinition(
        type="n8n-nodes-base.slack",
        display_name="Slack",
        category="integration",
        description="Send messages and interact with Slack",
        parameters=(
            _resource("message", _opts(("Message", "message"), ("Channel", "channel"), ("User", "user"))),
            _operation("post", _opts(("Post", "post"), ("Update", "update"), ("Get", "get"))),
            ParameterSpec("channel", "string", False, "Channel to send message to", default="", placeholder="#general"),
            ParameterSpec("text", "string", False, "Message text", default="", placeholder="Hello from n8n!"),
        ),
        keywords=("slack", "message", "chat", "notification", "communicate"),
        examples=("Send message to channel", "Post notification", "Update message"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.telegram",
        display_name="Telegram",
        category="integration",
        description="Send messages through a Telegram bot",
        parameters=(
            _resource("message", _opts(("Message", "message"), ("Chat", "chat"))),
            _operation("sendMessage", _opts(
                ("Send Message", "sendMessage"), ("Edit Message Text", "editMessageText"), ("Delete Message", "deleteMessage"),
            )),
            ParameterSpec("chatId", "string", False, "Chat to send the message to", default="", placeholder="123456789"),
            ParameterSpec("text", "string", False, "Message text", default=""),
        ),
        keywords=("telegram", "tg", "bot", "message", "chat", "notification"),
        examples=("Send alert to a Telegram chat",),
    ),
    NodeDefinition(
        type="n8n-nodes-base.gmail",
        display_name="Gmail",
        category="integration",
        description="Send and manage Gmail emails",
        parameters=(
            _resource("message", _opts(("Message", "message"), ("Draft", "draft"), ("Label", "label"))),
            _operation("send", _opts(("Send", "send"), ("Get", "get"), ("Get All", "getAll"), ("Delete", "delete"))),
            ParameterSpec("to", "string", False, "Recipient email address", default="", placeholder="user@example.com"),
            ParameterSpec("subject", "string", False, "Email subject", default="", placeholder="Subject line"),
            ParameterSpec("message", "string", False, "Email body", default="", placeholder="Email content"),
        ),
        keywords=("gmail", "email", "mail", "send", "message"),
        examples=("Send email", "Get emails from inbox", "Create draft"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.sendGrid",
        display_name="SendGrid",
        category="integration",
        description="Send emails via SendGrid",
        parameters=(
            _resource("mail", _opts(("Mail", "mail"), ("Contact", "contact"), ("List", "list"))),
            _operation("send", _opts(("Send", "send"))),
            ParameterSpec("to", "string", True, "Recipient email", default="", placeholder="recipient@example.com"),
            ParameterSpec("subject", "string", True, "Email subject", default=""),
            ParameterSpec("content", "string", True, "Email content", default=""),
        ),
        keywords=("sendgrid", "email", "send", "mail"),
        examples=("Send transactional email", "Send welcome email"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.emailSend",
        display_name="Send Email",
        category="integration",
        description="Send an email over SMTP",
        parameters=(
            ParameterSpec("fromEmail", "string", True, "Sender address", default="", placeholder="n8n@example.com"),
            ParameterSpec("toEmail", "string", True, "Recipient addresses, comma separated", default=""),
            ParameterSpec("subject", "string", False, "Email subject", default=""),
            ParameterSpec("text", "string", False, "Plain text body", default=""),
        ),
        keywords=("email", "smtp", "mail", "send"),
        examples=("Send a report by email",),
    ),
)

# ---------------------------------------------------------------------------
# Integrations: productivity
# ---------------------------------------------------------------------------

PRODUCTIVITY_NODES: Tuple[NodeDefinition, ...] = (
    NodeDefinition(
        type="n8n-nodes-base.googleSheets",
        display_name="Google Sheets",
        category="integration",
        description="Read from and write to Google Sheets",
        parameters=(
            _resource("spreadsheet", _opts(("Spreadsheet", "spreadsheet"), ("Sheet", "sheet"))),
            _operation("append", _opts(("Append", "append"), ("Read", "read"), ("Update", "update"), ("Delete", "delete"))),
            ParameterSpec("documentId", "string", False, "Google Sheets document ID", default="", placeholder="1234567890abcdef"),
            ParameterSpec("sheetName", "string", False, "Sheet name", default="", placeholder="Sheet1"),
        ),
        keywords=("google", "sheets", "spreadsheet", "excel", "data", "table"),
        examples=("Append row to sheet", "Read all rows", "Update specific row"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.airtable",
        display_name="Airtable",
        category="integration",
        description="Read from and write to Airtable bases",
        parameters=(
            _operation("list", _opts(
                ("List", "list"), ("Read", "read"), ("Create", "create"), ("Update", "update"), ("Delete", "delete"),
            )),
            ParameterSpec("baseId", "string", False, "Airtable base ID", default="", placeholder="appXXXXXXXXXXXXXX"),
            ParameterSpec("table", "string", False, "Table name", default="", placeholder="Table 1"),
        ),
        keywords=("airtable", "database", "table", "record", "base"),
        examples=("List all records", "Create new record", "Update record"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.notion",
        display_name="Notion",
        category="integration",
        description="Work with Notion databases and pages",
        parameters=(
            _resource("page", _opts(("Page", "page"), ("Database", "database"), ("Block", "block"))),
            _operation(options=_opts(("Get", "get"), ("Get All", "getAll"), ("Create", "create"), ("Update", "update"))),
        ),
        keywords=("notion", "database", "page", "notes", "wiki"),
        examples=("Create page", "Query database", "Update page properties"),
    ),
)

# ---------------------------------------------------------------------------
# Utility
# ---------------------------------------------------------------------------

UTILITY_NODES: Tuple[NodeDefinition, ...] = (
    NodeDefinition(
        type="n8n-nodes-base.noOp",
        display_name="No Operation",
        category="utility",
        description="Does nothing, useful as placeholder",
        keywords=("noop", "placeholder", "pass", "empty"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.wait",
        display_name="Wait",
        category="utility",
        description="Pauses workflow execution",
        parameters=(
            ParameterSpec("amount", "number", True, "Amount of time to wait", default=1),
            ParameterSpec("unit", "options", True, "Time unit", default="seconds",
                          options=_opts(("Seconds", "seconds"), ("Minutes", "minutes"), ("Hours", "hours"), ("Days", "days"))),
        ),
        keywords=("wait", "delay", "pause", "sleep"),
        examples=("Wait 5 seconds", "Delay 1 hour", "Pause 2 minutes"),
    ),
    NodeDefinition(
        type="n8n-nodes-base.stopAndError",
        display_name="Stop and Error",
        category="utility",
        description="Stops workflow execution with error",
        parameters=(
            ParameterSpec("message", "string", False, "Error message", default="Workflow stopped"),
        ),
        outputs=(),
        keywords=("stop", "error", "halt", "terminate"),
    ),
)

ALL_NODES: Tuple[NodeDefinition, ...] = (
    TRIGGER_NODES
    + HTTP_NODES
    + LOGIC_NODES
    + DATA_NODES
    + ECOMMERCE_NODES
    + CRM_NODES
    + COMMUNICATION_NODES
    + PRODUCTIVITY_NODES
    + UTILITY_NODES
)

NODE_REGISTRY: Mapping[str, NodeDefinition] = MappingProxyType({d.type: d for d in ALL_NODES})

# Nodes whose outputs are branch specific; never wire them automatically.
BRANCHING_TYPES = frozenset({"n8n-nodes-base.if", "n8n-nodes-base.switch"})


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------

def get_node_by_type(node_type: Any) -> Optional[NodeDefinition]:
    if not isinstance(node_type, str):
        return None
    return NODE_REGISTRY.get(node_type)


def get_nodes_by_category(category: str) -> List[NodeDefinition]:
    return [d for d in ALL_NODES if d.category == category]


def search_nodes(query: str) -> List[NodeDefinition]:
    """Case-insensitive substring search over name, description, keywords and type."""
    q = (query or "").lower()
    return [
        d for d in ALL_NODES
        if q in d.display_name.lower()
        or q in d.description.lower()
        or any(q in k.lower() for k in d.keywords)
        or q in d.type.lower()
    ]


def get_trigger_nodes() -> List[NodeDefinition]:
    return get_nodes_by_category("trigger")


def get_integration_nodes() -> List[NodeDefinition]:
    return get_nodes_by_category("integration")


def get_node_outputs(node_type: str) -> List[str]:
    d = get_node_by_type(node_type)
    return list(d.outputs) if d else ["main"]


def get_node_inputs(node_type: str) -> List[str]:
    d = get_node_by_type(node_type)
    return list(d.inputs) if d else ["main"]


def is_trigger_type(node_type: Any) -> bool:
    d = get_node_by_type(node_type)
    return d is not None and d.category == "trigger"
