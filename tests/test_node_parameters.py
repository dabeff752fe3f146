import pytest

from flowfix.executable.parameters import validate_nodes
from flowfix.registry.nodes import DEFAULT_JS_CODE


def _wf(*nodes):
    return {"nodes": list(nodes)}


def _node(ntype, params=None, nid="n1", **extra):
    node = {"id": nid, "name": "Node", "type": ntype, "typeVersion": 1, "position": [0, 0], "parameters": params}
    node.update(extra)
    return node


def _codes(result):
    return [i.code for i in result.issues]


def test_unknown_type_skips_further_checks():
    result = validate_nodes(_wf(_node("custom.unknownNode", {})))
    assert _codes(result) == ["UNKNOWN_NODE_TYPE"]
    assert not result.fixable


def test_missing_type_is_left_to_structure_validator():
    node = _node("", {})
    del node["type"]
    assert validate_nodes(_wf(node)).issues == []


def test_http_request_without_parameters():
    result = validate_nodes(_wf(_node("n8n-nodes-base.httpRequest", {})))
    codes = _codes(result)
    assert codes.count("EMPTY_REQUIRED_PARAMETERS") == 1
    assert codes.count("MISSING_REQUIRED_PARAMETER") == 2
    assert "HTTP_MISSING_URL" in codes
    assert result.fixable
    assert not result.is_valid


def test_non_dict_parameters_count_as_empty():
    result = validate_nodes(_wf(_node("n8n-nodes-base.httpRequest", "url=https://x")))
    assert "EMPTY_REQUIRED_PARAMETERS" in _codes(result)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://api.example.com", []),
        ("http://localhost:5678", []),
        ('{{$json["url"]}}', []),
        ("api.example.com/v1", ["HTTP_INVALID_URL"]),
    ],
)
def test_http_url_shape(url, expected):
    result = validate_nodes(_wf(_node("n8n-nodes-base.httpRequest", {"url": url, "method": "GET"})))
    assert _codes(result) == expected


def test_invalid_option_is_only_a_warning():
    result = validate_nodes(_wf(_node("n8n-nodes-base.httpRequest", {"url": "https://x.io", "method": "FETCH"})))
    assert _codes(result) == ["INVALID_OPTION_VALUE"]
    assert result.is_valid
    assert result.warnings[0].details["valid_options"] == ["GET", "POST", "PUT", "DELETE", "PATCH"]


def test_primitive_type_mismatch():
    result = validate_nodes(_wf(_node("n8n-nodes-base.wait", {"amount": "five", "unit": "seconds"})))
    assert _codes(result) == ["INVALID_PARAMETER_TYPE"]
    issue = result.errors[0]
    assert issue.details == {"parameter": "amount", "expected_type": "number", "actual_type": "str"}


def test_webhook_needs_path():
    result = validate_nodes(_wf(_node("n8n-nodes-base.webhook", {"httpMethod": "POST", "path": "  "})))
    assert "WEBHOOK_MISSING_PATH" in _codes(result)
    # credential exempt
    assert "MISSING_CREDENTIALS" not in _codes(result)


def test_gmail_send_checks_recipient_and_subject():
    params = {"resource": "message", "operation": "send"}
    creds = {"gmailOAuth2": {"id": "1", "name": "Gmail"}}
    result = validate_nodes(_wf(_node("n8n-nodes-base.gmail", params, credentials=creds)))
    errors = [i.code for i in result.errors]
    warnings = [i.code for i in result.warnings]
    assert errors == ["EMAIL_MISSING_RECIPIENT"]
    assert warnings == ["EMAIL_MISSING_SUBJECT"]


def test_gmail_other_operations_skip_mail_checks():
    params = {"resource": "message", "operation": "getAll"}
    result = validate_nodes(_wf(_node("n8n-nodes-base.gmail", params, credentials={"x": {}})))
    assert "EMAIL_MISSING_RECIPIENT" not in _codes(result)


def test_integration_without_credentials_warns():
    params = {"resource": "message", "operation": "post", "channel": "#general", "text": "hi"}
    result = validate_nodes(_wf(_node("n8n-nodes-base.slack", params)))
    assert _codes(result) == ["MISSING_CREDENTIALS"]
    assert result.is_valid


def test_slack_message_checks():
    params = {"resource": "message", "operation": "post"}
    result = validate_nodes(_wf(_node("n8n-nodes-base.slack", params, credentials={"slackApi": {}})))
    assert [i.code for i in result.errors] == ["SLACK_MISSING_CHANNEL"]
    assert [i.code for i in result.warnings] == ["SLACK_MISSING_TEXT"]


def test_telegram_defaults_to_send_message():
    result = validate_nodes(_wf(_node("n8n-nodes-base.telegram", {"resource": "message"},
                                      credentials={"telegramApi": {}})))
    codes = _codes(result)
    # operation is required, so it is reported missing as well
    assert "TELEGRAM_MISSING_CHAT_ID" in codes
    assert "TELEGRAM_MISSING_TEXT" in codes


@pytest.mark.parametrize(
    "ntype, params, code",
    [
        ("n8n-nodes-base.googleSheets", {"resource": "spreadsheet", "operation": "append"}, "SHEETS_MISSING_DOCUMENT_ID"),
        ("n8n-nodes-base.airtable", {"operation": "list"}, "AIRTABLE_MISSING_BASE_ID"),
    ],
)
def test_table_nodes_need_identifier(ntype, params, code):
    result = validate_nodes(_wf(_node(ntype, params, credentials={"api": {}})))
    assert _codes(result) == [code]


def test_if_requires_conditions():
    result = validate_nodes(_wf(_node("n8n-nodes-base.if", {"conditions": {}})))
    assert _codes(result) == ["IF_MISSING_CONDITIONS"]


@pytest.mark.parametrize("code", ["", DEFAULT_JS_CODE])
def test_code_node_default_template_warns(code):
    params = {"mode": "runOnceForAllItems", "jsCode": code}
    result = validate_nodes(_wf(_node("n8n-nodes-base.code", params)))
    assert "CODE_NODE_EMPTY" in [i.code for i in result.warnings]


def test_code_node_with_custom_code_is_clean():
    params = {"mode": "runOnceForAllItems", "jsCode": "return items.map(i => i);"}
    assert validate_nodes(_wf(_node("n8n-nodes-base.code", params))).issues == []


def test_issues_accumulate_over_all_nodes():
    result = validate_nodes(_wf(
        _node("custom.a", {}, nid="a"),
        _node("n8n-nodes-base.webhook", {"httpMethod": "GET"}, nid="b"),
        "not a node",
    ))
    assert [i.node_id for i in result.errors] == ["a", "b", "b"]
