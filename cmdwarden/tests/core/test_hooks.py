"""
test_hooks.py - Tests for hook validation
"""

import pytest

from cmdwarden.core import HOOK_EVENTS, HookValidator, validate_hook, validate_hooks_settings
from cmdwarden.core.hooks import (
    scan_security_issues,
    score_hook,
    validate_bash_command,
    validate_matcher,
    worst_score,
)
from cmdwarden.core.scanner import SecurityIssue


def codes(issues):
    return [issue.code for issue in issues]


def test_valid_command_hook():
    """Test a well-formed command hook scores green."""
    result = validate_hook({"type": "command", "command": "npm test", "timeout": 60})

    assert result.valid
    assert result.score == "green"
    assert result.issues == []


def test_empty_command():
    """Test an empty command is a red, invalid hook."""
    result = validate_hook({"type": "command", "command": ""})

    assert not result.valid
    assert result.score == "red"
    assert "missing-command" in codes(result.issues)
    assert "missing-timeout" in codes(result.issues)


def test_missing_type():
    """Test a hook without type reports only the missing type."""
    result = validate_hook({"command": "ls", "timeout": 10})

    assert codes(result.issues) == ["missing-type"]
    assert not result.valid


def test_invalid_type():
    """Test an unrecognized hook type."""
    result = validate_hook({"type": "script", "timeout": 10})

    assert codes(result.issues) == ["invalid-type"]
    assert result.score == "red"


def test_prompt_hook():
    """Test prompt hooks require a prompt and are not pattern scanned."""
    assert validate_hook({"type": "prompt", "prompt": "rm -rf / ?", "timeout": 30}).score == "green"

    result = validate_hook({"type": "prompt", "timeout": 30})
    assert codes(result.issues) == ["missing-prompt"]


@pytest.mark.parametrize(
    "timeout, code, severity",
    [
        (None, "missing-timeout", "warning"),
        (301, "high-timeout", "warning"),
        (0, "invalid-timeout", "error"),
        (-5, "invalid-timeout", "error"),
        (False, "timeout-disabled", "warning"),
        ("false", "timeout-disabled", "warning"),
        ("soon", "invalid-timeout", "error"),
        (True, "invalid-timeout", "error"),
        ("nan", "invalid-timeout", "error"),
        (float("nan"), "invalid-timeout", "error"),
        ("inf", "invalid-timeout", "error"),
        (float("-inf"), "invalid-timeout", "error"),
    ],
)
def test_timeout_checks(timeout, code, severity):
    """Test timeout bounds and non-numeric values."""
    hook = {"type": "command", "command": "ls"}
    if timeout is not None:
        hook["timeout"] = timeout

    result = validate_hook(hook)

    assert codes(result.issues) == [code]
    assert result.issues[0].severity == severity


@pytest.mark.parametrize("timeout", [1, 60, 300, "45", 12.5])
def test_acceptable_timeouts(timeout):
    """Test timeouts within bounds produce no issue."""
    result = validate_hook({"type": "command", "command": "ls", "timeout": timeout})

    assert result.issues == []


def test_high_timeout_is_yellow():
    """Test warnings alone give a yellow, valid result."""
    result = validate_hook({"type": "command", "command": "ls", "timeout": 600})

    assert result.valid
    assert result.score == "yellow"


def test_unquoted_variables_one_issue_each():
    """Test each unquoted variable is reported."""
    issues = validate_bash_command('cp $SRC $DEST && echo "$HOME"')

    assert codes(issues) == ["unquoted-variable", "unquoted-variable"]
    assert "$SRC" in issues[0].message
    assert all(issue.severity == "error" for issue in issues)


def test_path_traversal():
    """Test path traversal is an error."""
    assert codes(validate_bash_command("cat ../../etc/passwd")) == ["path-traversal"]


def test_dangerous_and_caution_patterns():
    """Test dangerous patterns are errors and caution patterns warnings."""
    issues = validate_bash_command("sudo chmod 777 /srv")

    by_code = {}
    for issue in issues:
        by_code.setdefault(issue.code, []).append(issue.severity)

    assert by_code["dangerous-command"] == ["error"]
    assert by_code["caution-pattern"] == ["warning", "warning"]


def test_dangerous_command_hook_is_red():
    """Test a dangerous command makes the hook red and invalid."""
    result = validate_hook({"type": "command", "command": "rm -rf /tmp/cache", "timeout": 10})

    assert result.score == "red"
    assert not result.valid


def test_caution_only_hook_is_yellow():
    """Test a caution pattern alone gives a yellow score."""
    result = validate_hook({"type": "command", "command": "sudo systemctl restart app", "timeout": 10})

    assert result.valid
    assert result.score == "yellow"


def test_non_mapping_hook():
    """Test malformed hooks are reported, not raised."""
    result = validate_hook("echo hi")

    assert codes(result.issues) == ["invalid-configuration"]
    assert result.score == "red"


def test_scan_security_issues():
    """Test pattern scanning applies only to command hooks."""
    assert codes(scan_security_issues({"type": "command", "command": "eval $X"})) == [
        "unquoted-variable",
        "dangerous-command",
    ]
    assert scan_security_issues({"type": "prompt", "prompt": "eval $X"}) == []
    assert scan_security_issues(None) == []


def test_score_hook_red_codes():
    """Test red codes force red even at warning severity."""
    issue = SecurityIssue(severity="warning", code="path-traversal", message="m")

    assert score_hook([issue]) == "red"
    assert score_hook([]) == "green"
    assert score_hook([SecurityIssue(severity="info", code="x", message="m")]) == "green"


def test_worst_score():
    """Test reducing several scores."""
    assert worst_score([]) == "green"
    assert worst_score(["green", "yellow"]) == "yellow"
    assert worst_score(["yellow", "red", "green"]) == "red"


@pytest.mark.parametrize("matcher, valid", [("", True), (None, True), ("Write|Edit", True), ("(", False)])
def test_validate_matcher(matcher, valid):
    """Test matcher regex validation."""
    assert validate_matcher(matcher) is valid


def test_validate_settings_event_order(sample_settings):
    """Test one summary per known event, in lifecycle order."""
    summaries = validate_hooks_settings(sample_settings)

    assert [summary.event for summary in summaries] == [info.event for info in HOOK_EVENTS]
    by_event = {summary.event: summary for summary in summaries}

    assert by_event["PreToolUse"].count == 1
    assert by_event["PreToolUse"].worst_score == "green"
    assert by_event["PostToolUse"].worst_score == "red"
    assert by_event["PostToolUse"].hooks[0].matcher == "Write|Edit"
    assert by_event["Stop"].worst_score == "green"
    assert by_event["Notification"].count == 0
    assert not by_event["Notification"].has_issues


def test_validate_settings_event_issues():
    """Test event-level structural issues."""
    settings = {
        "hooks": {
            "PreToolUse": [
                {"hooks": [{"type": "command", "command": "ls", "timeout": 5}]},
                {"matcher": "(", "hooks": []},
            ],
            "PostToolUse": [
                {"matcher": "Bash", "hooks": [{"type": "prompt", "prompt": "ok?", "timeout": 5}]}
            ],
            "Notification": "not a list",
            "BeforeLunch": [],
        }
    }

    summaries = validate_hooks_settings(settings)
    by_event = {summary.event: summary for summary in summaries}

    assert summaries[-1].event == "BeforeLunch"
    assert codes(by_event["BeforeLunch"].issues) == ["unknown-event"]
    assert codes(by_event["PreToolUse"].issues) == ["missing-matcher", "invalid-matcher"]
    assert by_event["PreToolUse"].issues[0].severity == "info"
    assert codes(by_event["PostToolUse"].issues) == ["prompt-not-supported"]
    assert codes(by_event["Notification"].issues) == ["invalid-configuration"]
    assert by_event["PostToolUse"].worst_score == "red"


@pytest.mark.parametrize("settings", [None, [], {"hooks": "nope"}, {"hooks": {"Stop": [1, {"x": 1}]}}])
def test_validate_settings_never_raises(settings):
    """Test malformed settings produce issues instead of exceptions."""
    summaries = validate_hooks_settings(settings)

    assert len(summaries) >= len(HOOK_EVENTS)
    assert any(summary.worst_score == "red" for summary in summaries)


def test_validate_settings_empty():
    """Test settings without hooks are all green."""
    summaries = HookValidator().validate_settings({})

    assert len(summaries) == len(HOOK_EVENTS)
    assert all(summary.worst_score == "green" for summary in summaries)


def test_summary_to_dict(sample_settings):
    """Test JSON-ready conversion of a summary."""
    data = validate_hooks_settings(sample_settings)[1].to_dict()

    assert data["event"] == "PostToolUse"
    assert data["known"]
    assert data["count"] == 1
    assert data["hooks"][0]["validation"]["score"] == "red"
