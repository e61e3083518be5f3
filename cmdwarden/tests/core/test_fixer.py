"""
test_fixer.py - Tests for the fixer module
"""

import pytest

from cmdwarden.core import Fixer, fix_command, scan_command
from cmdwarden.core.fixer import (
    extract_description,
    generate_argument_hint,
    quote_positional_arguments,
)
from cmdwarden.utils.frontmatter import parse_document


def test_fixer_initialization():
    """Test the fixer registers every transform."""
    fixer = Fixer()

    assert list(fixer.fixers) == [
        "quote_variables",
        "restrict_bash",
        "argument_hint",
        "description",
        "restrict_write_edit",
    ]
    assert fixer.bash_grant == "Bash(git:*, npm:*, bash:*, sh:*)"
    assert fixer.safe_write_path == "$HOME/.claude/*"


def test_fix_all_issues(fixable_command_content):
    """Test every transform applies in order and the result scans clean."""
    result = fix_command("review", fixable_command_content)

    assert result.changes_applied == [
        "Quoted unquoted variables in bash execution",
        "Restricted Bash(*) to specific commands",
        "Added argument-hint: [arg1] [arg2]",
        "Added description: Review a pull request",
        "Restricted Write(*) and/or Edit(*) to specific paths",
    ]
    assert result.changed
    assert result.before == fixable_command_content

    document = parse_document(result.after)
    assert document.tool_grants() == [
        "Bash(git:*, npm:*, bash:*, sh:*)",
        "Read",
        "Edit($HOME/.claude/*)",
    ]
    assert '!`git diff "$1"..."$2"`' in document.body

    assert scan_command("review", result.after).trust_score == 100


def test_fix_is_idempotent(fixable_command_content):
    """Test fixing already-fixed text changes nothing."""
    first = fix_command("review", fixable_command_content)
    second = fix_command("review", first.after)

    assert second.changes_applied == []
    assert second.after == first.after


def test_restrict_bash_wildcard():
    """Test Bash(*) is replaced and not touched again."""
    text = "---\ndescription: x\nallowed-tools: [Bash(*)]\n---\n!`make`"

    result = fix_command("build", text)

    assert any("Restricted Bash(*)" in change for change in result.changes_applied)
    grants = parse_document(result.after).tool_grants()
    assert "Bash(*)" not in grants
    assert any(grant.startswith("Bash(") for grant in grants)

    again = fix_command("build", result.after)
    assert not any("Bash" in change for change in again.changes_applied)


def test_no_changes_returns_input(clean_command_content):
    """Test a clean command comes back byte-identical."""
    result = fix_command("recent", clean_command_content)

    assert result.changes_applied == []
    assert not result.changed
    assert result.after == result.before


@pytest.mark.parametrize(
    "shell, expected",
    [
        ("echo $1", 'echo "$1"'),
        ('echo "$1"', 'echo "$1"'),
        ("cp $1 $2", 'cp "$1" "$2"'),
        ('say "hi" $ARGUMENTS', 'say "hi" "$ARGUMENTS"'),
        ("echo $HOME $10", 'echo $HOME "$1"0'),
        ("cat $1_log", 'cat "$1"_log'),
    ],
)
def test_quote_positional_arguments(shell, expected):
    """Test quoting leaves other characters untouched."""
    assert quote_positional_arguments(shell) == expected
    assert quote_positional_arguments(expected) == expected


def test_quote_only_inside_execution_blocks():
    """Test prose references are left alone."""
    text = "---\ndescription: x\nargument-hint: a\nallowed-tools: Bash(echo:*)\n---\nUse $1 here.\n!`echo $1`"

    result = fix_command("echo", text)

    assert result.changes_applied == ["Quoted unquoted variables in bash execution"]
    body = parse_document(result.after).body
    assert body.startswith("Use $1 here.")
    assert body.endswith('!`echo "$1"`')


def test_generate_argument_hint():
    """Test hint tokens are ordered numerically then $ARGUMENTS."""
    assert generate_argument_hint("$3 $1 $ARGUMENTS $1") == "[arg1] [arg3] [arguments]"
    assert generate_argument_hint("$ARGUMENTS") == "[arguments]"
    assert generate_argument_hint("no args") is None


def test_existing_argument_hint_kept():
    """Test an existing hint is not replaced."""
    text = "---\ndescription: x\nargument-hint: <file>\n---\nRead $1"

    assert fix_command("read", text).changes_applied == []


@pytest.mark.parametrize(
    "body, expected",
    [
        ("# Deploy the app\nmore", "Deploy the app"),
        ("\n\n!`ls`\n@README.md\nSummarize files", "Summarize files"),
        ("#\n## Heading two", "Heading two"),
        ("x" * 150, "x" * 100),
        ("!`ls`", None),
    ],
)
def test_extract_description(body, expected):
    """Test description extraction rules."""
    assert extract_description(body) == expected


def test_description_added_without_block():
    """Test fixing text with no metadata block creates one."""
    result = fix_command("notes", "Summarize the open issues")

    assert result.changes_applied == ["Added description: Summarize the open issues"]
    document = parse_document(result.after)
    assert document.get("description") == "Summarize the open issues"
    assert document.body == "Summarize the open issues"


def test_restrict_write_edit_custom_path():
    """Test the safe path comes from configuration."""
    text = "---\ndescription: x\nallowed-tools: [Write(*), Edit(*)]\n---\nbody"

    result = fix_command("w", text, config={"safe_write_path": "./docs/*"})

    assert parse_document(result.after).tool_grants() == ["Write(./docs/*)", "Edit(./docs/*)"]


def test_custom_bash_commands_are_deduplicated():
    """Test configured commands build the replacement grant."""
    fixer = Fixer(config={"default_bash_commands": ["git", "make", "git"]})

    assert fixer.bash_grant == "Bash(git:*, make:*)"


def test_auto_fix_disabled(fixable_command_content):
    """Test disabling auto-fix makes the engine a no-op."""
    result = fix_command("review", fixable_command_content, config={"auto_fix": {"enabled": False}})

    assert result.changes_applied == []
    assert result.after == fixable_command_content


def test_disabled_transform_is_skipped(fixable_command_content):
    """Test individual transforms can be disabled."""
    config = {"auto_fix": {"enabled": True, "rules": {"description": False, "restrict_bash": False}}}

    result = fix_command("review", fixable_command_content, config=config)

    assert len(result.changes_applied) == 3
    assert "Bash(*)" in parse_document(result.after).tool_grants()
    assert parse_document(result.after).get("description") is None


def test_failing_transform_is_skipped(fixable_command_content):
    """Test a transform that raises does not stop the others."""
    fixer = Fixer()

    def broken(context):
        raise RuntimeError("boom")

    fixer.fixers["restrict_bash"] = broken

    result = fixer.fix_command("review", fixable_command_content)

    assert fixer.fixes_skipped == 1
    assert fixer.fixes_applied == 4
    assert "Restricted Bash(*) to specific commands" not in result.changes_applied


@pytest.mark.parametrize("text", ["", "---", "---\nallowed-tools: [\n---\n!`", None])
def test_fix_never_raises(text):
    """Test malformed input is handled."""
    result = fix_command("odd", text)

    assert result.subject_name == "odd"


def test_fix_result_to_dict(fixable_command_content):
    """Test JSON-ready conversion."""
    data = fix_command("review", fixable_command_content).to_dict()

    assert data["changed"]
    assert len(data["changes_applied"]) == 5
    assert data["after"].startswith("---\n")


def test_existing_bracketed_hint_survives_rewrite():
    """Test an unrelated fix keeps a multi-bracket hint intact."""
    text = (
        "---\ndescription: Triage a PR\nargument-hint: [pr-number] [priority]\n"
        "allowed-tools: [Bash(*)]\n---\n!`gh pr view \"$1\"`"
    )

    result = fix_command("triage", text)

    assert result.changes_applied == ["Restricted Bash(*) to specific commands"]
    assert parse_document(result.after).get("argument-hint") == "[pr-number] [priority]"
    assert '["pr-number] [priority"]' not in result.after
