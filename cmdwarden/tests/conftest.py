"""
conftest.py - Pytest fixtures for cmdwarden tests
"""

import json
import tempfile
from pathlib import Path

import pytest
import yaml


@pytest.fixture
def temp_dir():
    """Create a temporary directory that is removed after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def clean_command_content():
    """Command with complete metadata and no risky constructs."""
    return """---
description: Show recent commits
argument-hint: [count]
allowed-tools: [Bash(git:*)]
---

# Recent commits

!`git log --oneline -n "$1"`
"""


@pytest.fixture
def insecure_command_content():
    """Command with several security issues."""
    return """---
allowed-tools: [Bash(*), Write(*)]
---

# Clean build output

!`rm -rf $1`
"""


@pytest.fixture
def fixable_command_content():
    """Command whose issues can all be fixed automatically."""
    return """---
allowed-tools: [Bash(*), Read, Edit(*)]
---

# Review a pull request

Fetch the branch and summarize the diff.

!`git diff $1...$2`
"""


@pytest.fixture
def command_dir(temp_dir, clean_command_content, insecure_command_content):
    """Directory with a clean and an insecure command file."""
    commands_dir = Path(temp_dir) / "commands"
    commands_dir.mkdir(parents=True, exist_ok=True)

    (commands_dir / "recent.md").write_text(clean_command_content, encoding="utf-8")
    (commands_dir / "clean-build.md").write_text(insecure_command_content, encoding="utf-8")
    (commands_dir / "notes.txt").write_text("not a command", encoding="utf-8")

    return str(commands_dir)


@pytest.fixture
def clean_command_file(temp_dir, clean_command_content):
    """Write the clean command to a file."""
    path = Path(temp_dir) / "recent.md"
    path.write_text(clean_command_content, encoding="utf-8")
    return str(path)


@pytest.fixture
def fixable_command_file(temp_dir, fixable_command_content):
    """Write the fixable command to a file."""
    path = Path(temp_dir) / "review.md"
    path.write_text(fixable_command_content, encoding="utf-8")
    return str(path)


@pytest.fixture
def sample_settings():
    """Settings mapping with a mix of safe and unsafe hooks."""
    return {
        "hooks": {
            "PreToolUse": [
                {
                    "matcher": "Bash",
                    "hooks": [
                        {"type": "command", "command": "echo checking", "timeout": 30},
                    ],
                }
            ],
            "PostToolUse": [
                {
                    "matcher": "Write|Edit",
                    "hooks": [
                        {"type": "command", "command": "prettier --write $FILE", "timeout": 30},
                    ],
                }
            ],
            "Stop": [
                {
                    "hooks": [
                        {"type": "prompt", "prompt": "Did the task finish?", "timeout": 20},
                    ]
                }
            ],
        }
    }


@pytest.fixture
def safe_settings():
    """Settings mapping whose hooks all score green."""
    return {
        "hooks": {
            "PreToolUse": [
                {
                    "matcher": "Bash",
                    "hooks": [{"type": "command", "command": "echo checking", "timeout": 30}],
                }
            ]
        }
    }


@pytest.fixture
def settings_file(temp_dir, sample_settings):
    """Write sample settings to a JSON file."""
    path = Path(temp_dir) / "settings.json"
    path.write_text(json.dumps(sample_settings), encoding="utf-8")
    return str(path)


@pytest.fixture
def safe_settings_file(temp_dir, safe_settings):
    """Write safe settings to a JSON file."""
    path = Path(temp_dir) / "safe-settings.json"
    path.write_text(json.dumps(safe_settings), encoding="utf-8")
    return str(path)


@pytest.fixture
def config_file(temp_dir):
    """Write a configuration file that disables one check and one fix."""
    path = Path(temp_dir) / "cmdwarden.yml"
    config = {
        "check_description": False,
        "auto_fix": {"enabled": True, "rules": {"description": False}},
        "default_bash_commands": ["git", "make"],
    }

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(config, f)

    return str(path)
