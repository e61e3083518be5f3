"""
cmdwarden - Command and hook security scanner

Scores slash-command definitions and hook configurations for dangerous shell
constructs, unquoted arguments and over-broad tool grants, and rewrites
command text to remove the issues that can be fixed safely.
"""

from cmdwarden.utils.version import __version__, get_version, get_version_info

from .core import (
    SEVERITY_LEVELS,
    CommandScanner,
    ConfigurationError,
    Fixer,
    FixResult,
    HookValidationResult,
    HookValidator,
    ScanResult,
    SecurityIssue,
    disable_rules,
    fix_command,
    generate_default_config,
    load_config,
    save_config,
    scan_command,
    scan_commands,
    validate_hook,
    validate_hooks_settings,
)
from .utils.frontmatter import ParsedDocument, parse_document

__all__ = [
    "__version__",
    "get_version",
    "get_version_info",
    "ParsedDocument",
    "parse_document",
    "SecurityIssue",
    "ScanResult",
    "CommandScanner",
    "scan_command",
    "scan_commands",
    "SEVERITY_LEVELS",
    "HookValidationResult",
    "HookValidator",
    "validate_hook",
    "validate_hooks_settings",
    "FixResult",
    "Fixer",
    "fix_command",
    "load_config",
    "generate_default_config",
    "save_config",
    "disable_rules",
    "ConfigurationError",
]


def main() -> None:
    """Main entry point for the cmdwarden CLI tool"""
    from .cli import cli

    cli()
