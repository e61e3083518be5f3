"""
core package for cmdwarden

This package contains the scanning, hook validation, fixing and
configuration functionality.
"""

from .scanner import (
    SEVERITY_LEVELS,
    CommandScanner,
    HookSeverity,
    ScanResult,
    SecurityIssue,
    Severity,
    TrustLevel,
    get_trust_level,
    scan_command,
    scan_commands,
)
from .hooks import (
    HOOK_EVENTS,
    HookEventSummary,
    HookScore,
    HookValidationResult,
    HookValidator,
    validate_hook,
    validate_hooks_settings,
)
from .fixer import Fixer, FixResult, fix_command
from .config import (
    ConfigurationError,
    disable_rules,
    generate_default_config,
    load_config,
    save_config,
)

__all__ = [
    "SEVERITY_LEVELS",
    "CommandScanner",
    "HookSeverity",
    "ScanResult",
    "SecurityIssue",
    "Severity",
    "TrustLevel",
    "get_trust_level",
    "scan_command",
    "scan_commands",
    "HOOK_EVENTS",
    "HookEventSummary",
    "HookScore",
    "HookValidationResult",
    "HookValidator",
    "validate_hook",
    "validate_hooks_settings",
    "Fixer",
    "FixResult",
    "fix_command",
    "ConfigurationError",
    "disable_rules",
    "generate_default_config",
    "load_config",
    "save_config",
]
