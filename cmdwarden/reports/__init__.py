"""
reports package for cmdwarden

This package contains reporting functionality for presenting scan, hook
validation and fix results on the console or as JSON.
"""

from .console import (
    format_console_report,
    format_fix_result,
    format_hooks_report,
    format_issue,
    format_scan_result,
    format_summary,
    print_console_report,
)
from .json import (
    generate_fix_json_report,
    generate_hooks_json_report,
    generate_json_report,
    generate_json_summary,
    save_json_report,
)

__all__ = [
    "format_console_report",
    "format_fix_result",
    "format_hooks_report",
    "format_issue",
    "format_scan_result",
    "format_summary",
    "print_console_report",
    "generate_fix_json_report",
    "generate_hooks_json_report",
    "generate_json_report",
    "generate_json_summary",
    "save_json_report",
]
