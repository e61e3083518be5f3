"""
console.py - Console/terminal reporting for cmdwarden

This module provides functionality for formatting and displaying scan,
hook validation and fix results in a human-readable format for terminal
output.
"""

import os
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional, TextIO

import click

from ..core import SEVERITY_LEVELS, FixResult, HookEventSummary, ScanResult, SecurityIssue
from ..core.scanner import TRUST_LEVELS

COLORS = {
    "critical": "bright_red",
    "high": "red",
    "medium": "yellow",
    "low": "blue",
    "error": "red",
    "warning": "yellow",
    "info": "blue",
    "trusted": "green",
    "curated": "cyan",
    "unknown": "yellow",
    "dangerous": "red",
    "green": "green",
    "yellow": "yellow",
    "red": "red",
}

SYMBOLS = {
    "critical": "🚨",
    "high": "❗",
    "medium": "⚠️",
    "error": "❗",
    "warning": "⚠️",
}


def get_severity_symbol(severity: str) -> str:
    """Get a symbol representing the severity level"""
    return SYMBOLS.get(severity, "ℹ️")


def colorize(text: str, color: str) -> str:
    """
    Apply color to text if color output is enabled

    Args:
        text: Text to colorize
        color: Color to apply

    Returns:
        Colorized text or original text if color is disabled
    """
    if os.environ.get("NO_COLOR"):
        return text

    if color in ("bold", "underline"):
        return click.style(text, **{color: True})

    return click.style(text, fg=color)


def format_issue(
    issue: SecurityIssue, subject: Optional[str] = None, show_recommendation: bool = True
) -> str:
    """
    Format a single issue for console output

    Args:
        issue: Issue to format
        subject: File or command name the issue belongs to
        show_recommendation: Whether to include the recommendation

    Returns:
        Formatted issue as string
    """
    severity = issue.severity
    symbol = get_severity_symbol(severity)

    formatted = (
        f"{symbol} {colorize(severity.upper(), COLORS.get(severity, 'white'))}: {issue.message}\n"
    )
    formatted += f"  Code: {issue.code}"
    if issue.auto_fixable:
        formatted += " (auto-fixable)"
    formatted += "\n"

    if subject:
        location = f"  Location: {subject}"
        if issue.line is not None:
            location += f":{issue.line}"
        formatted += f"{location}\n"

    if show_recommendation and issue.recommendation:
        formatted += f"  Recommendation: {issue.recommendation}\n"

    return formatted


def format_scan_result(result: ScanResult, show_recommendations: bool = True) -> str:
    """
    Format one scan result with its issues

    Args:
        result: Scan result
        show_recommendations: Whether to include recommendations

    Returns:
        Formatted result as string
    """
    level = result.trust_level
    output = (
        f"\n{colorize(result.subject_name, 'bold')}  "
        f"score {result.trust_score}/100  "
        f"{colorize(level.upper(), COLORS.get(level, 'white'))}\n"
    )

    if not result.issues:
        output += "  No issues found.\n"
        return output

    ordered = sorted(
        result.issues,
        key=lambda issue: -SEVERITY_LEVELS.index(issue.severity)
        if issue.severity in SEVERITY_LEVELS
        else 0,
    )
    for issue in ordered:
        output += format_issue(issue, result.subject_name, show_recommendations) + "\n"

    return output


def format_summary(stats: Dict[str, Any]) -> str:
    """
    Format summary statistics

    Args:
        stats: Statistics dictionary

    Returns:
        Formatted summary as string
    """
    output = f"\n{colorize('Scan Summary', 'bold')}\n"
    output += "=" * 50 + "\n"

    output += f"Total commands scanned: {stats.get('total_commands', 0)}\n"
    output += f"Total issues found: {stats.get('total_issues', 0)}\n"
    output += f"Auto-fixable issues: {stats.get('fixable_issues', 0)}\n"

    output += "\nCommands by trust level:\n"
    for level in TRUST_LEVELS:
        count = stats.get("trust_level_counts", {}).get(level, 0)
        if count > 0:
            output += f"  {colorize(level, COLORS.get(level, 'white'))}: {count}\n"

    severity_counts = stats.get("severity_counts", {})
    if any(severity_counts.values()):
        output += "\nIssues by severity:\n"
        for level in reversed(SEVERITY_LEVELS):
            count = severity_counts.get(level, 0)
            if count > 0:
                output += f"  {colorize(level, COLORS.get(level, 'white'))}: {count}\n"

    if stats.get("code_counts"):
        output += "\nIssues by code:\n"
        for code, count in sorted(
            stats.get("code_counts", {}).items(), key=lambda x: x[1], reverse=True
        ):
            output += f"  {code}: {count}\n"

    start_time = stats.get("start_time")
    end_time = stats.get("end_time")
    if start_time and end_time:
        try:
            start = datetime.fromisoformat(start_time)
            end = datetime.fromisoformat(end_time)
            duration = (end - start).total_seconds()
            output += f"\nScan duration: {duration:.2f} seconds\n"
        except (ValueError, TypeError):
            pass

    return output


def format_console_report(
    results: List[ScanResult],
    stats: Dict[str, Any],
    show_recommendations: bool = True,
    show_summary: bool = True,
) -> str:
    """
    Generate a complete console report

    Args:
        results: List of scan results
        stats: Statistics dictionary
        show_recommendations: Whether to include recommendations
        show_summary: Whether to include summary statistics

    Returns:
        Complete formatted report as string
    """
    if not results:
        output = "No commands found."
    else:
        output = "".join(format_scan_result(result, show_recommendations) for result in results)

    if show_summary:
        output += format_summary(stats)

    return output


def print_console_report(
    results: List[ScanResult],
    stats: Dict[str, Any],
    show_recommendations: bool = True,
    show_summary: bool = True,
    output_stream: Optional[TextIO] = None,
) -> None:
    """
    Print console report to output stream

    Args:
        results: List of scan results
        stats: Statistics dictionary
        show_recommendations: Whether to include recommendations
        show_summary: Whether to include summary statistics
        output_stream: Output stream to write to (defaults to sys.stdout)
    """
    report = format_console_report(
        results,
        stats,
        show_recommendations=show_recommendations,
        show_summary=show_summary,
    )

    if output_stream is None:
        output_stream = sys.stdout

    output_stream.write(report)
    output_stream.flush()


def format_hook_summary(
    summary: HookEventSummary, verbose: bool = False, show_recommendations: bool = True
) -> str:
    """
    Format the hooks of one event

    Args:
        summary: Event summary
        verbose: Whether to list events with no hooks and no issues
        show_recommendations: Whether to include recommendations

    Returns:
        Formatted event as string, empty for an idle event unless verbose
    """
    if not verbose and not summary.count and not summary.issues:
        return ""

    score = summary.worst_score
    output = (
        f"\n{colorize(summary.event, 'bold')}  {summary.count} hook(s)  "
        f"{colorize(score.upper(), COLORS.get(score, 'white'))}\n"
    )

    for issue in summary.issues:
        output += format_issue(issue, summary.event, show_recommendations)

    for report in summary.hooks:
        label = f"{summary.event}[{report.config_index}].hooks[{report.hook_index}]"
        if report.matcher:
            label += f" (matcher: {report.matcher})"
        validation = report.validation
        output += (
            f"  {label}: "
            f"{colorize(validation.score, COLORS.get(validation.score, 'white'))}\n"
        )
        for issue in validation.issues:
            output += "  " + format_issue(issue, None, show_recommendations).replace(
                "\n  ", "\n    "
            )

    return output


def format_hooks_report(
    summaries: List[HookEventSummary], verbose: bool = False, show_recommendations: bool = True
) -> str:
    """
    Generate a console report of hook validation

    Args:
        summaries: Event summaries
        verbose: Whether to list idle events
        show_recommendations: Whether to include recommendations

    Returns:
        Formatted report as string
    """
    output = "".join(
        format_hook_summary(summary, verbose, show_recommendations) for summary in summaries
    )

    total = sum(summary.count for summary in summaries)
    if not output:
        output = "No hooks configured.\n"

    output += f"\n{colorize('Hooks Summary', 'bold')}\n"
    output += "=" * 50 + "\n"
    output += f"Total hooks: {total}\n"
    for score in ("red", "yellow", "green"):
        events = [s.event for s in summaries if (s.count or s.issues) and s.worst_score == score]
        if events:
            output += f"  {colorize(score, COLORS[score])}: {', '.join(events)}\n"

    return output


def format_fix_result(result: FixResult, show_diff: bool = False) -> str:
    """
    Format the changes made to one command

    Args:
        result: Fix result
        show_diff: Whether to include the rewritten text

    Returns:
        Formatted result as string
    """
    if not result.changed:
        return f"{result.subject_name}: no fixes needed\n"

    output = f"{colorize(result.subject_name, 'bold')}: {len(result.changes_applied)} fix(es)\n"
    for change in result.changes_applied:
        output += f"  ✅ {change}\n"

    if show_diff:
        output += "\n" + result.after + "\n"

    return output
