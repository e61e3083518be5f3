"""
json.py - JSON reporting for cmdwarden

This module provides functionality for formatting scan, hook validation and
fix results as JSON, suitable for machine processing or integration with
other tools.
"""

import json
from datetime import datetime
from typing import Any, Dict, List

from ..core import FixResult, HookEventSummary, ScanResult
from ..core.hooks import worst_score
from ..utils.version import __version__


def _report_header() -> Dict[str, Any]:
    return {
        "cmdwarden_version": __version__,
        "generated_at": datetime.now().isoformat(),
    }


def _clean_stats(stats: Dict[str, Any]) -> Dict[str, Any]:
    clean_stats: Dict[str, Any] = {}
    for key, value in stats.items():
        if isinstance(value, (str, int, float, bool, list, dict)) or value is None:
            clean_stats[key] = value
    return clean_stats


def generate_json_report(
    results: List[ScanResult], stats: Dict[str, Any], include_stats: bool = True
) -> str:
    """
    Generate a JSON report of scan results and statistics

    Args:
        results: List of scan results
        stats: Statistics dictionary
        include_stats: Whether to include statistics in the output

    Returns:
        JSON string representation of the report
    """
    report = _report_header()
    report["results"] = [result.to_dict() for result in results]

    if include_stats:
        report["stats"] = _clean_stats(stats)

    return json.dumps(report, indent=2)


def generate_json_summary(stats: Dict[str, Any]) -> str:
    """
    Generate a JSON summary of scan statistics without detailed results

    Args:
        stats: Statistics dictionary

    Returns:
        JSON string representation of the summary
    """
    summary = _report_header()
    summary["summary"] = {
        "total_commands": stats.get("total_commands", 0),
        "total_issues": stats.get("total_issues", 0),
        "severity_counts": stats.get("severity_counts", {}),
        "code_counts": stats.get("code_counts", {}),
        "trust_level_counts": stats.get("trust_level_counts", {}),
        "fixable_issues": stats.get("fixable_issues", 0),
        "scan_duration_seconds": None,
    }

    start_time = stats.get("start_time")
    end_time = stats.get("end_time")
    if start_time and end_time:
        try:
            start = datetime.fromisoformat(start_time)
            end = datetime.fromisoformat(end_time)
            summary["summary"]["scan_duration_seconds"] = (end - start).total_seconds()
        except (ValueError, TypeError):
            pass

    return json.dumps(summary, indent=2)


def generate_hooks_json_report(summaries: List[HookEventSummary]) -> str:
    """
    Generate a JSON report of hook validation, one entry per event

    Args:
        summaries: Event summaries from hook validation

    Returns:
        JSON string representation of the report
    """
    report = _report_header()
    report["worst_score"] = worst_score(summary.worst_score for summary in summaries)
    report["events"] = [summary.to_dict() for summary in summaries]

    return json.dumps(report, indent=2)


def generate_fix_json_report(results: List[FixResult], include_text: bool = False) -> str:
    """
    Generate a JSON report of applied fixes

    Args:
        results: List of fix results
        include_text: Whether to include the before/after text

    Returns:
        JSON string representation of the report
    """
    fixes = []
    for result in results:
        data = result.to_dict()
        if not include_text:
            data.pop("before")
            data.pop("after")
        fixes.append(data)

    report = _report_header()
    report["fixes"] = fixes

    return json.dumps(report, indent=2)


def save_json_report(
    results: List[ScanResult],
    stats: Dict[str, Any],
    output_path: str,
    include_stats: bool = True,
) -> None:
    """
    Generate a JSON report and save it to a file

    Args:
        results: List of scan results
        stats: Statistics dictionary
        output_path: Path to save the report to
        include_stats: Whether to include statistics in the output

    Raises:
        IOError: If the file cannot be written
    """
    report = generate_json_report(results, stats, include_stats)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(report)
