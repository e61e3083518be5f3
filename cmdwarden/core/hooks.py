"""
hooks.py - Validation and scoring for hook definitions

This module validates individual hook records (structure, timeout bounds and
the shell patterns of command hooks) and reduces the issues found to a
green/yellow/red score. It also walks a complete settings mapping and
summarizes the hooks registered for each lifecycle event.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..rules.catalog import (
    CAUTION_PATTERNS,
    DANGEROUS_PATTERNS,
    SHELL_VARIABLE_PATTERN,
    find_unquoted,
    has_path_traversal,
)
from .scanner import HookSeverity, SecurityIssue

logger = logging.getLogger(__name__)

HOOK_TYPES = ("command", "prompt")

MAX_TIMEOUT_SECONDS = 300
DEFAULT_TIMEOUT_SECONDS = 60

# Codes that force a red score regardless of severity
RED_CODES = frozenset({"unquoted-variable", "path-traversal", "dangerous-command"})


class HookScore(Enum):
    """Three-tier hook security score."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


@dataclass(frozen=True)
class HookEventInfo:
    """Static description of a lifecycle event hooks can attach to"""

    event: str
    name: str
    description: str
    requires_matcher: bool
    supports_prompt_hooks: bool


HOOK_EVENTS = (
    HookEventInfo(
        "PreToolUse",
        "Pre-Tool Use",
        "Runs before a tool is used (can block or modify tool calls)",
        True,
        True,
    ),
    HookEventInfo(
        "PostToolUse",
        "Post-Tool Use",
        "Runs after a tool completes successfully",
        True,
        False,
    ),
    HookEventInfo(
        "UserPromptSubmit",
        "User Prompt Submit",
        "Runs when the user submits a prompt, before it is processed",
        False,
        True,
    ),
    HookEventInfo(
        "Notification",
        "Notification",
        "Runs when a notification is sent",
        False,
        False,
    ),
    HookEventInfo(
        "Stop",
        "Stop",
        "Runs when the assistant finishes responding",
        False,
        True,
    ),
    HookEventInfo(
        "SubagentStop",
        "Subagent Stop",
        "Runs when a subagent task completes",
        False,
        True,
    ),
    HookEventInfo(
        "SessionStart",
        "Session Start",
        "Runs when a session starts or resumes",
        False,
        False,
    ),
    HookEventInfo(
        "SessionEnd",
        "Session End",
        "Runs when a session terminates",
        False,
        False,
    ),
)

HOOK_EVENTS_BY_NAME = {info.event: info for info in HOOK_EVENTS}


@dataclass
class HookValidationResult:
    """Outcome of validating one hook"""

    valid: bool
    score: str
    issues: List[SecurityIssue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "score": self.score,
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass
class HookReport:
    """A hook located in settings, together with its validation"""

    event: str
    config_index: int
    hook_index: int
    matcher: Optional[str]
    hook: Any
    validation: HookValidationResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event,
            "config_index": self.config_index,
            "hook_index": self.hook_index,
            "matcher": self.matcher,
            "hook": self.hook,
            "validation": self.validation.to_dict(),
        }


@dataclass
class HookEventSummary:
    """All hooks registered for one event"""

    event: str
    info: Optional[HookEventInfo] = None
    hooks: List[HookReport] = field(default_factory=list)
    issues: List[SecurityIssue] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.hooks)

    @property
    def has_issues(self) -> bool:
        return bool(self.issues) or any(report.validation.issues for report in self.hooks)

    @property
    def worst_score(self) -> str:
        scores = [report.validation.score for report in self.hooks]
        scores.append(score_hook(self.issues))
        return worst_score(scores)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event,
            "name": self.info.name if self.info else self.event,
            "known": self.info is not None,
            "count": self.count,
            "has_issues": self.has_issues,
            "worst_score": self.worst_score,
            "issues": [issue.to_dict() for issue in self.issues],
            "hooks": [report.to_dict() for report in self.hooks],
        }


def score_hook(issues: Iterable[SecurityIssue]) -> str:
    """
    Reduce hook issues to a score

    Args:
        issues: Issues found for a hook

    Returns:
        "red" for any error or red-code issue, "yellow" for any warning,
        otherwise "green"
    """
    issues = list(issues)

    if any(
        issue.severity == HookSeverity.ERROR.value or issue.code in RED_CODES for issue in issues
    ):
        return HookScore.RED.value

    if any(issue.severity == HookSeverity.WARNING.value for issue in issues):
        return HookScore.YELLOW.value

    return HookScore.GREEN.value


def worst_score(scores: Iterable[str]) -> str:
    """Return the worst of several hook scores; green when there are none"""
    scores = set(scores)
    if HookScore.RED.value in scores:
        return HookScore.RED.value
    if HookScore.YELLOW.value in scores:
        return HookScore.YELLOW.value
    return HookScore.GREEN.value


def validate_matcher(matcher: Optional[str]) -> bool:
    """
    Check that a matcher compiles as a regular expression

    An empty matcher is valid and matches every tool.
    """
    if not matcher:
        return True

    try:
        re.compile(matcher)
    except re.error as e:
        logger.debug("Invalid matcher %r: %s", matcher, e)
        return False

    return True


def validate_bash_command(command: str) -> List[SecurityIssue]:
    """
    Run the shell pattern checks against a hook command

    Args:
        command: Shell command string

    Returns:
        Issues in check order: unquoted variables, path traversal,
        dangerous commands, caution patterns
    """
    issues: List[SecurityIssue] = []

    for match in find_unquoted(SHELL_VARIABLE_PATTERN, command):
        variable = match.group(1)
        issues.append(
            SecurityIssue(
                severity=HookSeverity.ERROR,
                code="unquoted-variable",
                message=f"Unquoted variable: {variable}",
                recommendation=f'Use "{variable}" instead of {variable} to prevent injection attacks',
            )
        )

    if has_path_traversal(command):
        issues.append(
            SecurityIssue(
                severity=HookSeverity.ERROR,
                code="path-traversal",
                message="Path traversal detected (../ or ..\\)",
                recommendation="Use absolute paths or validate inputs to prevent directory traversal",
            )
        )

    for pattern in DANGEROUS_PATTERNS:
        if pattern.matches(command):
            issues.append(
                SecurityIssue(
                    severity=HookSeverity.ERROR,
                    code=pattern.category,
                    message=pattern.message,
                    recommendation=pattern.recommendation,
                )
            )

    for pattern in CAUTION_PATTERNS:
        if pattern.matches(command):
            issues.append(
                SecurityIssue(
                    severity=HookSeverity.WARNING,
                    code=pattern.category,
                    message=pattern.message,
                    recommendation=pattern.recommendation,
                )
            )

    return issues


def scan_security_issues(hook: Any) -> List[SecurityIssue]:
    """Pattern checks for a command hook; other hooks yield no issues"""
    if not isinstance(hook, Mapping):
        return []

    command = hook.get("command")
    if hook.get("type") == "command" and isinstance(command, str) and command:
        return validate_bash_command(command)

    return []


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _check_timeout(hook: Mapping) -> List[SecurityIssue]:
    """Check the timeout field of a hook"""
    if "timeout" not in hook or hook["timeout"] is None:
        return [
            SecurityIssue(
                severity=HookSeverity.WARNING,
                code="missing-timeout",
                message=(
                    f"No timeout specified. Default timeout ({DEFAULT_TIMEOUT_SECONDS}s) "
                    "will be used"
                ),
                recommendation=f'Add "timeout": {DEFAULT_TIMEOUT_SECONDS} to your hook configuration',
            )
        ]

    timeout = hook["timeout"]

    if timeout is False or (isinstance(timeout, str) and timeout.strip().lower() == "false"):
        return [
            SecurityIssue(
                severity=HookSeverity.WARNING,
                code="timeout-disabled",
                message="Timeout is disabled. The hook can run indefinitely",
                recommendation=f"Set a timeout of at most {MAX_TIMEOUT_SECONDS} seconds",
            )
        ]

    if isinstance(timeout, str):
        try:
            timeout = float(timeout.strip())
        except ValueError:
            pass

    if not _is_finite_number(timeout):
        return [
            SecurityIssue(
                severity=HookSeverity.ERROR,
                code="invalid-timeout",
                message=f"Timeout must be a number of seconds, got {hook['timeout']!r}",
                recommendation=f'Use a numeric timeout such as "timeout": {DEFAULT_TIMEOUT_SECONDS}',
            )
        ]

    if timeout > MAX_TIMEOUT_SECONDS:
        return [
            SecurityIssue(
                severity=HookSeverity.WARNING,
                code="high-timeout",
                message=f"Timeout is very high ({hook['timeout']}s). Consider reducing it",
                recommendation=f"Use a timeout value less than {MAX_TIMEOUT_SECONDS} seconds",
            )
        ]

    if timeout <= 0:
        return [
            SecurityIssue(
                severity=HookSeverity.ERROR,
                code="invalid-timeout",
                message="Timeout must be > 0",
                recommendation=f'Use a positive timeout such as "timeout": {DEFAULT_TIMEOUT_SECONDS}',
            )
        ]

    return []


class HookValidator:
    """Validates hook definitions"""

    def validate_hook(self, hook: Any) -> HookValidationResult:
        """
        Validate a single hook

        Args:
            hook: Mapping with ``type``, ``command``, ``prompt`` and ``timeout``

        Returns:
            HookValidationResult; structural problems are reported as
            error issues, never raised
        """
        issues: List[SecurityIssue] = []

        if not isinstance(hook, Mapping):
            issues.append(
                SecurityIssue(
                    severity=HookSeverity.ERROR,
                    code="invalid-configuration",
                    message=f"Hook must be a mapping, got {type(hook).__name__}",
                    recommendation='Define the hook as {"type": "command", "command": "..."}',
                )
            )
            return self._result(issues)

        hook_type = hook.get("type")

        if not hook_type:
            issues.append(
                SecurityIssue(
                    severity=HookSeverity.ERROR,
                    code="missing-type",
                    message='Hook type is required (must be "command" or "prompt")',
                    recommendation='Add "type": "command" or "type": "prompt"',
                )
            )
        elif hook_type not in HOOK_TYPES:
            issues.append(
                SecurityIssue(
                    severity=HookSeverity.ERROR,
                    code="invalid-type",
                    message=f'Invalid hook type: "{hook_type}". Must be "command" or "prompt"',
                    recommendation='Use "type": "command" or "type": "prompt"',
                )
            )

        if hook_type == "command":
            command = hook.get("command")
            if not isinstance(command, str) or not command.strip():
                issues.append(
                    SecurityIssue(
                        severity=HookSeverity.ERROR,
                        code="missing-command",
                        message="Command is required for command hooks",
                        recommendation='Add a "command" to run',
                    )
                )
            else:
                issues.extend(validate_bash_command(command))

        if hook_type == "prompt":
            prompt = hook.get("prompt")
            if not isinstance(prompt, str) or not prompt.strip():
                issues.append(
                    SecurityIssue(
                        severity=HookSeverity.ERROR,
                        code="missing-prompt",
                        message="Prompt is required for prompt hooks",
                        recommendation='Add a "prompt" for the model to evaluate',
                    )
                )

        issues.extend(_check_timeout(hook))

        return self._result(issues)

    def _result(self, issues: List[SecurityIssue]) -> HookValidationResult:
        result = HookValidationResult(
            valid=not any(issue.severity == HookSeverity.ERROR.value for issue in issues),
            score=score_hook(issues),
            issues=issues,
        )

        logger.debug(
            "Hook validation complete: valid=%s score=%s issues=%d",
            result.valid,
            result.score,
            len(issues),
        )

        return result

    def _configuration_error(self, message: str) -> SecurityIssue:
        return SecurityIssue(
            severity=HookSeverity.ERROR,
            code="invalid-configuration",
            message=message,
            recommendation='Use {"matcher": "...", "hooks": [{...}]} entries',
        )

    def validate_event(self, event: str, configs: Any) -> HookEventSummary:
        """
        Validate every hook registered for one event

        Args:
            event: Event name
            configs: List of ``{"matcher": ..., "hooks": [...]}`` entries

        Returns:
            HookEventSummary
        """
        info = HOOK_EVENTS_BY_NAME.get(event)
        summary = HookEventSummary(event=event, info=info)

        if info is None:
            summary.issues.append(
                SecurityIssue(
                    severity=HookSeverity.ERROR,
                    code="unknown-event",
                    message=f"Unknown hook event: {event}",
                    recommendation="Use one of: " + ", ".join(e.event for e in HOOK_EVENTS),
                )
            )

        if configs is None:
            return summary

        if not isinstance(configs, list):
            summary.issues.append(
                self._configuration_error(f"Hooks for {event} must be a list of configurations")
            )
            return summary

        for config_index, config in enumerate(configs):
            if not isinstance(config, Mapping):
                summary.issues.append(
                    self._configuration_error(
                        f"{event}[{config_index}] must be a mapping with a hooks list"
                    )
                )
                continue

            matcher = config.get("matcher")
            if matcher is not None and not isinstance(matcher, str):
                summary.issues.append(
                    self._configuration_error(f"{event}[{config_index}].matcher must be a string")
                )
                matcher = None
            elif not validate_matcher(matcher):
                summary.issues.append(
                    SecurityIssue(
                        severity=HookSeverity.ERROR,
                        code="invalid-matcher",
                        message=f"Invalid matcher pattern: {matcher}",
                        recommendation="Use a tool name or a valid regular expression",
                    )
                )
            elif info is not None and info.requires_matcher and not matcher:
                summary.issues.append(
                    SecurityIssue(
                        severity=HookSeverity.INFO,
                        code="missing-matcher",
                        message=f"No matcher for {event}[{config_index}]; hooks run for every tool",
                        recommendation='Set "matcher" to limit which tools trigger the hooks',
                    )
                )

            hooks = config.get("hooks")
            if not isinstance(hooks, list):
                summary.issues.append(
                    self._configuration_error(f"{event}[{config_index}].hooks must be a list")
                )
                continue

            for hook_index, hook in enumerate(hooks):
                validation = self.validate_hook(hook)
                summary.hooks.append(
                    HookReport(
                        event=event,
                        config_index=config_index,
                        hook_index=hook_index,
                        matcher=matcher,
                        hook=hook,
                        validation=validation,
                    )
                )

                if (
                    info is not None
                    and not info.supports_prompt_hooks
                    and isinstance(hook, Mapping)
                    and hook.get("type") == "prompt"
                ):
                    summary.issues.append(
                        SecurityIssue(
                            severity=HookSeverity.ERROR,
                            code="prompt-not-supported",
                            message=f"{event} does not support prompt hooks",
                            recommendation='Use a "command" hook for this event',
                        )
                    )

        return summary

    def validate_settings(self, settings: Any) -> List[HookEventSummary]:
        """
        Validate the hooks section of a settings mapping

        Args:
            settings: Mapping with a ``hooks`` key of event name to configurations

        Returns:
            One summary per known event in lifecycle order, then one per
            unknown event found in settings
        """
        hooks_section: Any = settings.get("hooks") if isinstance(settings, Mapping) else None
        malformed = hooks_section is not None and not isinstance(hooks_section, Mapping)
        if not isinstance(hooks_section, Mapping):
            hooks_section = {}

        summaries = [
            self.validate_event(info.event, hooks_section.get(info.event)) for info in HOOK_EVENTS
        ]

        for event, configs in hooks_section.items():
            if event not in HOOK_EVENTS_BY_NAME:
                summaries.append(self.validate_event(str(event), configs))

        if malformed or not isinstance(settings, Mapping):
            summary = HookEventSummary(event="hooks")
            summary.issues.append(
                self._configuration_error("Settings must be a mapping with a hooks mapping")
            )
            summaries.append(summary)

        logger.debug(
            "Validated hooks: %d event(s), %d hook(s)",
            sum(1 for summary in summaries if summary.count),
            sum(summary.count for summary in summaries),
        )

        return summaries


def validate_hook(hook: Any) -> HookValidationResult:
    """
    Validate a single hook definition

    Args:
        hook: Hook mapping

    Returns:
        HookValidationResult
    """
    return HookValidator().validate_hook(hook)


def validate_hooks_settings(settings: Any) -> List[HookEventSummary]:
    """
    Validate every hook in a settings mapping

    Args:
        settings: Parsed settings, e.g. the contents of settings.json

    Returns:
        List of HookEventSummary
    """
    return HookValidator().validate_settings(settings)
