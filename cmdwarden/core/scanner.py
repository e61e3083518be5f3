"""
scanner.py - Security scanning and trust scoring for command definitions

This module parses a command definition, runs the registered checks against
it and reduces the resulting issues to a 0-100 trust score and a trust level.
Scanning is pure: no file or network access and no state kept between calls.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..rules.catalog import (
    DANGEROUS_PATTERNS,
    EXECUTION_BLOCK_PATTERN,
    EXECUTION_MARKER,
    POSITIONAL_ARGUMENT_PATTERN,
    find_unquoted,
    find_wildcard_grants,
    is_curated_source,
)
from ..utils.frontmatter import ParsedDocument, parse_document

logger = logging.getLogger(__name__)


class Severity(Enum):
    """Severity levels for command scan issues."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class HookSeverity(Enum):
    """Severity levels for hook validation issues."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


SEVERITY_LEVELS = [level.value for level in Severity]
HOOK_SEVERITY_LEVELS = [level.value for level in HookSeverity]

SEVERITY_PENALTIES = {
    Severity.CRITICAL.value: 50,
    Severity.HIGH.value: 20,
    Severity.MEDIUM.value: 5,
    Severity.LOW.value: 0,
}

UNKNOWN_SOURCE_PENALTY = 30
CURATED_SOURCE_BONUS = 10
MAX_SCORE = 100
MIN_SCORE = 0


class TrustLevel(Enum):
    """Categorical trust derived from the trust score."""

    TRUSTED = "trusted"
    CURATED = "curated"
    UNKNOWN = "unknown"
    DANGEROUS = "dangerous"


TRUST_THRESHOLDS = (
    (90, TrustLevel.TRUSTED),
    (70, TrustLevel.CURATED),
    (40, TrustLevel.UNKNOWN),
)

TRUST_LEVELS = [level.value for level in TrustLevel]


def get_trust_level(score: int) -> str:
    """
    Map a trust score to its trust level

    Args:
        score: Trust score

    Returns:
        Trust level value
    """
    for threshold, level in TRUST_THRESHOLDS:
        if score >= threshold:
            return level.value
    return TrustLevel.DANGEROUS.value


def clamp_score(score: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, score))


@dataclass
class SecurityIssue:
    """A single problem found in a command or hook"""

    severity: Union[str, Severity, HookSeverity]
    code: str
    message: str
    recommendation: str = ""
    auto_fixable: bool = False
    line: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate severity level"""
        if isinstance(self.severity, (Severity, HookSeverity)):
            self.severity = self.severity.value
        if self.severity not in SEVERITY_LEVELS and self.severity not in HOOK_SEVERITY_LEVELS:
            raise ValueError(f"Invalid severity level: {self.severity}")

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "severity": self.severity,
            "code": self.code,
            "message": self.message,
            "recommendation": self.recommendation,
            "auto_fixable": self.auto_fixable,
        }
        if self.line is not None:
            result["line"] = self.line
        return result


@dataclass
class ScanResult:
    """Outcome of scanning one command"""

    subject_name: str
    trust_score: int
    issues: List[SecurityIssue] = field(default_factory=list)
    trust_level: str = field(init=False)

    def __post_init__(self) -> None:
        self.trust_score = clamp_score(int(self.trust_score))
        self.trust_level = get_trust_level(self.trust_score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject_name": self.subject_name,
            "trust_score": self.trust_score,
            "trust_level": self.trust_level,
            "issues": [issue.to_dict() for issue in self.issues],
        }


def has_bash_grant(grants: Iterable[str]) -> bool:
    return any(grant == "Bash" or grant.startswith("Bash(") for grant in grants)


class CommandScanner:
    """Scans command definitions for security issues"""

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the scanner

        Args:
            config: Configuration dictionary; ``check_*`` keys toggle checks
        """
        self.config = config or {}
        self.rule_registry: Dict[str, Dict[str, Any]] = {}
        self.register_default_rules()

    def register_rule(
        self,
        rule_id: str,
        rule_func: Callable[[ParsedDocument], List[SecurityIssue]],
        enabled: bool = True,
        description: Optional[str] = None,
    ) -> None:
        """
        Register a check

        Args:
            rule_id: Unique identifier for the check
            rule_func: Function taking a parsed document and returning issues
            enabled: Whether the check runs by default
            description: Human-readable description of the check
        """
        if self.config and rule_id in self.config:
            enabled = bool(self.config[rule_id])

        self.rule_registry[rule_id] = {
            "func": rule_func,
            "enabled": enabled,
            "description": description,
        }

    def register_default_rules(self) -> None:
        """Register the built-in checks"""
        self.register_rule(
            "check_description",
            self.check_description,
            description="Requires a description field in the metadata block",
        )

        self.register_rule(
            "check_argument_hint",
            self.check_argument_hint,
            description="Requires argument-hint when the body uses $1..$9 or $ARGUMENTS",
        )

        self.register_rule(
            "check_bash_execution",
            self.check_bash_execution,
            description=(
                "Inspects inline !`...` execution for missing Bash grants, unquoted "
                "arguments, dangerous commands and Bash(*)"
            ),
        )

        self.register_rule(
            "check_tool_permissions",
            self.check_tool_permissions,
            description="Flags Write(*) and Edit(*) wildcard grants",
        )

    def list_rules(self) -> List[Dict[str, Any]]:
        return [
            {"id": rule_id, "enabled": info["enabled"], "description": info["description"]}
            for rule_id, info in self.rule_registry.items()
        ]

    def scan(self, name: str, raw_text: str, source_url: Optional[str] = None) -> ScanResult:
        """
        Scan one command definition

        Args:
            name: Command name, carried through to the result
            raw_text: Raw command text
            source_url: Repository the command came from, if imported

        Returns:
            ScanResult with clamped score and derived trust level
        """
        logger.debug("Scanning command %s", name)

        score = MAX_SCORE

        if source_url:
            if is_curated_source(source_url):
                logger.debug("Curated source %s, +%d bonus", source_url, CURATED_SOURCE_BONUS)
                score = min(MAX_SCORE, score + CURATED_SOURCE_BONUS)
            else:
                logger.debug("Unknown source %s", source_url)
                score -= UNKNOWN_SOURCE_PENALTY

        document = parse_document(raw_text)
        issues: List[SecurityIssue] = []

        for rule_id, rule_info in self.rule_registry.items():
            if not rule_info["enabled"]:
                continue

            try:
                issues.extend(rule_info["func"](document))
            except Exception as e:
                logger.warning("Check %s failed on %s: %s", rule_id, name, e)
                issues.append(
                    SecurityIssue(
                        severity=Severity.LOW,
                        code="rule-error",
                        message=f"Error executing check {rule_id}: {str(e)}",
                        recommendation="This is a bug in cmdwarden. Please report it.",
                    )
                )

        score -= sum(SEVERITY_PENALTIES[issue.severity] for issue in issues)

        result = ScanResult(subject_name=name, trust_score=score, issues=issues)

        logger.debug(
            "Scan of %s complete: score=%d level=%s issues=%d",
            name,
            result.trust_score,
            result.trust_level,
            len(issues),
        )

        return result

    def check_description(self, document: ParsedDocument) -> List[SecurityIssue]:
        """Check for a missing description field"""
        if document.get("description"):
            return []

        return [
            SecurityIssue(
                severity=Severity.MEDIUM,
                code="missing-description",
                message="Missing description field in metadata block",
                recommendation="Add a description to help users understand what this command does",
                auto_fixable=True,
                line=1 if document.has_block else None,
            )
        ]

    def check_argument_hint(self, document: ParsedDocument) -> List[SecurityIssue]:
        """Check for positional arguments used without an argument-hint"""
        match = POSITIONAL_ARGUMENT_PATTERN.search(document.body)
        if not match or document.get("argument-hint"):
            return []

        return [
            SecurityIssue(
                severity=Severity.MEDIUM,
                code="missing-argument-hint",
                message="Missing argument-hint field but command uses arguments ($1, $2, etc)",
                recommendation="Add argument-hint to show users what arguments are expected",
                auto_fixable=True,
                line=document.line_of(match.start()),
            )
        ]

    def check_bash_execution(self, document: ParsedDocument) -> List[SecurityIssue]:
        """Check inline shell execution blocks"""
        findings: List[SecurityIssue] = []

        body = document.body
        marker_offset = body.find(EXECUTION_MARKER)
        if marker_offset < 0:
            return findings

        grants = document.tool_grants()
        blocks = list(EXECUTION_BLOCK_PATTERN.finditer(body))

        if not has_bash_grant(grants):
            findings.append(
                SecurityIssue(
                    severity=Severity.CRITICAL,
                    code="missing-bash-permission",
                    message="Command contains bash execution (!`) but Bash is not in allowed-tools",
                    recommendation="Add a Bash grant to allowed-tools or remove bash execution",
                    line=document.line_of(marker_offset),
                )
            )

        for block in blocks:
            unquoted = next(find_unquoted(POSITIONAL_ARGUMENT_PATTERN, block.group(1)), None)
            if unquoted is not None:
                findings.append(
                    SecurityIssue(
                        severity=Severity.CRITICAL,
                        code="unquoted-variable",
                        message=(
                            "Unquoted variables in bash execution can be dangerous "
                            "(shell injection risk)"
                        ),
                        recommendation='Quote all variables: !`cmd "$1" "$2"`',
                        auto_fixable=True,
                        line=document.line_of(block.start(1) + unquoted.start()),
                    )
                )
                break

        for pattern in DANGEROUS_PATTERNS:
            for block in blocks:
                offset = pattern.search(block.group(1))
                if offset is None:
                    continue
                findings.append(
                    SecurityIssue(
                        severity=pattern.severity,
                        code=pattern.category,
                        message=pattern.message,
                        recommendation=pattern.recommendation,
                        line=document.line_of(block.start(1) + offset),
                    )
                )
                break

        for pattern in find_wildcard_grants(grants):
            if pattern.pattern_id != "wildcard-bash":
                continue
            findings.append(
                SecurityIssue(
                    severity=pattern.severity,
                    code=pattern.category,
                    message=pattern.message,
                    recommendation=pattern.recommendation,
                    auto_fixable=True,
                )
            )

        return findings

    def check_tool_permissions(self, document: ParsedDocument) -> List[SecurityIssue]:
        """Check for Write(*) and Edit(*) grants"""
        return [
            SecurityIssue(
                severity=pattern.severity,
                code=pattern.category,
                message=pattern.message,
                recommendation=pattern.recommendation,
                auto_fixable=True,
            )
            for pattern in find_wildcard_grants(document.tool_grants())
            if pattern.pattern_id != "wildcard-bash"
        ]


def scan_command(
    name: str,
    raw_text: str,
    source_url: Optional[str] = None,
    config: Optional[Dict[str, Any]] = None,
) -> ScanResult:
    """
    Scan a single command definition

    Args:
        name: Command name
        raw_text: Raw command text
        source_url: Repository the command was imported from
        config: Configuration dictionary

    Returns:
        ScanResult
    """
    return CommandScanner(config=config).scan(name, raw_text, source_url)


def scan_commands(
    commands: Union[Mapping[str, str], Iterable[Tuple[str, str]]],
    source_url: Optional[str] = None,
    config: Optional[Dict[str, Any]] = None,
) -> Tuple[List[ScanResult], Dict[str, Any]]:
    """
    Scan several command definitions from the same source

    Args:
        commands: Mapping or pairs of command name to raw text
        source_url: Repository the commands were imported from
        config: Configuration dictionary

    Returns:
        Tuple of (results, stats)
    """
    scanner = CommandScanner(config=config)
    items = commands.items() if isinstance(commands, Mapping) else commands

    results: List[ScanResult] = []
    stats: Dict[str, Any] = {
        "start_time": datetime.now().isoformat(),
        "source_url": source_url,
        "total_commands": 0,
        "total_issues": 0,
        "severity_counts": {level: 0 for level in SEVERITY_LEVELS},
        "code_counts": {},
        "trust_level_counts": {level: 0 for level in TRUST_LEVELS},
        "fixable_issues": 0,
    }

    for name, raw_text in items:
        result = scanner.scan(name, raw_text, source_url)
        results.append(result)

        stats["total_commands"] += 1
        stats["trust_level_counts"][result.trust_level] += 1

        for issue in result.issues:
            stats["total_issues"] += 1
            stats["severity_counts"][issue.severity] = (
                stats["severity_counts"].get(issue.severity, 0) + 1
            )
            stats["code_counts"][issue.code] = stats["code_counts"].get(issue.code, 0) + 1

            if issue.auto_fixable:
                stats["fixable_issues"] += 1

    stats["end_time"] = datetime.now().isoformat()

    logger.debug(
        "Scanned %d command(s): %s", stats["total_commands"], stats["trust_level_counts"]
    )

    return results, stats
