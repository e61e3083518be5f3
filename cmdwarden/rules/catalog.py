"""
catalog.py - Pattern catalog for command and hook scanning

This module holds the static tables the scanners match against: dangerous
and caution shell patterns, the variable and path-traversal detectors,
wildcard tool grants and the curated source allow-list. Everything here is
module-level immutable data and safe to share between threads.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

MATCH_SUBSTRING = "substring"
MATCH_REGEX = "regex"
MATCH_EXACT = "exact"


@dataclass(frozen=True)
class Pattern:
    """A single catalog entry: what to look for and how to report it"""

    pattern_id: str
    matcher: str
    severity: str
    message: str
    recommendation: str
    category: str
    match_type: str = MATCH_SUBSTRING

    def search(self, text: str) -> Optional[int]:
        """
        Find the first occurrence of this pattern

        Args:
            text: Text to search

        Returns:
            Offset of the first match, or None
        """
        if self.match_type == MATCH_REGEX:
            match = re.search(self.matcher, text)
            return match.start() if match else None

        if self.match_type == MATCH_EXACT:
            return 0 if text == self.matcher else None

        index = text.find(self.matcher)
        return index if index >= 0 else None

    def matches(self, text: str) -> bool:
        return self.search(text) is not None

    def to_dict(self) -> dict:
        return {
            "id": self.pattern_id,
            "matcher": self.matcher,
            "match_type": self.match_type,
            "severity": self.severity,
            "category": self.category,
            "message": self.message,
            "recommendation": self.recommendation,
        }


DANGEROUS_RECOMMENDATION = (
    "Remove or rewrite this pattern. It can cause data loss, system damage "
    "or arbitrary code execution."
)

DANGEROUS_PATTERNS: Tuple[Pattern, ...] = (
    Pattern(
        "rm-rf",
        "rm -rf",
        "critical",
        "Recursive forced deletion detected (rm -rf)",
        DANGEROUS_RECOMMENDATION,
        "dangerous-command",
    ),
    Pattern(
        "rm-fr",
        "rm -fr",
        "critical",
        "Recursive forced deletion detected (rm -fr)",
        DANGEROUS_RECOMMENDATION,
        "dangerous-command",
    ),
    Pattern(
        "chmod-777",
        "chmod 777",
        "critical",
        "World-writable permissions detected (chmod 777)",
        DANGEROUS_RECOMMENDATION,
        "dangerous-command",
    ),
    Pattern(
        "chmod-recursive-777",
        "chmod -R 777",
        "critical",
        "Recursive world-writable permissions detected (chmod -R 777)",
        DANGEROUS_RECOMMENDATION,
        "dangerous-command",
    ),
    Pattern(
        "curl-pipe-shell",
        r"\bcurl\b[^|\n]*\|\s*(?:ba)?sh\b",
        "critical",
        "curl piped to a shell detected (arbitrary code execution)",
        "Download the script, review it, then run it explicitly",
        "dangerous-command",
        MATCH_REGEX,
    ),
    Pattern(
        "wget-pipe-shell",
        r"\bwget\b[^|\n]*\|\s*(?:ba)?sh\b",
        "critical",
        "wget piped to a shell detected (arbitrary code execution)",
        "Download the script, review it, then run it explicitly",
        "dangerous-command",
        MATCH_REGEX,
    ),
    Pattern(
        "eval",
        r"\beval\b",
        "critical",
        "eval detected (executes arbitrary strings as code)",
        "Call the intended command directly instead of building it for eval",
        "dangerous-command",
        MATCH_REGEX,
    ),
    Pattern(
        "fork-bomb",
        r":\s*\(\s*\)\s*\{\s*:\s*\|\s*:\s*&\s*\}\s*;\s*:",
        "critical",
        "Fork bomb pattern detected",
        DANGEROUS_RECOMMENDATION,
        "dangerous-command",
        MATCH_REGEX,
    ),
    Pattern(
        "dd-wipe",
        "dd if=/dev/zero",
        "critical",
        "Disk wipe pattern detected (dd if=/dev/zero)",
        DANGEROUS_RECOMMENDATION,
        "dangerous-command",
    ),
    Pattern(
        "mkfs",
        r"\bmkfs(?:\.\w+)?\b",
        "critical",
        "Filesystem format command detected (mkfs)",
        DANGEROUS_RECOMMENDATION,
        "dangerous-command",
        MATCH_REGEX,
    ),
    Pattern(
        "format-drive",
        r"\bformat\s+[A-Za-z]:",
        "critical",
        "Drive format command detected (format)",
        DANGEROUS_RECOMMENDATION,
        "dangerous-command",
        MATCH_REGEX,
    ),
)

CAUTION_RECOMMENDATION = "Ensure this command is necessary and safe for your use case"

CAUTION_PATTERNS: Tuple[Pattern, ...] = (
    Pattern(
        "sudo",
        r"\bsudo\s+",
        "warning",
        "Use caution with privilege escalation (sudo)",
        CAUTION_RECOMMENDATION,
        "caution-pattern",
        MATCH_REGEX,
    ),
    Pattern(
        "chmod",
        r"\bchmod\s+",
        "warning",
        "Use caution with permission changes (chmod)",
        CAUTION_RECOMMENDATION,
        "caution-pattern",
        MATCH_REGEX,
    ),
    Pattern(
        "chown",
        r"\bchown\s+",
        "warning",
        "Use caution with ownership changes (chown)",
        CAUTION_RECOMMENDATION,
        "caution-pattern",
        MATCH_REGEX,
    ),
    Pattern(
        "mv-to-root",
        r"\bmv\s+.*\s+/",
        "warning",
        "Use caution when moving files to an absolute path (mv)",
        CAUTION_RECOMMENDATION,
        "caution-pattern",
        MATCH_REGEX,
    ),
    Pattern(
        "cp-to-root",
        r"\bcp\s+.*\s+/",
        "warning",
        "Use caution when copying files to an absolute path (cp)",
        CAUTION_RECOMMENDATION,
        "caution-pattern",
        MATCH_REGEX,
    ),
)

WILDCARD_GRANT_PATTERNS: Tuple[Pattern, ...] = (
    Pattern(
        "wildcard-bash",
        "Bash(*)",
        "high",
        "Bash(*) allows ANY bash command execution",
        "Restrict to specific commands: Bash(git:*, npm:*)",
        "wildcard-bash",
        MATCH_EXACT,
    ),
    Pattern(
        "wildcard-write",
        "Write(*)",
        "high",
        "Write(*) allows modifying ANY file on the system",
        "Restrict to specific paths: Write(/path/to/dir/*)",
        "wildcard-write",
        MATCH_EXACT,
    ),
    Pattern(
        "wildcard-edit",
        "Edit(*)",
        "high",
        "Edit(*) allows editing ANY file on the system",
        "Restrict to specific paths: Edit(/path/to/dir/*)",
        "wildcard-edit",
        MATCH_EXACT,
    ),
)

PATH_TRAVERSAL_MARKERS: Tuple[str, ...] = ("../", "..\\")

# Repositories whose commands earn a bonus instead of the unknown-source penalty
CURATED_SOURCES = frozenset(
    {
        "github.com/hesreallyhim/awesome-claude-code",
        "github.com/wshobson/commands",
        "github.com/anthropics/claude-code-commands",
        "github.com/anthropics/claude-examples",
    }
)

EXECUTION_MARKER = "!`"
EXECUTION_BLOCK_PATTERN = re.compile(r"!`([^`]*)`")

POSITIONAL_ARGUMENT_PATTERN = re.compile(r"\$(ARGUMENTS(?![A-Za-z0-9_])|[1-9])")
SHELL_VARIABLE_PATTERN = re.compile(r'(?<!")(\$\{?[A-Z_][A-Z0-9_]*\}?)(?!")')


def is_inside_double_quotes(text: str, offset: int) -> bool:
    """
    Quote-parity check: an odd number of ``"`` before offset means inside a string

    Escaped and single-quoted strings are not understood.
    """
    return text.count('"', 0, offset) % 2 == 1


def find_unquoted(pattern: "re.Pattern[str]", text: str) -> Iterator["re.Match[str]"]:
    """
    Yield matches of pattern that are not inside a double-quoted string

    Args:
        pattern: Compiled variable pattern
        text: Shell text to search

    Yields:
        Unquoted matches, in order
    """
    for match in pattern.finditer(text):
        if not is_inside_double_quotes(text, match.start()):
            yield match


def has_path_traversal(text: str) -> bool:
    return any(marker in text for marker in PATH_TRAVERSAL_MARKERS)


def find_wildcard_grants(grants: Sequence[str]) -> List[Pattern]:
    """
    Return the wildcard patterns present in a tool-grant list

    Args:
        grants: Tool grants, e.g. ``["Read", "Bash(*)"]``

    Returns:
        Matching patterns in catalog order
    """
    return [
        pattern
        for pattern in WILDCARD_GRANT_PATTERNS
        if any(pattern.matches(grant) for grant in grants)
    ]


def normalize_source(url: str) -> str:
    normalized = url.strip().lower()
    normalized = re.sub(r"^[a-z+]+://", "", normalized)
    if normalized.startswith("www."):
        normalized = normalized[len("www.") :]
    normalized = normalized.rstrip("/")
    if normalized.endswith(".git"):
        normalized = normalized[: -len(".git")]
    return normalized


def is_curated_source(url: str) -> bool:
    """
    Check whether a repository URL belongs to the curated allow-list

    Args:
        url: Repository URL or identifier

    Returns:
        True if the URL is a curated repository or a path inside one
    """
    normalized = normalize_source(url)
    return any(
        normalized == source or normalized.startswith(source + "/") for source in CURATED_SOURCES
    )


def all_patterns() -> List[Pattern]:
    """Return every catalog pattern, grouped dangerous, caution, wildcard"""
    return list(DANGEROUS_PATTERNS) + list(CAUTION_PATTERNS) + list(WILDCARD_GRANT_PATTERNS)
