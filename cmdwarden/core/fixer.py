"""
fixer.py - Automatic fixing for command definitions

This module rewrites command text to remove a fixed set of scanner issues:
unquoted arguments in shell execution, wildcard tool grants and missing
metadata. Fixing works on text only and does not re-run the scanner.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..rules.catalog import (
    EXECUTION_BLOCK_PATTERN,
    POSITIONAL_ARGUMENT_PATTERN,
    find_unquoted,
)
from ..utils.frontmatter import parse_document, render_document, split_grants

logger = logging.getLogger(__name__)

DEFAULT_BASH_COMMANDS = ["git", "npm", "bash", "sh"]
DEFAULT_SAFE_WRITE_PATH = "$HOME/.claude/*"

MAX_DESCRIPTION_LENGTH = 100

# Body lines starting with these are shell execution or file references
NON_DESCRIPTION_PREFIXES = ("!", "@")

HEADING_PATTERN = re.compile(r"^#+\s*")

FIX_ORDER = (
    "quote_variables",
    "restrict_bash",
    "argument_hint",
    "description",
    "restrict_write_edit",
)


@dataclass
class FixResult:
    """Outcome of fixing one command"""

    subject_name: str
    before: str
    after: str
    changes_applied: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changes_applied)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject_name": self.subject_name,
            "changed": self.changed,
            "changes_applied": list(self.changes_applied),
            "before": self.before,
            "after": self.after,
        }


@dataclass
class FixContext:
    """Working copy of a command while fixes are applied"""

    metadata: Dict[str, Any]
    body: str


def quote_positional_arguments(shell: str) -> str:
    """
    Wrap unquoted $1..$9 and $ARGUMENTS in double quotes

    Args:
        shell: Contents of one execution block

    Returns:
        The same text with unquoted references quoted; all other
        characters are left untouched
    """
    pieces = []
    position = 0

    for match in find_unquoted(POSITIONAL_ARGUMENT_PATTERN, shell):
        pieces.append(shell[position : match.start()])
        pieces.append(f'"{match.group(0)}"')
        position = match.end()

    pieces.append(shell[position:])

    return "".join(pieces)


def generate_argument_hint(text: str) -> Optional[str]:
    """
    Build an argument hint from the positional references in text

    Args:
        text: Command body

    Returns:
        Hint like ``[arg1] [arg2] [arguments]``, or None when no
        positional references are used
    """
    references = {match.group(1) for match in POSITIONAL_ARGUMENT_PATTERN.finditer(text)}
    if not references:
        return None

    numbers = sorted(int(ref) for ref in references if ref.isdigit())
    tokens = [f"[arg{number}]" for number in numbers]
    if "ARGUMENTS" in references:
        tokens.append("[arguments]")

    return " ".join(tokens)


def extract_description(text: str) -> Optional[str]:
    """
    Take a description from the first usable line of the body

    Lines that start with an execution or file-reference marker are
    skipped. Heading marks are removed and the result is truncated.
    """
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped or stripped.startswith(NON_DESCRIPTION_PREFIXES):
            continue

        description = HEADING_PATTERN.sub("", stripped).strip()
        if description:
            return description[:MAX_DESCRIPTION_LENGTH]

    return None


class Fixer:
    """Class for fixing command definition issues"""

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the fixer

        Args:
            config: Configuration dictionary
        """
        self.config = config or {}
        self.fixes_applied = 0
        self.fixes_skipped = 0

        self.fixers: Dict[str, Callable[[FixContext], Optional[str]]] = {
            "quote_variables": self.fix_quote_variables,
            "restrict_bash": self.fix_restrict_bash,
            "argument_hint": self.fix_argument_hint,
            "description": self.fix_description,
            "restrict_write_edit": self.fix_restrict_write_edit,
        }

    @property
    def bash_grant(self) -> str:
        """Replacement for Bash(*), built from ``default_bash_commands``"""
        commands = self.config.get("default_bash_commands") or DEFAULT_BASH_COMMANDS

        unique: List[str] = []
        for command in commands:
            if command not in unique:
                unique.append(command)

        return "Bash(" + ", ".join(f"{command}:*" for command in unique) + ")"

    @property
    def safe_write_path(self) -> str:
        return self.config.get("safe_write_path") or DEFAULT_SAFE_WRITE_PATH

    def is_enabled(self, fix_id: str) -> bool:
        return bool(self.config.get("auto_fix", {}).get("rules", {}).get(fix_id, True))

    def fix_command(self, name: str, raw_text: str) -> FixResult:
        """
        Apply every enabled fix to a command

        Args:
            name: Command name
            raw_text: Raw command text

        Returns:
            FixResult; ``after`` equals ``before`` when nothing changed
        """
        self.fixes_applied = 0
        self.fixes_skipped = 0

        if not self.config.get("auto_fix", {}).get("enabled", True):
            logger.debug("Auto-fix disabled; leaving %s unchanged", name)
            return FixResult(subject_name=name, before=raw_text, after=raw_text)

        document = parse_document(raw_text)
        context = FixContext(metadata=dict(document.metadata), body=document.body)
        changes: List[str] = []

        for fix_id in FIX_ORDER:
            if not self.is_enabled(fix_id):
                continue

            try:
                change = self.fixers[fix_id](context)
            except Exception as e:
                logger.warning("Fix %s failed on %s: %s", fix_id, name, e)
                self.fixes_skipped += 1
                continue

            if change:
                logger.debug("Fixed %s: %s", name, change)
                self.fixes_applied += 1
                changes.append(change)

        after = render_document(context.metadata, context.body) if changes else raw_text

        return FixResult(subject_name=name, before=raw_text, after=after, changes_applied=changes)

    def fix_quote_variables(self, context: FixContext) -> Optional[str]:
        """Quote positional arguments inside execution blocks"""
        fixed = EXECUTION_BLOCK_PATTERN.sub(
            lambda block: "!`" + quote_positional_arguments(block.group(1)) + "`",
            context.body,
        )

        if fixed == context.body:
            return None

        context.body = fixed
        return "Quoted unquoted variables in bash execution"

    def fix_restrict_bash(self, context: FixContext) -> Optional[str]:
        """Replace Bash(*) with a fixed list of command prefixes"""
        grants = split_grants(context.metadata.get("allowed-tools"))
        if "Bash(*)" not in grants:
            return None

        replacement = self.bash_grant
        context.metadata["allowed-tools"] = [
            replacement if grant == "Bash(*)" else grant for grant in grants
        ]
        return "Restricted Bash(*) to specific commands"

    def fix_argument_hint(self, context: FixContext) -> Optional[str]:
        """Add an argument-hint when the body uses positional arguments"""
        if context.metadata.get("argument-hint"):
            return None

        hint = generate_argument_hint(context.body)
        if not hint:
            return None

        context.metadata["argument-hint"] = hint
        return f"Added argument-hint: {hint}"

    def fix_description(self, context: FixContext) -> Optional[str]:
        """Add a description taken from the body"""
        if context.metadata.get("description"):
            return None

        description = extract_description(context.body)
        if not description:
            return None

        context.metadata["description"] = description
        return f"Added description: {description}"

    def fix_restrict_write_edit(self, context: FixContext) -> Optional[str]:
        """Scope Write(*) and Edit(*) to the safe write path"""
        grants = split_grants(context.metadata.get("allowed-tools"))
        wildcards = {"Write(*)": "Write", "Edit(*)": "Edit"}

        if not any(grant in wildcards for grant in grants):
            return None

        context.metadata["allowed-tools"] = [
            f"{wildcards[grant]}({self.safe_write_path})" if grant in wildcards else grant
            for grant in grants
        ]
        return "Restricted Write(*) and/or Edit(*) to specific paths"


def fix_command(name: str, raw_text: str, config: Optional[Dict[str, Any]] = None) -> FixResult:
    """
    Fix a single command definition

    Args:
        name: Command name
        raw_text: Raw command text
        config: Configuration dictionary

    Returns:
        FixResult
    """
    return Fixer(config=config).fix_command(name, raw_text)
