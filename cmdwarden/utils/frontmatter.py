"""
frontmatter.py - Metadata block parsing for command definitions

This module splits a command definition into its metadata block and body.
The block is a small line-based subset of YAML delimited by ``---`` marker
lines. Parsing is tolerant: a missing or unterminated block yields empty
metadata and the whole input as body, and nothing here ever raises on
malformed input.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

MetadataValue = Union[str, List[str], bool]

BLOCK_MARKER = "---"

KEY_VALUE_PATTERN = re.compile(r"^([a-z-]+):\s*(.*)$")
LIST_ITEM_PATTERN = re.compile(r"^\s*-\s*(.*)$")

QUOTE_CHARS = "\"'"
BOOLEAN_VALUES = {"true": True, "false": False}


class ParserState(Enum):
    """States of the metadata block parser."""

    SEEKING_BLOCK_START = "seeking-block-start"
    IN_BLOCK = "in-block"
    IN_BODY = "in-body"


@dataclass(frozen=True)
class ParsedDocument:
    """A command definition split into metadata and body"""

    metadata: Mapping[str, MetadataValue] = field(default_factory=dict)
    body: str = ""
    has_block: bool = False
    body_line: int = 1

    def __post_init__(self) -> None:
        """Expose metadata read-only"""
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def get(self, key: str, default: Any = None) -> Any:
        """Return a metadata value, or default if the key is absent"""
        return self.metadata.get(key, default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        """
        Return a metadata value interpreted as a boolean

        Args:
            key: Metadata key
            default: Value returned when the key is absent or not boolean-looking

        Returns:
            Boolean value
        """
        value = self.metadata.get(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in BOOLEAN_VALUES:
            return BOOLEAN_VALUES[value.strip().lower()]
        return default

    def tool_grants(self) -> List[str]:
        """Return the ``allowed-tools`` entries as a list of grant strings"""
        return split_grants(self.metadata.get("allowed-tools"))

    def line_of(self, offset: int) -> int:
        """
        Map a character offset in the body to a 1-based line in the raw text

        Args:
            offset: Offset into ``body``

        Returns:
            Line number in the original input
        """
        return self.body_line + self.body.count("\n", 0, max(0, offset))


def _unquote(value: str) -> str:
    """Strip one pair of matching surrounding quotes"""
    if len(value) >= 2 and value[0] in QUOTE_CHARS and value[-1] == value[0]:
        inner = value[1:-1]
        if value[0] == '"':
            inner = re.sub(r'\\(["\\])', r"\1", inner)
        return inner
    return value


def split_list_items(text: str) -> List[str]:
    """
    Split the inside of an inline list on top-level commas

    Commas nested in parentheses, brackets or quotes do not split, so
    ``Bash(git:*, npm:*), Read`` gives two items. Surrounding quotes are
    removed from each item and empty items are dropped.

    Args:
        text: List contents without the enclosing brackets

    Returns:
        List of trimmed items
    """
    items: List[str] = []
    current: List[str] = []
    depth = 0
    quote: Optional[str] = None
    escaped = False

    for char in text:
        if quote:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue

        if char in QUOTE_CHARS and not "".join(current).strip():
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}" and depth:
            depth -= 1
        elif char == "," and depth == 0:
            items.append("".join(current))
            current = []
            continue
        current.append(char)

    items.append("".join(current))

    return [_unquote(item.strip()) for item in items if item.strip()]


def is_inline_list(value: str) -> bool:
    """
    Check whether a value is one bracketed list, e.g. ``[a, b]``

    ``[pr-number] [priority]`` starts and ends with brackets but closes the
    first pair early, so it is a plain string.
    """
    if not (value.startswith("[") and value.endswith("]")):
        return False

    depth = 0
    quote: Optional[str] = None
    previous = ""

    for index, char in enumerate(value):
        if quote:
            if char == quote:
                quote = None
        elif char in QUOTE_CHARS and previous in ("[", ","):
            quote = char
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return index == len(value) - 1
        if not char.isspace():
            previous = char

    return False


def parse_scalar(value: str) -> MetadataValue:
    """
    Interpret a single metadata value

    Args:
        value: Raw value text

    Returns:
        A list for bracketed values, a bool for ``true``/``false``,
        otherwise the unquoted string
    """
    value = value.strip()

    if is_inline_list(value):
        return split_list_items(value[1:-1])

    if value in BOOLEAN_VALUES:
        return BOOLEAN_VALUES[value]

    return _unquote(value)


def _finalize_value(lines: List[str]) -> MetadataValue:
    """Collapse the collected lines of one entry into its value"""
    first, continuation = lines[0].strip(), lines[1:]

    # "key:" followed only by "- item" lines is a block list
    items = [line for line in continuation if line.strip()]
    if not first and items and all(LIST_ITEM_PATTERN.match(line) for line in items):
        values = []
        for line in items:
            match = LIST_ITEM_PATTERN.match(line)
            if match and match.group(1).strip():
                values.append(_unquote(match.group(1).strip()))
        return values

    return parse_scalar("\n".join(lines))


def parse_document(text: str) -> ParsedDocument:
    """
    Split raw command text into metadata and body

    The parser walks the input line by line through three states.
    ``seeking-block-start`` skips leading blank lines and expects a ``---``
    marker; anything else means there is no block. ``in-block`` collects
    ``key: value`` entries, appending non-matching lines to the current
    entry as continuations, until the closing marker. ``in-body`` collects
    the rest.

    Args:
        text: Raw command definition

    Returns:
        ParsedDocument; metadata is empty when no well-formed block exists
    """
    if not isinstance(text, str):
        text = "" if text is None else str(text)

    state = ParserState.SEEKING_BLOCK_START
    entries: List[Tuple[str, List[str]]] = []
    body_lines: List[str] = []
    body_start = 0

    for index, raw_line in enumerate(text.split("\n")):
        line = raw_line.rstrip("\r")

        if state is ParserState.SEEKING_BLOCK_START:
            stripped = line.lstrip("\ufeff").strip()
            if not stripped:
                continue
            if stripped != BLOCK_MARKER:
                break
            state = ParserState.IN_BLOCK

        elif state is ParserState.IN_BLOCK:
            if line.strip() == BLOCK_MARKER:
                state = ParserState.IN_BODY
                body_start = index + 1
                continue

            match = KEY_VALUE_PATTERN.match(line)
            if match:
                entries.append((match.group(1), [match.group(2)]))
            elif entries:
                entries[-1][1].append(line)

        else:
            body_lines.append(line)

    if state is not ParserState.IN_BODY:
        return ParsedDocument(metadata={}, body=text, has_block=False, body_line=1)

    metadata: Dict[str, MetadataValue] = {}
    for key, lines in entries:
        metadata[key] = _finalize_value(lines)

    leading_blank = 0
    for line in body_lines:
        if line.strip():
            break
        leading_blank += 1

    return ParsedDocument(
        metadata=metadata,
        body="\n".join(body_lines).strip(),
        has_block=True,
        body_line=body_start + leading_blank + 1,
    )


def split_grants(value: Any) -> List[str]:
    """
    Normalize an ``allowed-tools`` value to a list of grants

    Args:
        value: A list, a comma-separated string, or None

    Returns:
        List of grant strings
    """
    if value is None or isinstance(value, bool):
        return []

    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]

    text = str(value).strip()
    if text.startswith("[") and text.endswith("]"):
        text = text[1:-1]

    return split_list_items(text)


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _needs_quoting(text: str) -> bool:
    if not text or text in BOOLEAN_VALUES:
        return True
    if any(char.isspace() for char in text):
        return True
    return text[0] in "[" + QUOTE_CHARS


def render_value(value: Any) -> str:
    """
    Render one metadata value for a ``key: value`` line

    Args:
        value: String, list of strings or bool

    Returns:
        Rendered value text
    """
    if isinstance(value, bool):
        return "true" if value else "false"

    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_quote(str(item)) for item in value) + "]"

    text = str(value)
    return _quote(text) if _needs_quoting(text) else text


def render_document(metadata: Mapping[str, Any], body: str) -> str:
    """
    Rebuild command text from metadata and body

    Args:
        metadata: Ordered metadata mapping
        body: Body text

    Returns:
        Text with a metadata block, a blank line and the body
    """
    lines = [BLOCK_MARKER]

    for key, value in metadata.items():
        lines.append(f"{key}: {render_value(value)}")

    lines.append(BLOCK_MARKER)
    lines.append("")
    lines.append(body)

    return "\n".join(lines)
