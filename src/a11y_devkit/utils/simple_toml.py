# Minimal TOML reader/writer for server tables
import re
from typing import Any

import tomli

# ABOUTME: A key is bare (letters, digits, _ and -) or double-quoted
_KEY = r'"(?:[^"\\]|\\.)*"|[^".\[\]]+?'

# ABOUTME: [section.table] with exactly two dot-separated components
TABLE_HEADER_PATTERN = re.compile(rf"^\[\s*({_KEY})\s*\.\s*({_KEY})\s*\]$")

# ABOUTME: Any other header line; it closes the open table
OTHER_HEADER_PATTERN = re.compile(r"^\[.*\]$")

KEY_VALUE_PATTERN = re.compile(r'^("(?:[^"\\]|\\.)*"|[A-Za-z0-9_-]+)\s*=\s*(.+)$')

BARE_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

# ABOUTME: One array item: a quoted string (with escapes) or a bare token
ARRAY_ITEM_PATTERN = re.compile(r'\s*("(?:[^"\\]|\\.)*"|[^,]+?)\s*(?:,|$)')

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
}

_UNESCAPES = {
    "\\": "\\",
    '"': '"',
    "n": "\n",
    "t": "\t",
    "r": "\r",
}


class TomlLiteral(str):
    """Value kept verbatim because it isn't a string or string array.

    ABOUTME: Numbers, booleans, inline tables... are never coerced
    ABOUTME: Re-emitted unquoted when it is a valid TOML value, else as a string
    """


def _escape(value: str) -> str:
    result: list[str] = []
    for ch in value:
        if ch in _ESCAPES:
            result.append(_ESCAPES[ch])
        elif ch < " " or ch == "\x7f":
            result.append(f"\\u{ord(ch):04x}")
        else:
            result.append(ch)
    return "".join(result)


def _unescape(value: str) -> str:
    result: list[str] = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch != "\\":
            result.append(ch)
            i += 1
            continue
        nxt = value[i + 1:i + 2]
        if nxt == "u" and re.fullmatch(r"[0-9A-Fa-f]{4}", value[i + 2:i + 6]):
            result.append(chr(int(value[i + 2:i + 6], 16)))
            i += 6
            continue
        result.append(_UNESCAPES.get(nxt, "\\" + nxt))
        i += 2
    return "".join(result)


def _is_quoted(token: str) -> bool:
    return len(token) >= 2 and token.startswith('"') and token.endswith('"')


def _unquote_key(token: str) -> str:
    token = token.strip()
    return _unescape(token[1:-1]) if _is_quoted(token) else token


def is_valid_literal(token: str) -> bool:
    """Check a bare token is a complete TOML value on its own."""
    try:
        tomli.loads(f"v = {token}")
    except tomli.TOMLDecodeError:
        return False
    return True


def _parse_array(inner: str) -> list[str]:
    items: list[str] = []
    for match in ARRAY_ITEM_PATTERN.finditer(inner):
        token = match.group(1).strip()
        if not token:
            continue
        items.append(_unescape(token[1:-1]) if _is_quoted(token) else TomlLiteral(token))
    return items


def _parse_value(raw: str) -> Any:
    value = raw.strip()
    if value.startswith("[") and value.endswith("]"):
        items = _parse_array(value[1:-1])
        split_literal = any(
            isinstance(item, TomlLiteral) and not is_valid_literal(item) for item in items
        )
        # Arrays of inline tables or nested arrays don't split on commas
        if split_literal and is_valid_literal(value):
            return TomlLiteral(value)
        return items
    if _is_quoted(value):
        return _unescape(value[1:-1])
    return TomlLiteral(value)


def parse_simple_toml(content: str) -> dict[str, dict[str, dict[str, Any]]]:
    """Parse the [section.table] subset of TOML.

    ABOUTME: Never raises; lines outside the subset are skipped
    ABOUTME: Headers with any other depth are ignored and close the open table
    ABOUTME: key = value lines outside a recognized table are dropped
    ABOUTME: A repeated header reopens the same table
    ABOUTME: Values: "string", ["array", "of", "strings"], or TomlLiteral

    Args:
        content: Raw file text

    Returns:
        Nested dict: section -> table -> key -> value

    Examples:
        >>> parse_simple_toml('[mcp_servers.wcag]\\ncommand = "node"\\n')
        {'mcp_servers': {'wcag': {'command': 'node'}}}
    """
    result: dict[str, dict[str, dict[str, Any]]] = {}
    current: dict[str, Any] | None = None

    for line in content.splitlines():
        stripped = line.strip()

        if not stripped or stripped.startswith("#"):
            continue

        header = TABLE_HEADER_PATTERN.match(stripped)
        if header:
            section, table = (_unquote_key(part) for part in header.groups())
            current = result.setdefault(section, {}).setdefault(table, {})
            continue
        if OTHER_HEADER_PATTERN.match(stripped):
            current = None
            continue

        kv = KEY_VALUE_PATTERN.match(stripped)
        if kv and current is not None:
            key, raw_value = kv.groups()
            current[_unquote_key(key)] = _parse_value(raw_value)

    return result


def _format_key(key: str) -> str:
    if BARE_KEY_PATTERN.match(key):
        return key
    return f'"{_escape(key)}"'


def _format_value(value: Any) -> str:
    if isinstance(value, TomlLiteral):
        if is_valid_literal(value):
            return str(value)
        return f'"{_escape(str(value))}"'
    if isinstance(value, (list, tuple)):
        return _format_array(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return f'"{_escape(str(value))}"'


def _format_array(items: list[Any] | tuple[Any, ...]) -> str:
    """Format list as TOML array.

    ABOUTME: Converts Python list to ["item1", "item2"] format
    """
    if not items:
        return "[]"
    return "[" + ", ".join(_format_value(item) for item in items) + "]"


def serialize_simple_toml(data: dict[str, Any]) -> str:
    """Render nested section -> table -> fields dicts as TOML.

    ABOUTME: Insertion order is kept for sections, tables and fields
    ABOUTME: Blank line after each table; output ends with one newline
    ABOUTME: Non-dict sections/tables are outside the subset and skipped
    ABOUTME: Keys that aren't bare are quoted

    Example output:
        [mcp_servers.wcag]
        command = "node"
        args = ["/repos/wcag-mcp/index.js"]
    """
    lines: list[str] = []

    for section, tables in data.items():
        if not isinstance(tables, dict):
            continue

        for table_name, fields in tables.items():
            if not isinstance(fields, dict):
                continue

            lines.append(f"[{_format_key(section)}.{_format_key(table_name)}]")
            for key, value in fields.items():
                if value is None:
                    continue
                lines.append(f"{_format_key(key)} = {_format_value(value)}")
            lines.append("")

    if not lines:
        return ""
    return "\n".join(lines).rstrip() + "\n"
