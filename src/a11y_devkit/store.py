# Host config documents: load, merge, remove and persist server entries
import json
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

import tomli

from a11y_devkit.models import ConfigDocument, ServerDescriptor
from a11y_devkit.utils.backup import backup_corrupt_file, create_backup
from a11y_devkit.utils.simple_toml import parse_simple_toml, serialize_simple_toml

logger = logging.getLogger(__name__)

DEFAULT_SECTION_KEY = "servers"


@dataclass(frozen=True)
class RemoveResult:
    """Outcome of removing server entries from a document.

    ABOUTME: removed_count == 0 tells callers to skip the write
    """
    updated: dict[str, Any]
    removed_count: int


def is_toml_file(path: Path) -> bool:
    return path.suffix.lower() == ".toml"


def _backup_name(path: Path) -> str:
    # .claude/mcp.json and .vscode/mcp.json share a stem
    parts = [path.parent.name.lstrip("."), path.stem.lstrip(".")]
    return "-".join(part for part in parts if part) or "config"


def _parse(path: Path, raw: str) -> dict[str, Any]:
    if is_toml_file(path):
        # Anything outside the table subset is ignored, never an error
        return cast(dict[str, Any], parse_simple_toml(raw))

    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}, got {type(data).__name__}")
    return cast(dict[str, Any], data)


def load_config_document(path: Path) -> dict[str, Any]:
    """Load a host config document.

    ABOUTME: Missing or blank file -> {}
    ABOUTME: Unparseable file -> copied to <name>.bak and {} returned
    ABOUTME: TOML only fails on undecodable bytes; unknown lines are skipped
    ABOUTME: This is the only place read errors are swallowed (reset-on-corruption)

    Args:
        path: Config file; .toml selects the table format, anything else JSON

    Returns:
        Parsed document
    """
    if not path.exists():
        return {}

    try:
        raw = path.read_text(encoding="utf-8")
        if not raw.strip():
            return {}
        return _parse(path, raw)
    except (ValueError, UnicodeDecodeError) as e:
        backup_path = backup_corrupt_file(path)
        logger.warning(f"Could not parse {path} ({e}); saved a copy to {backup_path} and starting fresh")
        return {}


def dump_config_document(path: Path, data: dict[str, Any]) -> str:
    """Render a document in the format selected by path.

    ABOUTME: JSON: 2-space indent, key order preserved, trailing newline
    ABOUTME: TOML output must be readable by tomli or nothing is written

    Raises:
        ValueError: If the document can't be represented in the table subset
    """
    if is_toml_file(path):
        content = serialize_simple_toml(data)
        try:
            tomli.loads(content)
        except tomli.TOMLDecodeError as e:
            raise ValueError(f"Refusing to write unsupported TOML to {path}: {e}") from e
        return content

    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def merge_servers(
    existing: dict[str, Any],
    incoming: Iterable[ServerDescriptor],
    section_key: str = DEFAULT_SECTION_KEY,
) -> dict[str, Any]:
    """Merge server entries into a document's section.

    ABOUTME: Every other top-level key is carried over untouched
    ABOUTME: Last write wins on name collisions
    ABOUTME: Returns a new dict (doesn't mutate inputs)

    Examples:
        >>> merge_servers({}, [ServerDescriptor(name="wcag", command="node", args=["index.js"])])
        {'servers': {'wcag': {'command': 'node', 'args': ['index.js']}}}
    """
    document = ConfigDocument.from_mapping(existing, section_key)
    for server in incoming:
        document.servers[server.name] = server.to_entry()
    return document.to_mapping()


def remove_servers(
    existing: dict[str, Any],
    names: Iterable[str],
    section_key: str = DEFAULT_SECTION_KEY,
) -> RemoveResult:
    """Remove named entries from a document's section.

    ABOUTME: No section or no matches -> original document, removed_count 0
    ABOUTME: An emptied section is dropped from the document entirely
    """
    section = existing.get(section_key)
    if not isinstance(section, dict):
        return RemoveResult(updated=existing, removed_count=0)

    document = ConfigDocument.from_mapping(existing, section_key)
    removed = 0
    for name in names:
        if name in document.servers:
            del document.servers[name]
            removed += 1

    if removed == 0:
        return RemoveResult(updated=existing, removed_count=0)

    return RemoveResult(updated=document.to_mapping(), removed_count=removed)


class ConfigStore:
    """Reads and rewrites host config files.

    ABOUTME: backup_dir, when set, receives a timestamped copy of every
    ABOUTME: existing file right before it is rewritten
    """

    def __init__(self, backup_dir: Path | None = None) -> None:
        self.backup_dir = backup_dir

    def load(self, path: Path) -> dict[str, Any]:
        return load_config_document(path)

    def _write(self, path: Path, data: dict[str, Any]) -> None:
        content = dump_config_document(path, data)
        if self.backup_dir is not None and path.exists():
            create_backup(path, self.backup_dir, _backup_name(path))
        path.write_text(content, encoding="utf-8")

    def install(
        self,
        path: Path,
        servers: Sequence[ServerDescriptor],
        section_key: str = DEFAULT_SECTION_KEY,
    ) -> None:
        """Merge servers into the config at path, creating it if needed."""
        path.parent.mkdir(parents=True, exist_ok=True)
        existing = self.load(path)
        updated = merge_servers(existing, servers, section_key)
        self._write(path, updated)
        logger.info(f"Registered {', '.join(s.name for s in servers)} in {path}")

    def remove(
        self,
        path: Path,
        names: Sequence[str],
        section_key: str = DEFAULT_SECTION_KEY,
    ) -> RemoveResult:
        """Remove named servers from the config at path.

        ABOUTME: Missing file or no matches -> nothing is written
        """
        if not path.exists():
            return RemoveResult(updated={}, removed_count=0)

        existing = self.load(path)
        result = remove_servers(existing, names, section_key)
        if result.removed_count == 0:
            logger.debug(f"No matching servers in {path}; leaving it untouched")
            return result

        self._write(path, result.updated)
        logger.info(f"Removed {result.removed_count} server(s) from {path}")
        return result


def install_servers(
    path: Path,
    servers: Sequence[ServerDescriptor],
    section_key: str = DEFAULT_SECTION_KEY,
) -> None:
    """Merge servers into the config at path without timestamped backups."""
    ConfigStore().install(path, servers, section_key)


def remove_servers_from_file(
    path: Path,
    names: Sequence[str],
    section_key: str = DEFAULT_SECTION_KEY,
) -> RemoveResult:
    return ConfigStore().remove(path, names, section_key)
