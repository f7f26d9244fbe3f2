# ABOUTME: Backup helpers for host configuration files.
# ABOUTME: Sibling .bak copies for corrupt files, timestamped copies before rewrites.
import logging
import re
import shutil
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

# ABOUTME: Appended to the file name of an unreadable config
CORRUPT_BACKUP_SUFFIX = ".bak"

MAX_BACKUPS_PER_FILE = 5

# Matches {stem}_{YYYYMMDD}_{HHMMSS}{suffix}, e.g. mcp_20260108_143022.json
BACKUP_NAME_PATTERN = re.compile(r"^(.+?)_(\d{8}_\d{6})(\..+)?$")


def backup_corrupt_file(path: Path) -> Path:
    """Copy an unreadable config next to itself as <name>.bak.

    ABOUTME: Overwrites an older .bak of the same file
    ABOUTME: Uses shutil.copy2() so the original bytes and mtime are kept
    """
    backup_path = path.with_name(path.name + CORRUPT_BACKUP_SUFFIX)
    shutil.copy2(path, backup_path)
    return backup_path


def create_backup(source_path: Path, backup_dir: Path, name: str | None = None) -> Path:
    """Create a timestamped copy of a config file before it is rewritten.

    ABOUTME: Backup name: {stem}_{YYYYMMDD}_{HHMMSS}{suffix}
    ABOUTME: Keeps the newest MAX_BACKUPS_PER_FILE copies per stem

    Args:
        source_path: File about to be rewritten
        backup_dir: Directory receiving the copy (created if missing)
        name: Backup file prefix (default: the source stem)

    Returns:
        Path to the backup file

    Raises:
        FileNotFoundError: If source_path doesn't exist
    """
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {source_path}")

    backup_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    stem = name or source_path.stem.lstrip(".") or "config"
    backup_path = backup_dir / f"{stem}_{timestamp}{source_path.suffix}"

    shutil.copy2(source_path, backup_path)
    logger.debug(f"Backed up {source_path} to {backup_path}")

    cleanup_old_backups(backup_dir)
    return backup_path


def cleanup_old_backups(backup_dir: Path, max_backups: int = MAX_BACKUPS_PER_FILE) -> list[Path]:
    """Delete all but the newest backups of each file stem.

    ABOUTME: Failures to delete are logged, never raised
    """
    deleted: list[Path] = []

    if not backup_dir.exists():
        return deleted

    grouped: dict[str, list[tuple[str, Path]]] = {}
    for file_path in backup_dir.iterdir():
        if not file_path.is_file():
            continue
        match = BACKUP_NAME_PATTERN.match(file_path.name)
        if not match:
            continue
        key = match.group(1) + (match.group(3) or "")
        grouped.setdefault(key, []).append((match.group(2), file_path))

    for backups in grouped.values():
        backups.sort(key=lambda item: item[0], reverse=True)
        for _timestamp, file_path in backups[max_backups:]:
            try:
                file_path.unlink()
                deleted.append(file_path)
                logger.debug(f"Deleted old backup: {file_path}")
            except OSError as e:
                logger.warning(f"Failed to delete old backup {file_path}: {e}")

    return deleted
