# ABOUTME: Utility modules for a11y-devkit
# ABOUTME: Exports env expansion, backups, the minimal TOML codec and validation

from a11y_devkit.utils.backup import backup_corrupt_file, create_backup
from a11y_devkit.utils.env import expand_env_vars
from a11y_devkit.utils.simple_toml import TomlLiteral, parse_simple_toml, serialize_simple_toml
from a11y_devkit.utils.validation import (
    ValidationIssue,
    validate_command_exists,
    validate_deploy_config,
    validate_server,
)

__all__ = [
    "backup_corrupt_file",
    "create_backup",
    "expand_env_vars",
    "TomlLiteral",
    "parse_simple_toml",
    "serialize_simple_toml",
    "ValidationIssue",
    "validate_command_exists",
    "validate_deploy_config",
    "validate_server",
]
