# Deploy configuration loading and parsing for a11y-devkit
import json
import shlex
from pathlib import Path
from typing import Any

from a11y_devkit.defaults import DEFAULT_CONFIG
from a11y_devkit.errors import ConfigError
from a11y_devkit.models import DeployConfig, HostDescriptor, IntegrationDefinition, PlatformOverride
from a11y_devkit.paths import DEFAULT_NAMESPACE
from a11y_devkit.utils import expand_env_vars

# ABOUTME: Top-level metadata section of the deploy config
META_KEY = "a11y-devkit"

# ABOUTME: Lower-cased override keys accepted for each platform
OVERRIDE_ALIASES = {
    "windows": "windows",
    "win32": "windows",
    "mac": "mac",
    "macos": "mac",
    "darwin": "mac",
}


def _require(data: dict[str, Any], key: str, what: str) -> Any:
    if key not in data or data[key] in (None, ""):
        raise ConfigError(f"{what} missing required '{key}' field")
    return data[key]


def _parse_override(raw: Any, where: str) -> PlatformOverride:
    if not isinstance(raw, dict):
        raise ConfigError(f"{where} must be an object")
    return PlatformOverride(
        skills_folder=raw.get("skillsFolder"),
        mcp_config_file=raw.get("mcpConfigFile"),
    )


def parse_host(data: dict[str, Any]) -> HostDescriptor:
    """Build a HostDescriptor from its JSON form.

    ABOUTME: Accepts mcpServerKey as an alias of serverSectionKey
    ABOUTME: Unknown override platforms are kept for validation to report
    """
    if not isinstance(data, dict):
        raise ConfigError("Each host must be an object")

    host_id = _require(data, "id", "Host")
    section_key = data.get("serverSectionKey") or data.get("mcpServerKey")
    if not section_key:
        raise ConfigError(f"Host '{host_id}' missing required 'serverSectionKey' field")

    overrides: dict[str, PlatformOverride] = {}
    raw_overrides = data.get("platformOverrides") or {}
    if not isinstance(raw_overrides, dict):
        raise ConfigError(f"Host '{host_id}': 'platformOverrides' must be an object")
    for platform_name, raw in raw_overrides.items():
        key = OVERRIDE_ALIASES.get(platform_name.lower(), platform_name.lower())
        overrides[key] = _parse_override(raw, f"Host '{host_id}' override '{platform_name}'")

    return HostDescriptor(
        id=host_id,
        display_name=data.get("displayName") or host_id,
        server_section_key=section_key,
        skills_folder=data.get("skillsFolder"),
        mcp_config_file=data.get("mcpConfigFile"),
        platform_overrides=overrides,
    )


def _parse_build_steps(name: str, raw: Any) -> list[list[str]]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError(f"Integration '{name}': 'buildSteps' must be a list")

    steps: list[list[str]] = []
    for step in raw:
        if isinstance(step, str):
            steps.append(shlex.split(step))
        elif isinstance(step, list) and all(isinstance(part, str) for part in step):
            steps.append(list(step))
        else:
            raise ConfigError(
                f"Integration '{name}': each build step must be a string or a list of strings"
            )
    return steps


def parse_integration(data: dict[str, Any]) -> IntegrationDefinition:
    """Build an IntegrationDefinition from its JSON form.

    ABOUTME: Expands ${VAR} in repoUrl, command and args
    ABOUTME: String build steps are split with shlex, not on whitespace
    """
    if not isinstance(data, dict):
        raise ConfigError("Each integration must be an object")

    name = _require(data, "name", "Integration")
    repo_url = _require(data, "repoUrl", f"Integration '{name}'")
    command = _require(data, "command", f"Integration '{name}'")

    args = data.get("args", [])
    if not isinstance(args, list):
        raise ConfigError(f"Integration '{name}': 'args' must be a list")

    hosts = data.get("hosts")
    if hosts is not None and not isinstance(hosts, list):
        raise ConfigError(f"Integration '{name}': 'hosts' must be a list")

    return IntegrationDefinition(
        name=name,
        repo_url=expand_env_vars(repo_url),
        command=expand_env_vars(command),
        args=[expand_env_vars(str(arg)) for arg in args],
        type=data.get("type"),
        build_command=data.get("buildCommand"),
        build_steps=_parse_build_steps(name, data.get("buildSteps")),
        hosts=[str(h) for h in hosts] if hosts is not None else None,
    )


def parse_deploy_config(data: dict[str, Any]) -> DeployConfig:
    """Turn the raw JSON structure into a DeployConfig.

    Raises:
        ConfigError: If required sections or fields are missing
    """
    if not isinstance(data, dict):
        raise ConfigError("Deploy config must be a JSON object")

    meta = data.get(META_KEY, {})
    if not isinstance(meta, dict):
        raise ConfigError(f"'{META_KEY}' section must be an object")

    if "hosts" not in data:
        raise ConfigError("Missing required 'hosts' section in config")
    if "integrations" not in data:
        raise ConfigError("Missing required 'integrations' section in config")
    if not isinstance(data["hosts"], list) or not isinstance(data["integrations"], list):
        raise ConfigError("'hosts' and 'integrations' must be lists")

    return DeployConfig(
        version=str(meta.get("version", "1.0")),
        namespace=meta.get("namespace") or DEFAULT_NAMESPACE,
        hosts=[parse_host(host) for host in data["hosts"]],
        integrations=[parse_integration(item) for item in data["integrations"]],
    )


def load_deploy_config(path: Path | None = None) -> DeployConfig:
    """Load a deploy config file, or the bundled defaults when path is None.

    Raises:
        FileNotFoundError: If path is given but doesn't exist
        ConfigError: If the JSON is invalid or incomplete
    """
    if path is None:
        return parse_deploy_config(DEFAULT_CONFIG)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    return parse_deploy_config(data)
