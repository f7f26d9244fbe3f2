# Platform detection and host path resolution
import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

from a11y_devkit.models import (
    HostDescriptor,
    PlatformInfo,
    PlatformOverride,
    ResolvedHostPaths,
    Scope,
)

# ABOUTME: Directory name used for repos/backups under the project or app-support dir
DEFAULT_NAMESPACE = "a11y-devkit"


def get_platform(platform_id: str | None = None) -> PlatformInfo:
    """Describe the running operating system.

    ABOUTME: Uses sys.platform unless an explicit id is given (tests)
    """
    pid = platform_id if platform_id is not None else sys.platform
    return PlatformInfo(
        platform_id=pid,
        is_windows=pid == "win32",
        is_mac=pid == "darwin",
        is_linux=pid.startswith("linux"),
    )


def _home(home: Path | None) -> Path:
    return home if home is not None else Path.home()


def get_app_support_dir(
    platform_info: PlatformInfo,
    *,
    environ: Mapping[str, str] | None = None,
    home: Path | None = None,
) -> Path:
    """Return the OS-conventional per-user application state directory.

    ABOUTME: Windows: %APPDATA% or ~/AppData/Roaming
    ABOUTME: macOS: ~/Library/Application Support
    ABOUTME: Everything else: $XDG_CONFIG_HOME or ~/.config

    Args:
        platform_info: Detected platform
        environ: Environment mapping (defaults to os.environ)
        home: Home directory (defaults to Path.home())

    Returns:
        Application-support directory (not created)
    """
    env = os.environ if environ is None else environ
    user_home = _home(home)

    if platform_info.is_windows:
        appdata = env.get("APPDATA")
        return Path(appdata) if appdata else user_home / "AppData" / "Roaming"

    if platform_info.is_mac:
        return user_home / "Library" / "Application Support"

    xdg = env.get("XDG_CONFIG_HOME")
    return Path(xdg) if xdg else user_home / ".config"


def _platform_override(host: HostDescriptor, platform_info: PlatformInfo) -> PlatformOverride | None:
    if platform_info.is_windows:
        return host.platform_overrides.get("windows")
    if platform_info.is_mac:
        return host.platform_overrides.get("mac")
    return None


def get_host_application_paths(
    project_root: Path,
    platform_info: PlatformInfo,
    hosts: Sequence[HostDescriptor],
    *,
    environ: Mapping[str, str] | None = None,
    home: Path | None = None,
) -> dict[str, ResolvedHostPaths]:
    """Compute config and skills locations for every host.

    ABOUTME: Local paths always live under project_root with the default names
    ABOUTME: Global paths use the app-support dir only for hosts declaring
    ABOUTME: platform overrides, and only on Windows/macOS; otherwise home

    Args:
        project_root: Root of the project being configured
        platform_info: Detected platform
        hosts: Host descriptors, in the order results should be reported
        environ: Environment mapping (defaults to os.environ)
        home: Home directory (defaults to Path.home())

    Returns:
        Dict mapping host id to its resolved paths
    """
    user_home = _home(home)
    paths: dict[str, ResolvedHostPaths] = {}

    for host in hosts:
        skills_folder = host.default_skills_folder
        config_file = host.default_mcp_config_file

        global_base = user_home
        global_skills_folder = skills_folder
        global_config_file = config_file

        if host.platform_overrides and (platform_info.is_windows or platform_info.is_mac):
            global_base = get_app_support_dir(platform_info, environ=environ, home=user_home)
            override = _platform_override(host, platform_info)
            if override is not None:
                global_skills_folder = override.skills_folder or skills_folder
                global_config_file = override.mcp_config_file or config_file

        paths[host.id] = ResolvedHostPaths(
            display_name=host.display_name,
            global_config_path=global_base / global_config_file,
            local_config_path=project_root / config_file,
            server_section_key=host.server_section_key,
            global_skills_dir=global_base / global_skills_folder,
            local_skills_dir=project_root / skills_folder,
        )

    return paths


def get_state_dir(
    scope: Scope,
    project_root: Path,
    platform_info: PlatformInfo,
    *,
    namespace: str = DEFAULT_NAMESPACE,
    environ: Mapping[str, str] | None = None,
    home: Path | None = None,
) -> Path:
    """Directory holding provisioned repos and config backups for a scope."""
    if scope == "local":
        return project_root / f".{namespace}"
    return get_app_support_dir(platform_info, environ=environ, home=home) / namespace


def get_repo_dir(
    scope: Scope,
    project_root: Path,
    platform_info: PlatformInfo,
    name: str,
    *,
    namespace: str = DEFAULT_NAMESPACE,
    environ: Mapping[str, str] | None = None,
    home: Path | None = None,
) -> Path:
    """Checkout location of an integration's repository.

    ABOUTME: local  -> <project_root>/.<namespace>/repos/<name>
    ABOUTME: global -> <app_support>/<namespace>/repos/<name>
    """
    state_dir = get_state_dir(
        scope, project_root, platform_info, namespace=namespace, environ=environ, home=home
    )
    return state_dir / "repos" / name
