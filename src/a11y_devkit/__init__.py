# a11y-devkit - accessibility MCP server installer for AI coding assistants
# ABOUTME: Version information
__version__ = "0.1.0"

# ABOUTME: Export core data models
# ABOUTME: Export path resolution, config store and orchestration entry points
from a11y_devkit.config import load_deploy_config
from a11y_devkit.models import (
    DeployConfig,
    HostDescriptor,
    IntegrationDefinition,
    PlatformInfo,
    ResolvedHostPaths,
    ServerDescriptor,
)
from a11y_devkit.paths import get_app_support_dir, get_host_application_paths, get_platform, get_repo_dir
from a11y_devkit.store import (
    ConfigStore,
    install_servers,
    load_config_document,
    merge_servers,
    remove_servers,
    remove_servers_from_file,
)

__all__ = [
    "__version__",
    "DeployConfig",
    "HostDescriptor",
    "IntegrationDefinition",
    "PlatformInfo",
    "ResolvedHostPaths",
    "ServerDescriptor",
    "ConfigStore",
    "load_config_document",
    "merge_servers",
    "remove_servers",
    "install_servers",
    "remove_servers_from_file",
    "get_platform",
    "get_app_support_dir",
    "get_host_application_paths",
    "get_repo_dir",
    "load_deploy_config",
]
