# Core data models for a11y-devkit
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

# ABOUTME: Where paths, repos and config entries are resolved
Scope = Literal["local", "global"]

SCOPES: tuple[Scope, ...] = ("local", "global")


@dataclass(frozen=True)
class PlatformInfo:
    """Operating system family of the running interpreter.

    ABOUTME: Computed once per run and passed explicitly everywhere
    """
    platform_id: str
    is_windows: bool = False
    is_mac: bool = False
    is_linux: bool = False


@dataclass(frozen=True)
class PlatformOverride:
    """Per-platform replacement names for a host's global files."""
    skills_folder: str | None = None
    mcp_config_file: str | None = None


@dataclass(frozen=True)
class HostDescriptor:
    """Declarative description of a host application.

    ABOUTME: Hosts are data, not adapter classes
    ABOUTME: Missing folder/file names default to .{id}/skills and .{id}/mcp.json
    """
    id: str
    display_name: str
    server_section_key: str = "servers"
    skills_folder: str | None = None
    mcp_config_file: str | None = None
    platform_overrides: dict[str, PlatformOverride] = field(default_factory=dict)

    @property
    def default_skills_folder(self) -> str:
        return self.skills_folder or f".{self.id}/skills"

    @property
    def default_mcp_config_file(self) -> str:
        return self.mcp_config_file or f".{self.id}/mcp.json"


@dataclass(frozen=True)
class ResolvedHostPaths:
    """Canonical per-host locations for both scopes.

    ABOUTME: Derived from HostDescriptor + PlatformInfo each run, never persisted
    """
    display_name: str
    global_config_path: Path
    local_config_path: Path
    server_section_key: str
    global_skills_dir: Path
    local_skills_dir: Path

    def config_path(self, scope: Scope) -> Path:
        return self.local_config_path if scope == "local" else self.global_config_path

    def skills_dir(self, scope: Scope) -> Path:
        return self.local_skills_dir if scope == "local" else self.global_skills_dir


@dataclass(frozen=True)
class ServerDescriptor:
    """A command-based server entry registrable in a host config.

    ABOUTME: name is the unique key inside a host's server section
    ABOUTME: Only command, args and type are ever written to host configs
    """
    name: str
    command: str
    args: list[str] = field(default_factory=list)
    type: str | None = None
    source_repo_url: str | None = None
    build_command: str | None = None
    repo_path: Path | None = None

    def to_entry(self) -> dict[str, Any]:
        """Return the host config entry for this server.

        ABOUTME: type is omitted entirely when not supplied
        """
        entry: dict[str, Any] = {
            "command": self.command,
            "args": list(self.args or []),
        }
        if self.type:
            entry["type"] = self.type
        return entry


@dataclass(frozen=True)
class IntegrationDefinition:
    """A repository-backed integration to provision and register.

    ABOUTME: args may reference the checkout through the {repo} placeholder
    ABOUTME: hosts=None targets every configured host
    """
    name: str
    repo_url: str
    command: str
    args: list[str] = field(default_factory=list)
    type: str | None = None
    build_command: str | None = None
    build_steps: list[list[str]] = field(default_factory=list)
    hosts: list[str] | None = None

    def to_server(self, repo_path: Path) -> ServerDescriptor:
        """Derive the server descriptor once the repository is on disk."""
        repo = str(repo_path)
        return ServerDescriptor(
            name=self.name,
            command=self.command.replace("{repo}", repo),
            args=[arg.replace("{repo}", repo) for arg in self.args],
            type=self.type,
            source_repo_url=self.repo_url,
            build_command=self.build_command,
            repo_path=repo_path,
        )


@dataclass
class DeployConfig:
    """Hosts and integrations to deploy, loaded from JSON or the defaults."""
    version: str
    namespace: str
    hosts: list[HostDescriptor]
    integrations: list[IntegrationDefinition]

    def get_host(self, host_id: str) -> HostDescriptor | None:
        for host in self.hosts:
            if host.id == host_id:
                return host
        return None


@dataclass
class ConfigDocument:
    """Typed view of a host config mapping.

    ABOUTME: servers holds the one section this tool owns
    ABOUTME: extra is an opaque passthrough bag for every other top-level key
    ABOUTME: The section keeps its original position on the way back out
    """
    section_key: str
    servers: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)
    section_position: int | None = None

    @classmethod
    def from_mapping(cls, data: dict[str, Any], section_key: str) -> "ConfigDocument":
        extra: dict[str, Any] = {}
        servers: dict[str, Any] = {}
        position: int | None = None

        for index, (key, value) in enumerate(data.items()):
            if key == section_key:
                position = index
                # A non-mapping section is treated as empty and replaced
                if isinstance(value, dict):
                    servers = dict(value)
            else:
                extra[key] = value

        return cls(
            section_key=section_key,
            servers=servers,
            extra=extra,
            section_position=position,
        )

    def to_mapping(self) -> dict[str, Any]:
        items = list(self.extra.items())
        if self.servers:
            position = len(items) if self.section_position is None else self.section_position
            items.insert(min(position, len(items)), (self.section_key, self.servers))
        return dict(items)
