# Install/uninstall orchestration for a11y-devkit
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Literal

from a11y_devkit.models import (
    HostDescriptor,
    IntegrationDefinition,
    PlatformInfo,
    ResolvedHostPaths,
    Scope,
    ServerDescriptor,
)
from a11y_devkit.paths import DEFAULT_NAMESPACE, get_host_application_paths, get_repo_dir
from a11y_devkit.repo import (
    ConfirmFn,
    cleanup_repo,
    install_with_conflict_prompt,
    prompt_confirm,
    update_or_clone,
    write_repos_readme,
)
from a11y_devkit.store import ConfigStore
from a11y_devkit.utils.validation import validate_server

logger = logging.getLogger(__name__)

OutcomeStatus = Literal["installed", "removed", "skipped", "failed"]


@dataclass(frozen=True)
class HostOutcome:
    """Result for one (integration, host) pair."""
    integration: str
    host_id: str
    status: OutcomeStatus
    config_path: Path | None = None
    message: str = ""


@dataclass
class InstallReport:
    """Report from an install or uninstall run.

    ABOUTME: One outcome per (integration, host) pair, never raise-on-first-error
    ABOUTME: cancelled marks a run stopped by a declined overwrite prompt
    """
    scope: Scope
    outcomes: list[HostOutcome] = field(default_factory=list)
    servers: dict[str, ServerDescriptor] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    cancelled: bool = False

    def add_outcome(self, outcome: HostOutcome) -> None:
        self.outcomes.append(outcome)

    def add_error(self, error: str) -> None:
        """Record an integration-level error; the run continues."""
        self.errors.append(error)

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def failures(self) -> list[HostOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == "failed"]

    @property
    def has_failures(self) -> bool:
        return bool(self.errors) or any(o.status == "failed" for o in self.outcomes)


def _target_hosts(
    integration: IntegrationDefinition,
    hosts: Sequence[HostDescriptor],
) -> list[str]:
    if integration.hosts is None:
        return [host.id for host in hosts]
    return list(integration.hosts)


def _skip_remaining(
    report: InstallReport,
    integrations: Sequence[IntegrationDefinition],
    hosts: Sequence[HostDescriptor],
    reason: str,
) -> None:
    for integration in integrations:
        for host_id in _target_hosts(integration, hosts):
            report.add_outcome(HostOutcome(integration.name, host_id, "skipped", message=reason))


def _register(
    report: InstallReport,
    store: ConfigStore,
    server: ServerDescriptor,
    host_ids: list[str],
    paths: dict[str, ResolvedHostPaths],
    scope: Scope,
) -> None:
    for host_id in host_ids:
        host_paths = paths.get(host_id)
        if host_paths is None:
            report.add_outcome(
                HostOutcome(server.name, host_id, "failed", message=f"Unknown host '{host_id}'")
            )
            continue

        config_path = host_paths.config_path(scope)
        try:
            store.install(config_path, [server], host_paths.server_section_key)
        except (OSError, ValueError) as e:
            # Each host config is independent; keep going with the others
            logger.error(f"Could not update {host_paths.display_name} config {config_path}: {e}")
            report.add_outcome(HostOutcome(server.name, host_id, "failed", config_path, str(e)))
            continue

        report.add_outcome(HostOutcome(server.name, host_id, "installed", config_path))


def _repo_dir(
    scope: Scope,
    project_root: Path,
    platform_info: PlatformInfo,
    name: str,
    *,
    namespace: str = DEFAULT_NAMESPACE,
    environ: Mapping[str, str] | None = None,
    home: Path | None = None,
) -> Path:
    return get_repo_dir(
        scope, project_root, platform_info, name, namespace=namespace, environ=environ, home=home
    )


def _check_server(server: ServerDescriptor) -> str:
    """Log validation warnings; return the joined error messages, or ""."""
    errors = []
    for issue in validate_server(server):
        if issue.severity == "error":
            logger.error(f"{issue.subject}: {issue.message}")
            errors.append(issue.message)
        else:
            logger.warning(f"{issue.subject}: {issue.message}")
    return "; ".join(errors)


def _write_readme(repos_dir: Path) -> None:
    try:
        write_repos_readme(repos_dir)
    except OSError as e:
        logger.warning(f"Could not write README in {repos_dir}: {e}")


def install_all(
    scope: Scope,
    project_root: Path,
    platform_info: PlatformInfo,
    hosts: Sequence[HostDescriptor],
    integrations: Sequence[IntegrationDefinition],
    *,
    store: ConfigStore | None = None,
    confirm: ConfirmFn = prompt_confirm,
    repo_scope: Scope | None = None,
    update: bool = False,
    namespace: str = DEFAULT_NAMESPACE,
    environ: Mapping[str, str] | None = None,
    home: Path | None = None,
) -> InstallReport:
    """Provision every integration and register it with its hosts.

    ABOUTME: Strictly sequential: no two writes to a config file can race
    ABOUTME: A failed integration doesn't stop the others; a failed host
    ABOUTME: write doesn't stop the other hosts
    ABOUTME: A declined overwrite prompt stops the run; earlier work stays
    ABOUTME: Each provisioned server is validated before registration

    Args:
        scope: Which host config files to write (local or global)
        project_root: Project being configured
        platform_info: Detected platform
        hosts: Host descriptors
        integrations: Integrations to provision, in order
        store: ConfigStore to write with (default: no timestamped backups)
        confirm: Asked before an existing checkout is replaced
        repo_scope: Where to place checkouts (defaults to scope)
        update: Fast-forward existing checkouts instead of re-cloning
        namespace: Directory name for repos under the project/app-support dir
        environ: Environment mapping for path resolution (defaults to os.environ)
        home: Home directory for path resolution (defaults to Path.home())

    Returns:
        InstallReport with one outcome per (integration, host) pair
    """
    store = store or ConfigStore()
    repo_scope = repo_scope or scope
    report = InstallReport(scope=scope)
    paths = get_host_application_paths(project_root, platform_info, hosts, environ=environ, home=home)
    resolver = partial(_repo_dir, namespace=namespace, environ=environ, home=home)

    for index, integration in enumerate(integrations):
        host_ids = _target_hosts(integration, hosts)
        logger.info(f"Provisioning {integration.name} from {integration.repo_url}")

        if update:
            result = update_or_clone(integration, repo_scope, project_root, platform_info, resolver)
        else:
            result = install_with_conflict_prompt(
                integration, repo_scope, project_root, platform_info, resolver, confirm=confirm
            )

        if result.status == "cancelled":
            report.cancelled = True
            report.add_error(f"{integration.name}: {result.message}")
            _skip_remaining(report, integrations[index:], hosts, "cancelled")
            break

        if result.status == "failed" or result.server is None:
            report.add_error(f"{integration.name}: {result.message}")
            for host_id in host_ids:
                report.add_outcome(
                    HostOutcome(integration.name, host_id, "failed", message=result.message)
                )
            continue

        if result.repo_path is not None:
            _write_readme(result.repo_path.parent)

        problems = _check_server(result.server)
        if problems:
            report.add_error(f"{integration.name}: {problems}")
            for host_id in host_ids:
                report.add_outcome(HostOutcome(integration.name, host_id, "failed", message=problems))
            continue

        report.servers[integration.name] = result.server
        _register(report, store, result.server, host_ids, paths, scope)

    return report


def uninstall_all(
    scope: Scope,
    project_root: Path,
    platform_info: PlatformInfo,
    hosts: Sequence[HostDescriptor],
    integrations: Sequence[IntegrationDefinition],
    *,
    store: ConfigStore | None = None,
    repo_scope: Scope | None = None,
    purge_repos: bool = False,
    namespace: str = DEFAULT_NAMESPACE,
    environ: Mapping[str, str] | None = None,
    home: Path | None = None,
) -> InstallReport:
    """Remove integrations from host configs, optionally deleting checkouts.

    ABOUTME: Files without matching entries are not rewritten (status skipped)
    """
    store = store or ConfigStore()
    repo_scope = repo_scope or scope
    report = InstallReport(scope=scope)
    paths = get_host_application_paths(project_root, platform_info, hosts, environ=environ, home=home)

    for integration in integrations:
        for host_id in _target_hosts(integration, hosts):
            host_paths = paths.get(host_id)
            if host_paths is None:
                report.add_outcome(
                    HostOutcome(integration.name, host_id, "failed", message=f"Unknown host '{host_id}'")
                )
                continue

            config_path = host_paths.config_path(scope)
            try:
                result = store.remove(config_path, [integration.name], host_paths.server_section_key)
            except (OSError, ValueError) as e:
                report.add_outcome(HostOutcome(integration.name, host_id, "failed", config_path, str(e)))
                continue

            status: OutcomeStatus = "removed" if result.removed_count else "skipped"
            report.add_outcome(HostOutcome(integration.name, host_id, status, config_path))

        if purge_repos:
            repo_path = _repo_dir(
                repo_scope,
                project_root,
                platform_info,
                integration.name,
                namespace=namespace,
                environ=environ,
                home=home,
            )
            try:
                cleanup_repo(repo_path)
            except OSError as e:
                report.add_error(f"{integration.name}: could not remove {repo_path}: {e}")

    return report


__all__ = [
    "HostOutcome",
    "InstallReport",
    "install_all",
    "uninstall_all",
]
