# CLI interface for a11y-devkit
import argparse
import logging
import sys
from pathlib import Path

from a11y_devkit import __version__
from a11y_devkit.config import load_deploy_config
from a11y_devkit.errors import ConfigError
from a11y_devkit.install import InstallReport, install_all, uninstall_all
from a11y_devkit.models import SCOPES, DeployConfig
from a11y_devkit.paths import get_host_application_paths, get_platform, get_state_dir
from a11y_devkit.repo import auto_confirm, prompt_confirm
from a11y_devkit.store import ConfigStore
from a11y_devkit.utils import validate_deploy_config

# ABOUTME: Exit codes
# 0 = success, 1 = partial success, 2 = config error, 3 = fatal, 4 = cancelled
EXIT_SUCCESS = 0
EXIT_PARTIAL = 1
EXIT_CONFIG_ERROR = 2
EXIT_FATAL = 3
EXIT_CANCELLED = 4

LOG_FORMAT = "%(levelname)s - %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging for CLI runs.

    ABOUTME: WARNING by default so printed progress stays readable
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _load_validated_config(args: argparse.Namespace) -> DeployConfig | None:
    """Load the deploy config and print validation problems.

    ABOUTME: Returns None when any issue has 'error' severity
    """
    config = load_deploy_config(args.config)

    has_errors = False
    for issue in validate_deploy_config(config):
        if issue.severity == "error":
            print(f"  {issue.subject}: {issue.message}")
            has_errors = True
        else:
            print(f"  Warning: {issue.subject}: {issue.message}")

    if has_errors:
        print()
        print("Config validation failed. Fix errors above and try again.")
        return None
    return config


def _select_integrations(config: DeployConfig, only: list[str] | None) -> DeployConfig:
    if not only:
        return config

    unknown = sorted(set(only) - {i.name for i in config.integrations})
    if unknown:
        raise ConfigError(f"Unknown integration(s): {', '.join(unknown)}")

    selected = [i for i in config.integrations if i.name in only]
    return DeployConfig(
        version=config.version,
        namespace=config.namespace,
        hosts=config.hosts,
        integrations=selected,
    )


def _print_report(report: InstallReport) -> None:
    for outcome in report.outcomes:
        where = f" ({outcome.config_path})" if outcome.config_path else ""
        detail = f" - {outcome.message}" if outcome.message and outcome.status != "skipped" else ""
        print(f"  {outcome.integration} -> {outcome.host_id}: {outcome.status}{where}{detail}")

    if report.errors:
        print()
        for error_msg in report.errors:
            print(f"  Error: {error_msg}")


def _exit_code(report: InstallReport) -> int:
    if report.cancelled:
        return EXIT_CANCELLED
    if report.has_failures:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def cmd_install(args: argparse.Namespace) -> int:
    """Execute install command.

    ABOUTME: Provisions repos, then registers servers in each host config
    ABOUTME: --yes answers the overwrite prompt with yes
    """
    print(f"a11y-devkit install v{__version__}")
    print()

    try:
        config = _load_validated_config(args)
        if config is None:
            return EXIT_CONFIG_ERROR
        config = _select_integrations(config, args.only)

        project_root = args.project_root.resolve()
        platform_info = get_platform()
        state_dir = get_state_dir(args.scope, project_root, platform_info, namespace=config.namespace)
        store = ConfigStore(backup_dir=state_dir / "backups")

        names = ", ".join(i.name for i in config.integrations)
        print(f"Installing {len(config.integrations)} integration(s) ({args.scope} scope): {names}")
        print()

        report = install_all(
            args.scope,
            project_root,
            platform_info,
            config.hosts,
            config.integrations,
            store=store,
            confirm=auto_confirm if args.yes else prompt_confirm,
            repo_scope=args.repo_scope,
            update=args.update,
            namespace=config.namespace,
        )

        _print_report(report)
        print()
        if report.cancelled:
            print("Installation cancelled. Integrations installed before the prompt were kept.")
        else:
            print(
                f"Install complete: {report.count('installed')} registered, "
                f"{report.count('failed')} failed"
            )
        return _exit_code(report)

    except (ConfigError, FileNotFoundError) as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR
    except Exception as e:
        print(f"Error: {e}")
        return EXIT_FATAL


def cmd_uninstall(args: argparse.Namespace) -> int:
    """Execute uninstall command.

    ABOUTME: Removes server entries; --purge-repos also deletes checkouts
    """
    print(f"a11y-devkit uninstall v{__version__}")
    print()

    try:
        config = _load_validated_config(args)
        if config is None:
            return EXIT_CONFIG_ERROR
        config = _select_integrations(config, args.only)

        project_root = args.project_root.resolve()
        platform_info = get_platform()
        state_dir = get_state_dir(args.scope, project_root, platform_info, namespace=config.namespace)

        report = uninstall_all(
            args.scope,
            project_root,
            platform_info,
            config.hosts,
            config.integrations,
            store=ConfigStore(backup_dir=state_dir / "backups"),
            repo_scope=args.repo_scope,
            purge_repos=args.purge_repos,
            namespace=config.namespace,
        )

        _print_report(report)
        print()
        print(f"Uninstall complete: {report.count('removed')} removed, {report.count('failed')} failed")
        return _exit_code(report)

    except (ConfigError, FileNotFoundError) as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR
    except Exception as e:
        print(f"Error: {e}")
        return EXIT_FATAL


def cmd_paths(args: argparse.Namespace) -> int:
    """Execute paths command.

    ABOUTME: Prints where each host's config and skills live, both scopes
    """
    try:
        config = load_deploy_config(args.config)
        project_root = args.project_root.resolve()
        platform_info = get_platform()
        paths = get_host_application_paths(project_root, platform_info, config.hosts)

        print(f"Platform: {platform_info.platform_id}")
        print()
        for host_id, host_paths in paths.items():
            print(f"  {host_paths.display_name} [{host_id}]")
            print(f"    section key:   {host_paths.server_section_key}")
            print(f"    local config:  {host_paths.local_config_path}")
            print(f"    global config: {host_paths.global_config_path}")
            print(f"    local skills:  {host_paths.local_skills_dir}")
            print(f"    global skills: {host_paths.global_skills_dir}")
            print()

        for scope in SCOPES:
            state_dir = get_state_dir(scope, project_root, platform_info, namespace=config.namespace)
            print(f"  {scope} repos: {state_dir / 'repos'}")
        return EXIT_SUCCESS

    except (ConfigError, FileNotFoundError) as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR
    except Exception as e:
        print(f"Error: {e}")
        return EXIT_FATAL


def cmd_list(args: argparse.Namespace) -> int:
    """Execute list command."""
    try:
        config = load_deploy_config(args.config)
    except (ConfigError, FileNotFoundError) as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR

    print("Hosts:")
    for host in config.hosts:
        print(f"  {host.id:<12} {host.display_name} ({host.default_mcp_config_file})")

    print()
    print("Integrations:")
    for integration in config.integrations:
        targets = ", ".join(integration.hosts) if integration.hosts else "all hosts"
        print(f"  {integration.name:<22} {integration.repo_url}")
        print(f"    command: {integration.command} {' '.join(integration.args)}")
        print(f"    hosts: {targets}")

    print()
    print(f"Total: {len(config.hosts)} host(s), {len(config.integrations)} integration(s)")
    return EXIT_SUCCESS


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help="Deploy config JSON (default: bundled hosts and integrations)"
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Project directory for local scope (default: current directory)"
    )


def _add_scope_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--scope",
        choices=SCOPES,
        default="local",
        help="Write project configs (local) or user configs (global)"
    )
    parser.add_argument(
        "--repo-scope",
        choices=SCOPES,
        help="Where to keep cloned repositories (default: same as --scope)"
    )
    parser.add_argument(
        "--only",
        nargs="+",
        metavar="NAME",
        help="Limit to these integrations"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="a11y-devkit",
        description="Install accessibility MCP servers into AI coding assistants"
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"a11y-devkit v{__version__}"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    install_parser = subparsers.add_parser(
        "install",
        help="Clone, build and register integrations"
    )
    _add_common_arguments(install_parser)
    _add_scope_arguments(install_parser)
    install_parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Overwrite existing checkouts without prompting (the prompt defaults to no)"
    )
    install_parser.add_argument(
        "--update",
        action="store_true",
        help="Fast-forward existing checkouts instead of re-cloning"
    )

    uninstall_parser = subparsers.add_parser(
        "uninstall",
        help="Remove integrations from host configs"
    )
    _add_common_arguments(uninstall_parser)
    _add_scope_arguments(uninstall_parser)
    uninstall_parser.add_argument(
        "--purge-repos",
        action="store_true",
        help="Also delete the cloned repositories"
    )

    paths_parser = subparsers.add_parser(
        "paths",
        help="Show resolved host config and skills paths"
    )
    _add_common_arguments(paths_parser)

    list_parser = subparsers.add_parser(
        "list",
        help="List configured hosts and integrations"
    )
    list_parser.add_argument("--config", type=Path, help="Deploy config JSON")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    ABOUTME: Parses args and dispatches to appropriate command
    ABOUTME: Returns exit code for sys.exit()
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.command == "install":
        return cmd_install(args)
    elif args.command == "uninstall":
        return cmd_uninstall(args)
    elif args.command == "paths":
        return cmd_paths(args)
    elif args.command == "list":
        return cmd_list(args)
    else:
        # No command specified, show help
        parser.print_help()
        return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
