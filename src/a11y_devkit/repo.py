# ABOUTME: Git repository provisioning for repository-backed integrations
# ABOUTME: Clone/update, build steps, overwrite prompts and cleanup
import logging
import os
import shutil
import stat
import subprocess
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from a11y_devkit.errors import BuildError, NotManagedDirectoryError, RepoFailureKind, RepoOperationError
from a11y_devkit.models import IntegrationDefinition, PlatformInfo, Scope, ServerDescriptor

logger = logging.getLogger(__name__)

# ABOUTME: Spawned processes are always bounded
GIT_TIMEOUT = 300  # seconds
BUILD_TIMEOUT = 900  # seconds

RepoAction = Literal["cloned", "updated"]
ProvisionStatus = Literal["installed", "cancelled", "failed"]

# (scope, project_root, platform_info, name) -> checkout directory
RepoDirResolver = Callable[[Scope, Path, PlatformInfo, str], Path]
ConfirmFn = Callable[[str], bool]

REPOS_README = """# A11y Skills & MCP Servers

This directory contains accessibility skills and MCP (Model Context Protocol) servers
cloned by a11y-devkit.

## Structure

- `<name>/` - one git checkout per integration, registered with your AI assistants

## Management

This directory is managed by a11y-devkit. Do not edit the checkouts by hand;
changes are lost on the next install.

To update every checkout:

```
a11y-devkit install --update
```

To remove the registrations and the checkouts:

```
a11y-devkit uninstall --purge-repos
```

## More Information

- [a11y-skills](https://github.com/joe-watkins/a11y-skills)
- [wcag-mcp](https://github.com/joe-watkins/wcag-mcp)
- [aria-mcp](https://github.com/joe-watkins/aria-mcp)
- [magentaa11y-mcp](https://github.com/joe-watkins/magentaa11y-mcp)
- [a11y-personas-mcp](https://github.com/joe-watkins/a11y-personas-mcp)
- [accessibility-issues-template-mcp](https://github.com/joe-watkins/accessibility-issues-template-mcp)
"""


@dataclass(frozen=True)
class BuildResult:
    success: bool
    stdout: str = ""
    stderr: str = ""


@dataclass(frozen=True)
class ProvisionResult:
    """Tagged outcome of provisioning one integration.

    ABOUTME: cancelled (user declined) is distinct from failed (operation error)
    ABOUTME: server is set only when status == 'installed'
    """
    name: str
    status: ProvisionStatus
    server: ServerDescriptor | None = None
    repo_path: Path | None = None
    action: RepoAction | None = None
    message: str = ""


def _run_git(args: list[str], cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
    """Run git, raising RepoOperationError on any failure.

    ABOUTME: Missing git executable is reported as tool_missing
    ABOUTME: Timeouts count as generic failures
    """
    cmd = ["git", *args]
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT,
        )
    except FileNotFoundError as e:
        raise RepoOperationError(
            "Git is not installed. Please install Git and try again.",
            kind="tool_missing",
        ) from e
    except subprocess.TimeoutExpired as e:
        raise RepoOperationError(f"git {args[0]} timed out after {GIT_TIMEOUT} seconds") from e

    if proc.returncode != 0:
        raise RepoOperationError(
            f"{' '.join(cmd)} failed with code {proc.returncode}: {proc.stderr.strip()}"
        )
    return proc


def classify_git_failure(text: str) -> RepoFailureKind:
    """Sort git's failure text into a RepoFailureKind.

    ABOUTME: Order matters: auth prompts also mention "could not read"
    """
    lowered = text.lower()

    if "authentication" in lowered or "fatal: could not read" in lowered:
        return "auth_required"
    if "git: command not found" in lowered or "'git' is not recognized" in lowered:
        return "tool_missing"
    if "repository not found" in lowered or "not found" in lowered:
        return "not_found"
    return "generic"


def _clone_failure_message(kind: RepoFailureKind, url: str, detail: str) -> str:
    if kind == "auth_required":
        return (
            f"Authentication required for {url}. Please ensure the repository "
            "is public or configure Git credentials."
        )
    if kind == "not_found":
        return f"Repository not found: {url}. Please verify the URL is correct."
    if kind == "tool_missing":
        return "Git is not installed. Please install Git and try again."
    return f"Failed to clone repository: {detail}"


def clone_repo(url: str, target_dir: Path, depth: int | None = None) -> None:
    """Clone url into target_dir.

    Raises:
        RepoOperationError: With kind set from the failure text
    """
    args = ["clone"]
    if depth is not None:
        args += ["--depth", str(depth)]
    args += [url, str(target_dir)]

    target_dir.parent.mkdir(parents=True, exist_ok=True)
    try:
        _run_git(args)
    except RepoOperationError as e:
        kind = e.kind if e.kind != "generic" else classify_git_failure(str(e))
        raise RepoOperationError(_clone_failure_message(kind, url, str(e)), kind=kind, url=url) from e


def ensure_repo(url: str, target_dir: Path) -> RepoAction:
    """Clone or fast-forward a managed repository.

    ABOUTME: Existing dir without .git -> NotManagedDirectoryError, nothing touched
    ABOUTME: Existing repo -> git pull --ff-only (fails on diverged history)
    ABOUTME: Missing dir -> shallow clone

    Returns:
        "updated" or "cloned"
    """
    if target_dir.exists():
        if not (target_dir / ".git").exists():
            raise NotManagedDirectoryError(target_dir)

        try:
            _run_git(["-C", str(target_dir), "pull", "--ff-only"])
        except RepoOperationError as e:
            kind = e.kind if e.kind != "generic" else classify_git_failure(str(e))
            raise RepoOperationError(str(e), kind=kind, url=url) from e
        logger.info(f"Updated {target_dir}")
        return "updated"

    clone_repo(url, target_dir, depth=1)
    logger.info(f"Cloned {url} into {target_dir}")
    return "cloned"


def run_build_command(repo_dir: Path, build_command: str | None) -> BuildResult:
    """Run a combined shell build command, e.g. "npm install && npm run build".

    ABOUTME: Explicit shell-string path; the string is handed to the shell as-is
    ABOUTME: Failure is returned, not raised: callers warn and keep going
    """
    if not build_command:
        return BuildResult(success=True)

    logger.debug(f"Building {repo_dir}: {build_command}")
    try:
        proc = subprocess.run(
            build_command,
            shell=True,
            cwd=repo_dir,
            capture_output=True,
            text=True,
            timeout=BUILD_TIMEOUT,
        )
    except subprocess.TimeoutExpired as e:
        return BuildResult(success=False, stderr=f"Build timed out after {e.timeout} seconds")
    except OSError as e:
        return BuildResult(success=False, stderr=str(e))

    return BuildResult(success=proc.returncode == 0, stdout=proc.stdout, stderr=proc.stderr)


def run_build_steps(repo_dir: Path, steps: Sequence[Sequence[str]]) -> None:
    """Run discrete build steps in order, stopping at the first failure.

    ABOUTME: Each step is an (executable, *args) list; no shell involved

    Raises:
        BuildError: For the first step that fails or can't be started
    """
    for step in steps:
        if not step:
            continue
        display = " ".join(step)
        logger.debug(f"Build step in {repo_dir}: {display}")
        try:
            proc = subprocess.run(
                list(step),
                cwd=repo_dir,
                capture_output=True,
                text=True,
                timeout=BUILD_TIMEOUT,
            )
        except subprocess.TimeoutExpired as e:
            raise BuildError(display, -1, f"timed out after {e.timeout} seconds") from e
        except OSError as e:
            raise BuildError(display, -1, str(e)) from e

        if proc.returncode != 0:
            raise BuildError(display, proc.returncode, proc.stderr)


def _make_writable(func: Callable[[str], object], path: str, _exc: object) -> None:
    # git marks pack files read-only; Windows refuses to unlink those
    os.chmod(path, stat.S_IWRITE)
    func(path)


def cleanup_repo(repo_path: Path) -> None:
    """Recursively delete a checkout; no-op if it doesn't exist.

    ABOUTME: Read-only entries are made writable and retried once

    Raises:
        OSError: If an entry still can't be removed
    """
    if not repo_path.exists():
        return

    if sys.version_info >= (3, 12):
        shutil.rmtree(repo_path, onexc=_make_writable)
    else:
        shutil.rmtree(repo_path, onerror=_make_writable)
    logger.info(f"Removed {repo_path}")


def write_repos_readme(repos_dir: Path) -> Path:
    """Write README.md into the managed repositories directory."""
    readme = repos_dir / "README.md"
    repos_dir.mkdir(parents=True, exist_ok=True)
    readme.write_text(REPOS_README, encoding="utf-8")
    logger.debug(f"Wrote {readme}")
    return readme


def prompt_confirm(message: str, default: bool = False) -> bool:
    """Ask a yes/no question on the terminal.

    ABOUTME: EOF and Ctrl-C are treated as "no"
    """
    suffix = " [Y/n]: " if default else " [y/N]: "
    try:
        answer = input(message + suffix).strip().lower()
    except (EOFError, KeyboardInterrupt):
        print()
        return False
    if not answer:
        return default
    return answer in ("y", "yes")


def auto_confirm(message: str) -> bool:
    logger.debug(f"Auto-confirmed: {message}")
    return True


def _build_and_warn(name: str, repo_path: Path, build_command: str | None) -> None:
    build = run_build_command(repo_path, build_command)
    if not build.success:
        logger.warning(f"Build command failed for '{name}' but continuing with installation")
        if build.stderr:
            logger.warning(f"Build error output:\n{build.stderr.strip()}")


def install_with_conflict_prompt(
    integration: IntegrationDefinition,
    repo_scope: Scope,
    project_root: Path,
    platform_info: PlatformInfo,
    repo_dir_resolver: RepoDirResolver,
    *,
    confirm: ConfirmFn = prompt_confirm,
) -> ProvisionResult:
    """Freshly (re)establish an integration's checkout.

    ABOUTME: Existing checkout -> warn and ask; "no" yields a cancelled result
    ABOUTME: "yes" deletes the old directory, then a full (non-shallow) clone
    ABOUTME: Build uses the shell command policy: failure only warns

    Returns:
        ProvisionResult tagged installed / cancelled / failed
    """
    name = integration.name
    repo_path = repo_dir_resolver(repo_scope, project_root, platform_info, name)

    if repo_path.exists():
        logger.warning(f"MCP server '{name}' already exists at {repo_path}")
        if not confirm(f"Overwrite existing installation of '{name}'?"):
            return ProvisionResult(
                name=name,
                status="cancelled",
                repo_path=repo_path,
                message="Installation cancelled - existing MCP not overwritten",
            )
        try:
            cleanup_repo(repo_path)
        except OSError as e:
            return ProvisionResult(
                name=name,
                status="failed",
                repo_path=repo_path,
                message=f"Could not remove existing checkout {repo_path}: {e}",
            )

    try:
        clone_repo(integration.repo_url, repo_path)
    except (RepoOperationError, OSError) as e:
        return ProvisionResult(name=name, status="failed", repo_path=repo_path, message=str(e))

    _build_and_warn(name, repo_path, integration.build_command)

    return ProvisionResult(
        name=name,
        status="installed",
        server=integration.to_server(repo_path),
        repo_path=repo_path,
        action="cloned",
    )


def update_or_clone(
    integration: IntegrationDefinition,
    repo_scope: Scope,
    project_root: Path,
    platform_info: PlatformInfo,
    repo_dir_resolver: RepoDirResolver,
) -> ProvisionResult:
    """Bring an integration's checkout up to date without deleting it.

    ABOUTME: Uses ensure_repo (shallow clone or --ff-only pull)
    ABOUTME: buildSteps run in order and the first failure is fatal
    ABOUTME: Without buildSteps, buildCommand runs and a failure only warns
    """
    name = integration.name
    repo_path = repo_dir_resolver(repo_scope, project_root, platform_info, name)

    try:
        action = ensure_repo(integration.repo_url, repo_path)
        if integration.build_steps:
            run_build_steps(repo_path, integration.build_steps)
        else:
            _build_and_warn(name, repo_path, integration.build_command)
    except (NotManagedDirectoryError, RepoOperationError, BuildError, OSError) as e:
        return ProvisionResult(name=name, status="failed", repo_path=repo_path, message=str(e))

    return ProvisionResult(
        name=name,
        status="installed",
        server=integration.to_server(repo_path),
        repo_path=repo_path,
        action=action,
    )
