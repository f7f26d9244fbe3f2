# ABOUTME: Validation of host descriptors, integrations and server entries
# ABOUTME: Runs before any repository or config file is touched
import re
import shutil
from dataclasses import dataclass

from a11y_devkit.models import DeployConfig, HostDescriptor, IntegrationDefinition, ServerDescriptor

# ABOUTME: Names end up as bare keys in [section.name] TOML headers
NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

KNOWN_OVERRIDE_PLATFORMS = ("windows", "mac")


@dataclass(frozen=True)
class ValidationIssue:
    """A validation error or warning.

    ABOUTME: severity 'error' blocks the run, 'warning' is only reported
    """
    subject: str
    message: str
    severity: str  # 'error' or 'warning'


def validate_name(subject: str, name: str) -> ValidationIssue | None:
    """Check a server/host name is usable as a bare table key."""
    if not name:
        return ValidationIssue(subject, "Name must not be empty", "error")
    if not NAME_PATTERN.match(name):
        return ValidationIssue(
            subject,
            f"Invalid name '{name}': use letters, digits, '-' or '_' only",
            "error",
        )
    return None


def validate_command_exists(command: str) -> ValidationIssue | None:
    """Check a command resolves on PATH.

    ABOUTME: Uses shutil.which() for cross-platform lookup
    """
    if shutil.which(command) is None:
        return ValidationIssue("", f"Command not found: {command}", "warning")
    return None


def validate_server(server: ServerDescriptor) -> list[ValidationIssue]:
    """Validate a server descriptor before it is written to host configs.

    ABOUTME: A missing executable is only a warning (a build may provide it)
    """
    issues: list[ValidationIssue] = []

    name_issue = validate_name(server.name, server.name)
    if name_issue:
        issues.append(name_issue)

    if not server.command:
        issues.append(ValidationIssue(server.name, "Missing required 'command'", "error"))
    else:
        cmd_issue = validate_command_exists(server.command)
        if cmd_issue:
            issues.append(ValidationIssue(server.name, cmd_issue.message, cmd_issue.severity))

    if any(not isinstance(arg, str) for arg in server.args):
        issues.append(ValidationIssue(server.name, "All args must be strings", "error"))

    return issues


def validate_host(host: HostDescriptor) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    name_issue = validate_name(host.id, host.id)
    if name_issue:
        issues.append(name_issue)

    if not host.server_section_key:
        issues.append(ValidationIssue(host.id, "Missing 'serverSectionKey'", "error"))
    elif "." in host.server_section_key:
        issues.append(
            ValidationIssue(host.id, "'serverSectionKey' must not contain '.'", "error")
        )

    for platform_name in host.platform_overrides:
        if platform_name not in KNOWN_OVERRIDE_PLATFORMS:
            issues.append(
                ValidationIssue(
                    host.id,
                    f"Unknown platform override '{platform_name}' is ignored",
                    "warning",
                )
            )

    return issues


def validate_integration(integration: IntegrationDefinition) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    name_issue = validate_name(integration.name, integration.name)
    if name_issue:
        issues.append(name_issue)
    if not integration.repo_url:
        issues.append(ValidationIssue(integration.name, "Missing 'repoUrl'", "error"))
    if not integration.command:
        issues.append(ValidationIssue(integration.name, "Missing 'command'", "error"))

    return issues


def validate_deploy_config(config: DeployConfig) -> list[ValidationIssue]:
    """Validate every host and integration plus cross references.

    Returns:
        List of ValidationIssue instances (empty if valid)
    """
    issues: list[ValidationIssue] = []
    host_ids: set[str] = set()

    for host in config.hosts:
        if host.id in host_ids:
            issues.append(ValidationIssue(host.id, "Duplicate host id", "error"))
        host_ids.add(host.id)
        issues.extend(validate_host(host))

    names: set[str] = set()
    for integration in config.integrations:
        if integration.name in names:
            issues.append(ValidationIssue(integration.name, "Duplicate integration name", "error"))
        names.add(integration.name)
        issues.extend(validate_integration(integration))

        for host_id in integration.hosts or []:
            if host_id not in host_ids:
                issues.append(
                    ValidationIssue(integration.name, f"Unknown host '{host_id}'", "warning")
                )

    return issues
