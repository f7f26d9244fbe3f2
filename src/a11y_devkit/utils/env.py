# Environment variable expansion for integration definitions
import os
import re
import warnings
from collections.abc import Mapping

# ABOUTME: Matches ${VAR_NAME}; lowercase names are left alone
ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")


def expand_env_vars(value: str, environ: Mapping[str, str] | None = None) -> str:
    """Replace ${VAR} references with values from the environment.

    ABOUTME: Unknown variables are kept as written and reported with a UserWarning
    ABOUTME: The {repo} placeholder is not an env reference and passes through

    Examples:
        >>> expand_env_vars("${HOME}/bin", {"HOME": "/home/dev"})
        '/home/dev/bin'
    """
    env = os.environ if environ is None else environ

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in env:
            return env[name]
        warnings.warn(
            f"Environment variable '{name}' not found, keeping original",
            UserWarning,
            stacklevel=3,
        )
        return match.group(0)

    return ENV_VAR_PATTERN.sub(substitute, value)
