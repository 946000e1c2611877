"""Command execution scoped to a virtual environment."""
from typing import Dict, Mapping, Optional

from venv_deploy.config import Settings
from venv_deploy.logging import get_logger
from venv_deploy.transport import Transport
from venv_deploy.types import CommandResult, Environment

logger = get_logger(__name__)

MARKER_VARIABLE = "VIRTUAL_ENV"


def environment_vars(
    environment: Environment,
    inherited: Mapping[str, str],
    env_vars: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Caller variables with PATH and the marker variable pointed at ``environment``."""
    inherited_path = inherited.get("PATH", "")
    cmd_env = dict(env_vars or {})
    cmd_env.update(
        {
            "PATH": ":".join(p for p in (str(environment.bin_dir), inherited_path) if p),
            MARKER_VARIABLE: str(environment.root),
        }
    )
    return cmd_env


def exec_in_environment(
    transport: Transport,
    cmdline: str,
    environment: Environment,
    env_vars: Optional[Mapping[str, str]] = None,
) -> CommandResult:
    """Run ``cmdline`` with ``environment``'s bin directory first on PATH.

    No activation script is sourced: tools such as pip pick the environment
    from PATH and ``VIRTUAL_ENV``.
    """
    cmd_env = environment_vars(environment, transport.environ(), env_vars)
    logger.debug({"event": "env_cmd_exec", "cmd": cmdline, "environment": str(environment)})
    return transport.run(cmdline, env=cmd_env)


def run_in_shared(
    transport: Transport,
    settings: Settings,
    cmdline: str,
    env_vars: Optional[Mapping[str, str]] = None,
) -> CommandResult:
    """Run ``cmdline`` inside the shared environment."""
    return exec_in_environment(transport, cmdline, settings.shared, env_vars)
