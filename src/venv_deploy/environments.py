"""Virtual environment creation and removal."""
from typing import List

from venv_deploy import shell
from venv_deploy.config import Settings
from venv_deploy.logging import get_logger
from venv_deploy.options import creation_options
from venv_deploy.transport import Transport
from venv_deploy.types import Environment

logger = get_logger(__name__)


def creation_command(settings: Settings) -> List[str]:
    """Argument vector of the bootstrap virtualenv tool, without destination."""
    return [
        settings.bootstrap_interpreter,
        settings.bootstrap_tool,
        *creation_options(settings),
    ]


def ensure_environment(settings: Settings, destination: Environment) -> str:
    """Command line creating ``destination`` unless its directory already exists."""
    return shell.chain(
        shell.command("mkdir", "-p", destination.root.parent),
        shell.either(
            shell.command("test", "-d", destination.root),
            shell.command(*creation_command(settings), destination.root),
        ),
    )


def create(transport: Transport, settings: Settings, destination: Environment) -> None:
    """Create a virtualenv at ``destination``; a no-op when it already exists."""
    logger.info({"event": "environment_create", "destination": str(destination)})
    transport.run(ensure_environment(settings, destination))


def destroy(transport: Transport, destination: Environment) -> None:
    """Remove ``destination`` recursively; an absent path is not an error."""
    logger.info({"event": "environment_destroy", "destination": str(destination)})
    transport.run(shell.command("rm", "-rf", destination.root))
