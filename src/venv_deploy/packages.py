"""Package installation into a virtual environment."""
from typing import Optional

from venv_deploy import shell
from venv_deploy.commands import exec_in_environment
from venv_deploy.config import Settings
from venv_deploy.logging import get_logger
from venv_deploy.options import pip_install_options
from venv_deploy.transport import Transport
from venv_deploy.types import Environment

logger = get_logger(__name__)


def requirements_content(settings: Settings) -> str:
    return "\n".join(settings.requirements)


def write_requirements(transport: Transport, settings: Settings) -> None:
    """Publish the requirements file, leaving a (possibly empty) file in place."""
    if settings.requirements:
        transport.put(requirements_content(settings), settings.requirements_file)
    transport.run(shell.command("touch", settings.requirements_file))


def install_requirements(
    transport: Transport,
    settings: Settings,
    environment: Optional[Environment] = None,
) -> None:
    """Install the requirements file, then each build requirement in order.

    Every pip invocation runs inside ``environment`` (shared by default) and
    the first failure stops the remaining installs.
    """
    environment = environment or settings.shared
    pip_options = pip_install_options(settings)

    write_requirements(transport, settings)

    logger.info({
        "event": "requirements_install",
        "environment": str(environment),
        "requirements_file": settings.requirements_file,
        "count": len(settings.requirements),
    })
    exec_in_environment(
        transport,
        shell.command("pip", "install", *pip_options, "-r", settings.requirements_file),
        environment,
    )

    for package, flags in settings.build_requirements.items():
        flags = list(flags or [])
        logger.info({
            "event": "build_requirement_install",
            "environment": str(environment),
            "package": package,
            "flags": flags,
        })
        exec_in_environment(
            transport,
            shell.command("pip", "install", *pip_options, *flags, package),
            environment,
        )
