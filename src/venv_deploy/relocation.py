"""Copy a virtual environment to a new location.

Launcher scripts in ``bin/`` embed the absolute interpreter path of the
environment they were installed into, so after copying they are repointed
at the destination interpreter.
"""

from venv_deploy import shell
from venv_deploy.config import Settings
from venv_deploy.environments import ensure_environment
from venv_deploy.logging import get_logger
from venv_deploy.transport import Transport
from venv_deploy.types import Environment

logger = get_logger(__name__)

RSYNC = ("rsync", "-lrpt")


def sync_tree(source_dir, destination_dir) -> str:
    """Additive copy keeping symlinks, permissions and timestamps."""
    return shell.command(*RSYNC, f"{source_dir}/", f"{destination_dir}/")


def rewrite_shebangs(source: Environment, destination: Environment) -> str:
    """Command line repointing ``source`` interpreter shebangs at ``destination``.

    Only the first line of regular files directly under the destination bin
    directory is considered; symlinks such as ``bin/python`` are left alone.
    """
    expression = "1s|^#!{pattern}.*$|#!{replacement}|".format(
        pattern=shell.sed_pattern(str(source.python)),
        replacement=shell.sed_replacement(str(destination.python)),
    )
    return shell.command(
        "find", destination.bin_dir, "-maxdepth", "1", "-type", "f",
        "-exec", "sed", "-i", "-e", expression, "{}", "+",
    )


def relocation_command(settings: Settings, source: Environment, destination: Environment) -> str:
    return shell.chain(
        ensure_environment(settings, destination),
        sync_tree(source.bin_dir, destination.bin_dir),
        rewrite_shebangs(source, destination),
        sync_tree(source.lib_dir, destination.lib_dir),
    )


def relocate(
    transport: Transport,
    settings: Settings,
    source: Environment,
    destination: Environment,
) -> None:
    """Populate ``destination`` from ``source``.

    Binaries are copied and rewritten before libraries are copied. A failure
    leaves the destination partially populated; re-running is safe.
    """
    logger.info({
        "event": "environment_relocate",
        "source": str(source),
        "destination": str(destination),
    })
    transport.run(relocation_command(settings, source, destination))
