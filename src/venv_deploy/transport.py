"""Host collaborators: command execution, file transfer and OS packages."""

import os
import subprocess
from pathlib import Path
from typing import Iterable, Mapping, Optional, Protocol

from venv_deploy import shell
from venv_deploy.errors import CommandFailure, TransferFailure
from venv_deploy.logging import get_logger
from venv_deploy.types import CommandResult

logger = get_logger(__name__)


class Transport(Protocol):
    """Executes shell command lines and writes files on one host."""

    def run(self, cmdline: str, env: Optional[Mapping[str, str]] = None) -> CommandResult:
        """Run ``cmdline``; raise ``CommandFailure`` on non-zero exit."""
        ...

    def put(self, content: str, path: str) -> None:
        """Write ``content`` to ``path``; raise ``TransferFailure`` on error."""
        ...

    def environ(self) -> Mapping[str, str]:
        """Environment inherited by commands on the host."""
        ...


class HostPackages(Protocol):
    """Installs OS-level packages on the host."""

    def install(self, packages: Iterable[str]) -> None:
        ...


class LocalTransport:
    """Transport for the machine this process runs on."""

    def __init__(self, cwd: Optional[Path] = None, timeout: Optional[float] = None):
        self.cwd = cwd
        self.timeout = timeout

    def environ(self) -> Mapping[str, str]:
        return os.environ

    def run(self, cmdline: str, env: Optional[Mapping[str, str]] = None) -> CommandResult:
        cmd_env = {**os.environ, **(env or {})}

        logger.debug({"event": "host_cmd_exec", "cmd": cmdline})

        try:
            process = subprocess.run(
                cmdline,
                shell=True,
                cwd=self.cwd,
                env=cmd_env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandFailure(cmdline, -1, "", f"timed out after {e.timeout}s") from e

        if process.stdout:
            logger.debug({"event": "host_cmd_stdout", "cmd": cmdline, "output": process.stdout})
        if process.stderr:
            logger.debug({"event": "host_cmd_stderr", "cmd": cmdline, "output": process.stderr})

        logger.debug(
            {"event": "host_cmd_complete", "cmd": cmdline, "returncode": process.returncode}
        )

        if process.returncode != 0:
            raise CommandFailure(cmdline, process.returncode, process.stdout, process.stderr)

        return CommandResult(cmdline, process.returncode, process.stdout, process.stderr)

    def put(self, content: str, path: str) -> None:
        logger.debug({"event": "host_put", "path": path, "bytes": len(content)})
        try:
            Path(path).write_text(content)
        except OSError as e:
            raise TransferFailure(path, str(e)) from e


class CommandHostPackages:
    """Installs OS packages by running a package manager command through a transport."""

    def __init__(self, transport: Transport, command: Iterable[str] = ("apt-get", "install", "-y")):
        self.transport = transport
        self.command = list(command)

    def install(self, packages: Iterable[str]) -> None:
        packages = list(packages)
        if not packages:
            return
        logger.info({"event": "host_packages_install", "packages": packages})
        self.transport.run(shell.command(*self.command, *packages))
