import pytest
from typing import Callable, Dict, List, Mapping, Optional

from venv_deploy.config import Settings
from venv_deploy.errors import CommandFailure
from venv_deploy.types import CommandResult


class RecordingTransport:
    """Transport that records commands and file writes instead of running them"""

    def __init__(self, fail_on: Optional[Callable[[str], bool]] = None, path: str = "/usr/bin:/bin"):
        self.fail_on = fail_on
        self.path = path
        self.commands: List[str] = []
        self.envs: List[Optional[Dict[str, str]]] = []
        self.files: Dict[str, str] = {}
        self.calls: List[tuple] = []

    def environ(self) -> Mapping[str, str]:
        return {"PATH": self.path, "HOME": "/home/deploy"}

    def run(self, cmdline: str, env: Optional[Mapping[str, str]] = None) -> CommandResult:
        self.commands.append(cmdline)
        self.envs.append(dict(env) if env is not None else None)
        self.calls.append(("run", cmdline))
        if self.fail_on and self.fail_on(cmdline):
            raise CommandFailure(cmdline, 1, "", "boom")
        return CommandResult(cmdline, 0)

    def put(self, content: str, path: str) -> None:
        self.files[path] = content
        self.calls.append(("put", path))


class RecordingHostPackages:
    def __init__(self):
        self.installed: List[List[str]] = []

    def install(self, packages):
        self.installed.append(list(packages))


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def host_packages():
    return RecordingHostPackages()


@pytest.fixture
def settings():
    """Settings rooted at fixed, fake deployment directories"""
    return Settings(
        release_path="/srv/app/releases/20240101000000",
        shared_path="/srv/app/shared",
        current_path="/srv/app/current",
    )
