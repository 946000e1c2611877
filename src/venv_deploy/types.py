"""Core type definitions"""

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Callable, Optional


@dataclass(frozen=True)
class Environment:
    """Python virtual environment identified by its root directory"""
    root: PurePosixPath

    def __init__(self, root: "str | PurePosixPath"):
        object.__setattr__(self, "root", PurePosixPath(root))

    @property
    def bin_dir(self) -> PurePosixPath:
        return self.root / "bin"

    @property
    def lib_dir(self) -> PurePosixPath:
        return self.root / "lib"

    @property
    def python(self) -> PurePosixPath:
        return self.bin_dir / "python"

    def __str__(self) -> str:
        return str(self.root)


@dataclass(frozen=True)
class CommandResult:
    """Completed command"""
    cmdline: str
    returncode: int
    stdout: str = ""
    stderr: str = ""


Action = Callable[..., Any]


@dataclass(frozen=True)
class Step:
    """Named workflow step with an optional compensating action"""
    name: str
    forward: Action
    compensate: Optional[Action] = None
