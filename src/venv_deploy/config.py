"""Deployment settings.

Settings are resolved once per invocation from three layers, later layers
winning: built-in defaults, the ``[virtualenv]`` table of a TOML config file,
and keyword overrides.
"""
from dataclasses import dataclass, field, fields
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Optional

import appdirs
import tomli

from venv_deploy import paths
from venv_deploy.errors import ConfigError
from venv_deploy.logging import get_logger
from venv_deploy.types import Environment

logger = get_logger(__name__)

APP_NAME = "venv-deploy"
CONFIG_FILENAME = "deploy.toml"
CONFIG_TABLE = "virtualenv"


@dataclass(frozen=True)
class Settings:
    """Immutable configuration for one workflow invocation"""
    release_path: str
    shared_path: str
    current_path: str
    use_system_packages: bool = False
    bootstrap_interpreter: str = "python"
    bootstrap_tool: str = "/usr/local/bin/virtualenv"
    extra_creation_options: tuple[str, ...] = ()
    extra_install_options: tuple[str, ...] = ()
    install_extra_flags: tuple[str, ...] = ()
    requirements: tuple[str, ...] = ()
    requirements_file: Optional[str] = None
    build_requirements: Dict[str, Optional[tuple[str, ...]]] = field(default_factory=dict)
    install_host_packages: tuple[str, ...] = ("python", "rsync")
    run_dependency_install: bool = True
    host_package_command: tuple[str, ...] = ("apt-get", "install", "-y")
    no_release: bool = False

    def __post_init__(self):
        if self.requirements_file is None:
            object.__setattr__(
                self,
                "requirements_file",
                str(PurePosixPath(self.release_path) / "requirements.txt"),
            )

    @property
    def shared(self) -> Environment:
        return paths.shared_environment(self.shared_path)

    @property
    def release(self) -> Environment:
        return paths.release_environment(self.release_path)

    @property
    def current(self) -> Environment:
        return paths.current_environment(self.current_path)


SEQUENCE_KEYS = {
    "extra_creation_options",
    "extra_install_options",
    "install_extra_flags",
    "requirements",
    "install_host_packages",
    "host_package_command",
}
BOOL_KEYS = {"use_system_packages", "run_dependency_install", "no_release"}
STRING_KEYS = {"bootstrap_interpreter", "bootstrap_tool", "requirements_file"}
BASE_KEYS = {"release_path", "shared_path", "current_path"}


def default_config_file() -> Path:
    """Per-user config file location."""
    return Path(appdirs.user_config_dir(APP_NAME)) / CONFIG_FILENAME


def read_config_file(path: Path) -> Dict[str, Any]:
    """Read the ``[virtualenv]`` table of a TOML file."""
    try:
        with open(path, "rb") as f:
            data = tomli.load(f)
    except tomli.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}", details={"path": str(path)}) from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", details={"path": str(path)}) from e

    table = data.get(CONFIG_TABLE, {})
    if not isinstance(table, dict):
        raise ConfigError(f"[{CONFIG_TABLE}] in {path} must be a table", details={"path": str(path)})
    return table


def _coerce(key: str, value: Any) -> Any:
    if key in SEQUENCE_KEYS:
        if isinstance(value, str) or not isinstance(value, (list, tuple)):
            raise ConfigError(f"{key} must be a list of strings", details={"key": key})
        return tuple(str(item) for item in value)
    if key in BOOL_KEYS:
        if not isinstance(value, bool):
            raise ConfigError(f"{key} must be a boolean", details={"key": key})
        return value
    if key in STRING_KEYS:
        if value is None and key == "requirements_file":
            return None
        if not isinstance(value, str):
            raise ConfigError(f"{key} must be a string", details={"key": key})
        return value
    if key == "build_requirements":
        if not isinstance(value, dict):
            raise ConfigError("build_requirements must be a table", details={"key": key})
        requirements = {}
        for package, flags in value.items():
            if flags is not None and (isinstance(flags, str) or not isinstance(flags, (list, tuple))):
                raise ConfigError(
                    f"build_requirements.{package} must be a list of strings",
                    details={"key": key, "package": str(package)},
                )
            requirements[str(package)] = tuple(str(flag) for flag in flags) if flags else None
        return requirements
    return value


def load_settings(
    release_path: str,
    shared_path: str,
    current_path: str,
    config_file: Optional[Path] = None,
    **overrides: Any,
) -> Settings:
    """Build settings from defaults, a TOML config file and overrides.

    When ``config_file`` is not given, the per-user default is read if present.
    An explicitly given file must exist.
    """
    values: Dict[str, Any] = {}

    if config_file is None:
        candidate = default_config_file()
        if candidate.exists():
            values.update(read_config_file(candidate))
            config_file = candidate
    else:
        values.update(read_config_file(Path(config_file)))

    values.update(overrides)

    known = {f.name for f in fields(Settings)} - BASE_KEYS
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(
            f"Unknown settings: {', '.join(unknown)}", details={"keys": unknown}
        )

    settings = Settings(
        release_path=str(release_path),
        shared_path=str(shared_path),
        current_path=str(current_path),
        **{key: _coerce(key, value) for key, value in values.items()},
    )

    logger.debug({
        "event": "settings_loaded",
        "config_file": str(config_file) if config_file else None,
        "shared": str(settings.shared),
        "release": str(settings.release),
    })
    return settings
