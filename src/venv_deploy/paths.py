"""Canonical environment locations derived from deployment base directories."""

from pathlib import PurePosixPath

from venv_deploy.types import Environment


def shared_environment(shared_path: "str | PurePosixPath") -> Environment:
    """Long-lived environment shared between releases."""
    return Environment(PurePosixPath(shared_path) / "virtualenv" / "shared")


def release_environment(release_path: "str | PurePosixPath") -> Environment:
    """Environment owned by a single release, used to run the application."""
    return Environment(PurePosixPath(release_path) / "vendor" / "virtualenv")


def current_environment(current_path: "str | PurePosixPath") -> Environment:
    """Environment of the currently running release."""
    return Environment(PurePosixPath(current_path) / "vendor" / "virtualenv")
