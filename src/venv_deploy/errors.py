"""Error types for environment deployment."""
from typing import Any, Dict, Optional

from mcp.types import ErrorData, INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND

from venv_deploy.logging import get_logger

logger = get_logger(__name__)


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """Log an error with context."""
    error_info: Dict[str, Any] = {
        "event": "deploy_error",
        "error_type": error.__class__.__name__,
        "error_message": str(error),
    }
    if context:
        error_info["context"] = context
    if isinstance(error, DeployError):
        error_info["code"] = error.code
        error_info["details"] = error.details

    logger.error(error_info)


class DeployError(Exception):
    """Base error class for deployment operations."""

    def __init__(
        self,
        message: str,
        code: int = INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def to_error_data(self) -> ErrorData:
        """Convert to ErrorData format."""
        return ErrorData(code=self.code, message=str(self), data=self.details)


class CommandFailure(DeployError):
    """A command exited non-zero (creation, install, copy or rewrite)."""

    def __init__(self, cmdline: str, returncode: int, stdout: str = "", stderr: str = ""):
        super().__init__(
            f"Command failed with code {returncode}: {cmdline}\n"
            f"stdout: {stdout}\n"
            f"stderr: {stderr}",
            details={
                "cmdline": cmdline,
                "returncode": returncode,
                "stdout": stdout,
                "stderr": stderr,
            },
        )
        self.cmdline = cmdline
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class TransferFailure(DeployError):
    """Writing a file to the host failed."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Failed to write {path}: {reason}",
            details={"path": path, "reason": reason},
        )
        self.path = path


class ConfigError(DeployError):
    """Invalid configuration value or key."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=INVALID_PARAMS, details=details)


class UnknownTaskError(DeployError):
    """Requested task does not exist."""

    def __init__(self, name: str):
        super().__init__(
            f"Unknown task: {name}",
            code=METHOD_NOT_FOUND,
            details={"task": name},
        )
