"""repomigrator exception hierarchy.

All repomigrator-specific exceptions inherit from MigratorError,
so the batch scheduler can record any per-repository failure at the task
boundary while letting genuine programming errors surface in single mode.
"""


class MigratorError(Exception):
    """Base exception for all repomigrator errors."""

    def __init__(self, message: str = "", *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class ConfigurationError(MigratorError):
    """Invalid or missing configuration (aborts the whole run)."""


class InputError(MigratorError):
    """Malformed repository URL or missing local path."""


class RegistryError(MigratorError):
    """Registry could not be read or is not a JSON object."""


class GitError(MigratorError):
    """A git command failed."""


class SyncError(GitError):
    """Clone or fetch failed after the recovery attempt."""

    def __init__(self, message: str = "", *, retryable: bool = True) -> None:
        super().__init__(message, retryable=retryable)


class GenerationError(MigratorError):
    """The strategy model call failed or was refused."""

    def __init__(self, message: str = "", *, retryable: bool = True) -> None:
        super().__init__(message, retryable=retryable)


class ExecutorMissingError(MigratorError):
    """The external migration executor is not installed."""

    def __init__(self, message: str = "", *, fallback_command: str = "") -> None:
        super().__init__(message)
        self.fallback_command = fallback_command


class ExecutorError(MigratorError):
    """The external migration executor ran and failed."""


class ModelUnavailableError(GenerationError):
    """The requested model does not exist for this account."""

    def __init__(self, message: str = "", *, retryable: bool = False) -> None:
        super().__init__(message, retryable=retryable)
