from __future__ import annotations


EXIT_OK = 0
EXIT_ERROR = 1
EXIT_FLAG_PARSE_ERROR = 12


class FsEnvError(RuntimeError):
    """Base error for fs-env; carries the process exit code."""

    exit_code: int = EXIT_ERROR


class UsageError(FsEnvError):
    """Required flag or argument is missing; usage should be printed."""


class LogicError(FsEnvError):
    """Requested edit can't be applied (malformed pair, missing delete key)."""


class BackendError(FsEnvError):
    """DynamoDB or KMS call failed."""


class OptimisticLockError(BackendError):
    """Raised when the record version changed between fetch and persist."""
