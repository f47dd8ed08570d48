"""Typed error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum
from typing import ClassVar


class ErrorCode(StrEnum):
    """Stable error identifiers used across the build pipeline."""

    VALIDATION = "E_VALIDATION"
    EXTERNAL_COMMAND = "E_EXTERNAL_COMMAND"
    PROBE = "E_PROBE"
    METADATA = "E_METADATA"
    FILESYSTEM = "E_FILESYSTEM"


class Dav1dSysError(Exception):
    """Base error: a one-line message plus an optional hint and string context.

    Each subclass fixes its ``ErrorCode`` through ``default_code``.
    ``str(error)`` renders message, hint and non-empty context on separate
    lines for terminal output. ``to_dict`` keeps them apart for build logs.
    """

    default_code: ClassVar[ErrorCode] = ErrorCode.VALIDATION

    message: str
    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = (code or self.default_code).value
        self.hint = hint
        self.context = {key: value for key, value in (context or {}).items() if value}

    def __str__(self) -> str:
        lines = [self.message]
        if self.hint:
            lines.append(f"Hint: {self.hint}")
        lines.extend(f"  {key}: {value}" for key, value in self.context.items())
        return "\n".join(lines)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(Dav1dSysError):
    default_code = ErrorCode.VALIDATION


class CommandError(Dav1dSysError):
    """An external process exited non-zero or could not be started."""

    default_code = ErrorCode.EXTERNAL_COMMAND

    argv: tuple[str, ...]
    returncode: int | None
    stderr: str

    def __init__(
        self,
        message: str,
        *,
        argv: Sequence[str] = (),
        returncode: int | None = None,
        stderr: str = "",
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        details = {
            "command": " ".join(argv),
            "returncode": "" if returncode is None else str(returncode),
            "stderr": stderr.strip()[:2000],
        }
        details.update(context or {})
        super().__init__(message, hint=hint, context=details)
        self.argv = tuple(argv)
        self.returncode = returncode
        self.stderr = stderr


class ProbeError(CommandError):
    """A toolchain query failed or returned nothing usable."""

    default_code = ErrorCode.PROBE


class MetadataResolutionError(Dav1dSysError):
    default_code = ErrorCode.METADATA


class FilesystemError(Dav1dSysError):
    default_code = ErrorCode.FILESYSTEM


__all__ = [
    "CommandError",
    "Dav1dSysError",
    "ErrorCode",
    "FilesystemError",
    "MetadataResolutionError",
    "ProbeError",
    "ValidationError",
]
