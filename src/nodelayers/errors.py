"""Typed error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import ClassVar


class ErrorCode(StrEnum):
    """Stable error identifiers used across contributor surfaces."""

    FILESYSTEM = "E_FILESYSTEM"
    PACKAGE_MANAGER = "E_PACKAGE_MANAGER"
    DIAGNOSTIC = "E_DIAGNOSTIC"
    ENVIRONMENT = "E_ENVIRONMENT"
    LAYER = "E_LAYER"
    BUILD_PLAN = "E_BUILD_PLAN"


class NodeLayersError(Exception):
    """Base error for the contributor.

    Subclasses pin ``error_code``; ``message`` stays the bare one-line
    summary while ``str()`` renders it together with the hint and every
    non-empty context entry for build output.
    """

    error_code: ClassVar[ErrorCode]

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.context = {key: value for key, value in (context or {}).items() if value}

    @property
    def code(self) -> str:
        return self.error_code.value

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


class FilesystemError(NodeLayersError):
    error_code = ErrorCode.FILESYSTEM


class PackageManagerError(NodeLayersError):
    error_code = ErrorCode.PACKAGE_MANAGER


class DiagnosticError(NodeLayersError):
    """The unmet-dependency check could not run; fatal to the build."""

    error_code = ErrorCode.DIAGNOSTIC


class EnvironmentExportError(NodeLayersError):
    error_code = ErrorCode.ENVIRONMENT


class LayerError(NodeLayersError):
    error_code = ErrorCode.LAYER


class BuildPlanError(NodeLayersError):
    error_code = ErrorCode.BUILD_PLAN


__all__ = [
    "BuildPlanError",
    "DiagnosticError",
    "EnvironmentExportError",
    "ErrorCode",
    "FilesystemError",
    "LayerError",
    "NodeLayersError",
    "PackageManagerError",
]
