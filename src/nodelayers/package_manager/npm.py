"""npm adapter driving the ``npm`` executable through subprocesses."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field, replace
from pathlib import Path

from nodelayers.errors import DiagnosticError, PackageManagerError
from nodelayers.models import DEPENDENCY, PACKAGE_LOCK
from nodelayers.observability import StructuredLogger
from nodelayers.package_manager.base import PackageManagerConfig

UNMET_MARKERS = ("UNMET", "missing:", "invalid:", "extraneous")


@dataclass(slots=True)
class NpmPackageManager:
    config: PackageManagerConfig = field(default_factory=PackageManagerConfig)
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def install(self, layer_root: Path, cache_root: Path, app_root: Path) -> None:
        subcommand = "ci" if (app_root / PACKAGE_LOCK).exists() else "install"
        self._run_checked(
            [subcommand, "--unsafe-perm", "--cache", str(cache_root)],
            cwd=app_root,
            operation="install",
            layer_root=layer_root,
        )

    def rebuild(self, cache_root: Path, app_root: Path) -> None:
        self._run_checked(
            ["rebuild", "--cache", str(cache_root)],
            cwd=app_root,
            operation="rebuild",
        )

    def warn_unmet_dependencies(self, app_root: Path) -> None:
        command = [self.config.tool, "ls", "--depth=0"]
        try:
            result = self._run(command, cwd=app_root, config=replace(self.config, verbose=True))
        except OSError as exc:
            raise DiagnosticError(
                "Unable to run unmet dependency check.",
                hint=f"Ensure `{self.config.tool}` is installed and on PATH.",
                context={"command": " ".join(command), "error": str(exc)},
            ) from exc

        output = "\n".join(part for part in (result.stdout, result.stderr) if part)
        for line in output.splitlines():
            if any(marker in line for marker in UNMET_MARKERS):
                self.logger.warning(
                    operation="unmet_dependencies",
                    layer=DEPENDENCY,
                    message=line.strip(),
                )

    def _run_checked(
        self,
        argv: list[str],
        *,
        cwd: Path,
        operation: str,
        layer_root: Path | None = None,
    ) -> None:
        command = [self.config.tool, *argv]
        context = {"operation": operation, "command": " ".join(command), "cwd": str(cwd)}
        if layer_root is not None:
            context["layer_root"] = str(layer_root)
        try:
            result = self._run(command, cwd=cwd)
        except OSError as exc:
            raise PackageManagerError(
                f"{self.config.tool} {operation} could not be started.",
                hint=f"Ensure `{self.config.tool}` is installed and on PATH.",
                context={**context, "error": str(exc)},
            ) from exc
        if result.returncode != 0:
            raise PackageManagerError(
                f"{self.config.tool} {operation} failed.",
                hint=f"Check {self.config.tool} output and the application's package.json.",
                context={
                    **context,
                    "returncode": str(result.returncode),
                    "stderr": result.stderr[:2000] if result.stderr else "",
                },
            )

    def _run(
        self,
        command: list[str],
        *,
        cwd: Path,
        config: PackageManagerConfig | None = None,
    ) -> subprocess.CompletedProcess[str]:
        config = config or self.config
        self.logger.info(
            operation="run",
            layer=DEPENDENCY,
            message=f"Running `{' '.join(command)}`",
        )
        return subprocess.run(
            command,
            cwd=str(cwd),
            env=config.subprocess_env(os.environ),
            capture_output=True,
            text=True,
            check=False,
        )
