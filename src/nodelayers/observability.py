"""Structured logging and observability helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from nodelayers.errors import FilesystemError


@dataclass(slots=True)
class StructuredLogger:
    records: list[dict[str, Any]] = field(default_factory=list)

    def log(
        self,
        *,
        operation: str,
        layer: str | None,
        message: str,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "layer": layer,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)

    def info(self, *, operation: str, layer: str | None, message: str, **extra: Any) -> None:
        self.log(operation=operation, layer=layer, message=message, extra=extra or None)

    def warning(self, *, operation: str, layer: str | None, message: str, **extra: Any) -> None:
        self.log(
            operation=operation,
            layer=layer,
            message=message,
            level="warning",
            extra=extra or None,
        )

    def records_for_layer(self, layer: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("layer") == layer]

    def messages(self, *, level: str | None = None) -> list[str]:
        return [
            str(record["message"])
            for record in self.records
            if level is None or record.get("level") == level
        ]

    def to_json_lines(self, path: str | Path, *, layer: str | None = None) -> Path:
        """Append records, optionally only one layer's, to a JSON lines file."""
        output_path = Path(path)
        records = self.records if layer is None else self.records_for_layer(layer)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with output_path.open("a", encoding="utf-8") as handle:
                for record in records:
                    handle.write(json.dumps(record, sort_keys=True))
                    handle.write("\n")
        except OSError as exc:
            raise FilesystemError(
                "Unable to write build log.",
                context={"operation": "write", "destination": str(output_path), "error": str(exc)},
            ) from exc
        return output_path
