"""
@file actionlogger.py
@brief Structured record of row actions and automation sessions.

Two record kinds are written:
- "row": one selection attempt on a grid row (row index, label, outcome)
- "session": the end of an automation session (mode, stop reason, counters)

Records go to stdout and/or an append-only file, either as pipe-separated
lines or as JSON lines.
"""

from __future__ import annotations

import json
import os
import threading
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

FORMATS = ("line", "jsonl")


class ActionLogger:
    """Thread-safe writer for row and session records."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._enabled = False
        self._console = True
        self._file_path: Optional[str] = None
        self._session_id = "-"
        self._format = "line"
        self._max_traceback_chars = 4000

    def configure(
        self,
        *,
        console: bool = True,
        file_path: Optional[str] = None,
        session_id: Optional[str] = None,
        format: str = "line",
        max_traceback_chars: int = 4000,
    ) -> None:
        fmt = (format or "line").lower()
        if fmt not in FORMATS:
            raise ValueError(f"Action log format must be one of {', '.join(FORMATS)}")

        with self._lock:
            self._console = bool(console)
            self._file_path = file_path
            self._format = fmt
            self._max_traceback_chars = max(256, int(max_traceback_chars))
            if session_id:
                self._session_id = session_id

    def enable(self) -> None:
        with self._lock:
            self._enabled = True

    def disable(self) -> None:
        with self._lock:
            self._enabled = False

    def is_enabled(self) -> bool:
        return self._enabled

    def set_session_id(self, session_id: str) -> None:
        if session_id:
            with self._lock:
                self._session_id = session_id

    # --- Records ---

    def record_row(
        self,
        *,
        row: int,
        label: str,
        outcome: str,
        element: Optional[str] = None,
        duration_ms: Optional[int] = None,
        exception: Optional[BaseException] = None,
    ) -> None:
        """Record one selection attempt on a row."""
        self._emit({
            "kind": "row",
            "row": row,
            "label": label,
            "outcome": outcome,
            "element": element,
            "duration_ms": duration_ms,
        }, exception)

    def record_session(
        self,
        *,
        mode: str,
        reason: str,
        actions: int,
        cycles: int,
        message: Optional[str] = None,
    ) -> None:
        """Record the end of an automation session."""
        self._emit({
            "kind": "session",
            "mode": mode,
            "reason": reason,
            "actions": actions,
            "cycles": cycles,
            "message": message,
        })

    # --- Output ---

    def _emit(self, fields: Dict[str, Any], exception: Optional[BaseException] = None) -> None:
        if not self._enabled:
            return

        record: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "session_id": self._session_id,
        }
        record.update(fields)
        if exception is not None:
            record["error"] = self._describe_exception(exception)

        text = json.dumps(record, ensure_ascii=False, separators=(",", ":")) \
            if self._format == "jsonl" else self._as_line(record)

        with self._lock:
            if self._console:
                print(text, flush=True)
            if self._file_path:
                self._append(text)

    def _append(self, text: str) -> None:
        try:
            folder = os.path.dirname(os.path.abspath(self._file_path))
            os.makedirs(folder, exist_ok=True)
            with open(self._file_path, "a", encoding="utf-8") as f:
                f.write(text + "\n")
        except OSError:
            # Logging must never interrupt an automation run.
            pass

    @staticmethod
    def _as_line(record: Dict[str, Any]) -> str:
        parts: List[str] = [record["ts"][11:23], record["kind"], f"session={record['session_id']}"]
        for key, value in record.items():
            if key in ("ts", "kind", "session_id", "error") or value is None:
                continue
            parts.append(f"{key}={value!r}" if isinstance(value, str) else f"{key}={value}")
        error = record.get("error")
        if error:
            parts.append(f"error={error['type']}: {error['message']}")
        return " | ".join(parts)

    def _describe_exception(self, exception: BaseException) -> Dict[str, Any]:
        tb = "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))
        if len(tb) > self._max_traceback_chars:
            tb = tb[: self._max_traceback_chars] + "...<truncated>"
        return {"type": type(exception).__name__, "message": str(exception), "traceback": tb.strip()}


ACTION_LOGGER = ActionLogger()
