"""Append-only JSONL journaling of fetch sessions and raw API payloads."""

from __future__ import annotations

import json
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

from .exceptions import JournalError
from .location.models import LocationUpdate
from .redaction import sanitize_for_logging, sanitize_text
from .weather.models import FetchSuccess


def _json_default(value: Any) -> Any:
    """Fallback serializer for values json cannot encode natively."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC).isoformat()
        return value.astimezone(UTC).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    # pydantic URL types and similar render through __str__; anything else is
    # rejected so unexpected payload shapes surface early.
    if hasattr(value, "__str__") and type(value).__str__ is not object.__str__:
        return sanitize_text(str(value))
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JournalWriter:
    """Writes session events to a daily JSONL file and raw payloads to disk."""

    def __init__(self, journal_dir: Path, raw_payload_dir: Path, session_id: str) -> None:
        self.journal_dir = journal_dir
        self.raw_payload_dir = raw_payload_dir
        self.session_id = session_id
        try:
            self.journal_dir.mkdir(parents=True, exist_ok=True)
            self.raw_payload_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise JournalError(f"Failed creating journal directories: {exc}") from exc
        self.events_path = self.journal_dir / f"{datetime.now(UTC):%Y%m%d}.jsonl"

    def write_event(
        self,
        event_type: str,
        payload: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Append one event record to the JSONL journal."""
        record: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(),
            "event_type": event_type,
            "session_id": self.session_id,
            "payload": sanitize_for_logging(payload),
            "metadata": sanitize_for_logging(metadata or {}),
        }
        try:
            with self.events_path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(record, default=_json_default))
                fh.write("\n")
        except (OSError, TypeError, ValueError) as exc:
            raise JournalError(f"Failed writing event journal: {exc}") from exc

    def write_raw_snapshot(self, name: str, payload: Any) -> Path:
        """Write a sanitized raw payload snapshot and return its path."""
        timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
        safe_name = "".join(ch if ch.isalnum() or ch in {"-", "_"} else "_" for ch in name)
        output_path = self.raw_payload_dir / f"{timestamp}_{self.session_id}_{safe_name}.json"
        try:
            with output_path.open("w", encoding="utf-8") as fh:
                json.dump(
                    sanitize_for_logging(payload),
                    fh,
                    ensure_ascii=False,
                    indent=2,
                    default=_json_default,
                )
                fh.write("\n")
        except (OSError, TypeError, ValueError) as exc:
            raise JournalError(f"Failed writing raw payload snapshot: {exc}") from exc
        return output_path

    def write_location_update(self, update: LocationUpdate) -> None:
        """Journal one resolver update (authorization, fix or place name)."""
        coordinates = update.coordinates
        self.write_event(
            "location_update",
            payload={
                "kind": update.kind,
                "sequence": update.sequence,
                "authorization_state": update.authorization_state,
                "lat": coordinates.latitude if coordinates else None,
                "lon": coordinates.longitude if coordinates else None,
                "place_name": update.place_name,
            },
            metadata={"session_id": self.session_id},
        )

    def write_weather_report(
        self,
        place_name: str,
        status: FetchSuccess,
        raw_payload_path: Path | None = None,
    ) -> None:
        """Journal a normalized report with the place it was fetched for."""
        self.write_event(
            "weather_report_normalized",
            payload={
                "place_name": place_name,
                "current": status.current.model_dump(mode="json"),
                "forecast": [day.model_dump(mode="json") for day in status.forecast],
                "forecast_days": len(status.forecast),
                "raw_payload_path": raw_payload_path,
            },
            metadata={"session_id": self.session_id},
        )
