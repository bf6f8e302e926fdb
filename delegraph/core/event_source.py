"""Decoding helpers for events arriving from the upstream event source.

This is the only layer that raises on bad input: the store itself never
does.  ``read_event_log`` reads a JSON-lines export of an event log and
skips lines that cannot be decoded.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from delegraph.models.events import GraphEvent

logger = logging.getLogger(__name__)


class EventDecodeError(ValueError):
    """Raised when a raw message cannot be decoded into a ``GraphEvent``."""


def decode_event(raw: bytes | str | dict[str, Any]) -> GraphEvent:
    """Decode and validate one wire message.

    Accepts raw JSON (``bytes`` or ``str``) or an already-parsed dict.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EventDecodeError(f"Invalid UTF-8: {exc}") from exc

    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise EventDecodeError(f"Invalid JSON: {exc}") from exc
    else:
        data = raw

    if not isinstance(data, dict):
        raise EventDecodeError(
            f"Event must be a JSON object, got {type(data).__name__}"
        )

    try:
        return GraphEvent.model_validate(data)
    except ValidationError as exc:
        raise EventDecodeError(f"Event validation failed: {exc}") from exc


def encode_event(event: GraphEvent) -> str:
    """Serialize an event to compact, key-sorted JSON in the wire shape."""
    return json.dumps(event.to_wire(), sort_keys=True, separators=(",", ":"))


def read_event_log(path: Path | str) -> Iterator[GraphEvent]:
    """Yield events from a JSON-lines file in file order.

    Blank lines are ignored.  Undecodable lines are logged and skipped.
    """
    path = Path(path)
    with path.open("rb") as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield decode_event(line)
            except EventDecodeError as exc:
                logger.warning("Skipping %s:%d: %s", path, lineno, exc)


def write_event_log(path: Path | str, events: list[GraphEvent]) -> int:
    """Write *events* as JSON lines.  Returns the number written."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        for event in events:
            fh.write(encode_event(event) + "\n")
    return len(events)
