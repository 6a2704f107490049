import json
from datetime import UTC, datetime
from typing import Any, TypedDict
from uuid import uuid4


class ProgressEvent(TypedDict, total=False):
    message: str
    success: bool
    timestamp: str
    data: dict[str, Any] | None
    request_id: str | None
    code: str | None
    progress: float | None


def encode_event(event: ProgressEvent, request_id: str | None = None, include_timestamp: bool = True) -> bytes:
    """
    Serialize a progress event as one NDJSON line.

    Args:
        event: The event to send
        request_id: Optional request identifier for correlation
        include_timestamp: Whether to include a timestamp in the event

    Returns:
        Serialized event as bytes with newline
    """
    if include_timestamp:
        event["timestamp"] = datetime.now(UTC).isoformat().replace("+00:00", "Z")

    if "request_id" not in event:
        event["request_id"] = request_id or str(uuid4())

    return json.dumps(event).encode() + b"\n"
