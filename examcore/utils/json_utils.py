"""JSON serialization utilities for free-form answer columns."""
import json


def json_dump(payload: object) -> str:
    """Serialize object to compact JSON string (``None`` becomes ``null``)."""
    return json.dumps(payload, ensure_ascii=False)


def json_load(data: str | None, default: object = None) -> object:
    """Deserialize JSON string, returning ``default`` for empty or bad data."""
    if data is None or data == "":
        return default
    try:
        return json.loads(data)
    except (json.JSONDecodeError, TypeError):
        return default
