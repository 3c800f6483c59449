import json
import uuid
from datetime import datetime, timezone
from typing import Any


def new_uuid() -> str:
    return str(uuid.uuid4())


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def dump_json(value: Any) -> str | None:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def load_json(value: Any) -> Any:
    """Decode a JSON text column; drivers with native JSON hand back objects already."""
    if value is None or not isinstance(value, str):
        return value
    return json.loads(value)
