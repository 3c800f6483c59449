# ============================================================
# Business/domain entities
# ============================================================
import re
from dataclasses import dataclass
from typing import Optional

ORGANIZATION_PATH_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


@dataclass
class User:
    uuid: str
    subject: str
    organization_path: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    organization_name: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


def default_organization_path(subject: str, length: int = 8) -> str:
    """Derive the public tenant path segment from a subject identifier."""
    cleaned = re.sub(r"[^a-zA-Z0-9_]", "", subject)
    return (cleaned[:length] or "org").lower()
