# ============================================================
# Business/domain entities
# ============================================================
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

# Lowercase alphanumeric with optional inner hyphens.
RESOURCE_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*[a-z0-9]$|^[a-z0-9]$")


class EndpointType(str, Enum):
    STRUCTURED_IN_STRUCTURED_OUT = "structured_in_structured_out"
    TEXT_IN_STRUCTURED_OUT = "text_in_structured_out"
    STRUCTURED_IN_API_OUT = "structured_in_api_out"
    TEXT_IN_API_OUT = "text_in_api_out"

    @property
    def calls_llm(self) -> bool:
        return self in (EndpointType.STRUCTURED_IN_STRUCTURED_OUT, EndpointType.TEXT_IN_STRUCTURED_OUT)

    @property
    def text_input(self) -> bool:
        return self in (EndpointType.TEXT_IN_STRUCTURED_OUT, EndpointType.TEXT_IN_API_OUT)


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"


@dataclass
class Project:
    uuid: str
    user_id: str
    project_name: str
    display_name: str
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Endpoint:
    uuid: str
    project_id: str
    endpoint_name: str
    display_name: str
    llm_key_id: str
    endpoint_type: EndpointType = EndpointType.STRUCTURED_IN_STRUCTURED_OUT
    http_method: HttpMethod = HttpMethod.POST
    input_schema: Optional[dict[str, Any]] = None
    output_schema: Optional[dict[str, Any]] = None
    instructions: Optional[str] = None
    context: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
