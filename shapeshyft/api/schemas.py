from typing import Annotated, Any, Optional

from pydantic import AfterValidator, BaseModel, Field, HttpUrl, model_validator

from shapeshyft.domain.projects.entities import RESOURCE_NAME_PATTERN, EndpointType, HttpMethod
from shapeshyft.domain.schema.json_schema import JsonSchema
from shapeshyft.domain.users.entities import ORGANIZATION_PATH_PATTERN
from shapeshyft.llm.base import ProviderName

RESOURCE_NAME_REGEX = RESOURCE_NAME_PATTERN.pattern
ORGANIZATION_PATH_REGEX = ORGANIZATION_PATH_PATTERN.pattern
DATE_REGEX = r"^\d{4}-\d{2}-\d{2}$"


def _check_schema(value: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    if value is not None:
        JsonSchema.model_validate(value)
    return value


SchemaDict = Annotated[Optional[dict[str, Any]], AfterValidator(_check_schema)]


# -----------------------------------------
# LLM API keys
# -----------------------------------------

class KeyCreate(BaseModel):
    key_name: str = Field(..., min_length=1, max_length=255)
    provider: ProviderName
    api_key: Optional[str] = Field(default=None, min_length=1)
    endpoint_url: Optional[HttpUrl] = None

    @model_validator(mode="after")
    def check_credential(self):
        if self.provider == ProviderName.LLM_SERVER:
            if not self.endpoint_url:
                raise ValueError("endpoint_url is required for llm_server")
        elif not self.api_key:
            raise ValueError("api_key is required for API providers")
        return self


class KeyUpdate(BaseModel):
    key_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    api_key: Optional[str] = Field(default=None, min_length=1)
    endpoint_url: Optional[HttpUrl] = None
    is_active: Optional[bool] = None


# -----------------------------------------
# Projects
# -----------------------------------------

class ProjectCreate(BaseModel):
    project_name: str = Field(..., min_length=1, max_length=255, pattern=RESOURCE_NAME_REGEX)
    display_name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)


class ProjectUpdate(BaseModel):
    project_name: Optional[str] = Field(default=None, min_length=1, max_length=255, pattern=RESOURCE_NAME_REGEX)
    display_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    is_active: Optional[bool] = None


# -----------------------------------------
# Endpoints
# -----------------------------------------

class EndpointCreate(BaseModel):
    endpoint_name: str = Field(..., min_length=1, max_length=255, pattern=RESOURCE_NAME_REGEX)
    display_name: str = Field(..., min_length=1, max_length=255)
    endpoint_type: EndpointType = EndpointType.STRUCTURED_IN_STRUCTURED_OUT
    http_method: HttpMethod = HttpMethod.POST
    llm_key_id: str
    input_schema: SchemaDict = None
    output_schema: SchemaDict = None
    instructions: Optional[str] = Field(default=None, max_length=10000)
    context: Optional[str] = Field(default=None, max_length=10000)

class EndpointUpdate(BaseModel):
    endpoint_name: Optional[str] = Field(default=None, min_length=1, max_length=255, pattern=RESOURCE_NAME_REGEX)
    display_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    endpoint_type: Optional[EndpointType] = None
    http_method: Optional[HttpMethod] = None
    llm_key_id: Optional[str] = None
    input_schema: SchemaDict = None
    output_schema: SchemaDict = None
    instructions: Optional[str] = Field(default=None, max_length=10000)
    context: Optional[str] = Field(default=None, max_length=10000)
    is_active: Optional[bool] = None

# -----------------------------------------
# Settings / analytics
# -----------------------------------------

class SettingsUpdate(BaseModel):
    organization_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    organization_path: Optional[str] = Field(
        default=None, min_length=1, max_length=255, pattern=ORGANIZATION_PATH_REGEX
    )


class AnalyticsQuery(BaseModel):
    """
    Query filters for the usage report.

    All fields are optional; dates are inclusive.
    """

    start_date: Optional[str] = Field(default=None, pattern=DATE_REGEX)
    end_date: Optional[str] = Field(default=None, pattern=DATE_REGEX)
    project_id: Optional[str] = None
    endpoint_id: Optional[str] = None


# -----------------------------------------
# Helpers
# -----------------------------------------

class PromptHelperRequest(BaseModel):
    input_data: Any = None
    output_schema: SchemaDict = None
    description: Optional[str] = None
    context: Optional[str] = None
    provider: ProviderName = ProviderName.OPENAI

class ProviderConfigIn(BaseModel):
    api_key: Optional[str] = None
    endpoint_url: Optional[str] = None
    model: Optional[str] = None


class RequestOptionsIn(BaseModel):
    model: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    max_tokens: Optional[int] = Field(default=None, ge=1)


class RequestHelperRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    output_schema: SchemaDict = None
    provider: ProviderName
    provider_config: ProviderConfigIn = Field(default_factory=ProviderConfigIn)
    options: Optional[RequestOptionsIn] = None