from fastapi import APIRouter, Depends

from shapeshyft.api.core.container import get_container
from shapeshyft.api.dependencies import get_authorized_user, ok
from shapeshyft.api.schemas import PromptHelperRequest, RequestHelperRequest
from shapeshyft.domain.schema.json_schema import parse_schema
from shapeshyft.domain.users.entities import User
from shapeshyft.llm.factory import ProviderConfig
from shapeshyft.runtime.api_helper import RequestOptions, build_request_payload
from shapeshyft.runtime.prompt_builder import PromptInput, build_prompt

router = APIRouter(prefix="/users/{user_id}/helpers", tags=["Helpers"])


@router.post(
    "/prompt",
    summary="Build a prompt",
    description="Human-readable prompt for trying a schema in a chat app",
)
async def prompt_helper(
    payload: PromptHelperRequest,
    user: User = Depends(get_authorized_user),
):
    prompt = build_prompt(
        PromptInput(
            input_data=payload.input_data,
            output_schema=parse_schema(payload.output_schema),
            description=payload.description,
            context=payload.context,
            provider=payload.provider,
        )
    )
    return ok({"prompt": prompt})


@router.post(
    "/request",
    summary="Build a provider request",
    description="Provider-native request payload for a prompt; the provider is not called",
)
async def request_helper(
    payload: RequestHelperRequest,
    user: User = Depends(get_authorized_user),
    container=Depends(get_container),
):
    options = payload.options
    result = build_request_payload(
        prompt=payload.prompt,
        output_schema=parse_schema(payload.output_schema),
        provider=payload.provider,
        provider_config=ProviderConfig(**payload.provider_config.model_dump()),
        options=RequestOptions(**options.model_dump()) if options else None,
        provider_factory=container.provider_factory,
    )
    return ok(result)
