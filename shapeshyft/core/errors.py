# ---------------------------------
# TYPED EXCEPTIONS
# ---------------------------------


class ShapeshyftError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500


class ProviderConfigurationError(ShapeshyftError):
    """Raised when a provider adapter cannot be constructed (missing key or URL)."""


class UnknownProviderError(ProviderConfigurationError):
    """Raised for a provider identifier outside the supported set."""


class LLMParseError(ShapeshyftError):
    """Raised when provider output cannot be turned into structured content."""


class MalformedProviderResponseError(LLMParseError):
    """Raised when a provider does not return its expected structured-call shape."""


class ProviderHTTPError(ShapeshyftError):
    """Raised when a provider (or custom LLM server) answers with a non-2xx status."""

    def __init__(self, status: int, body: str, label: str = 'LLM Server') -> None:
        super().__init__(f'{label} error ({status}): {body}')
        self.status = status
        self.body = body


class InputValidationError(ShapeshyftError):
    status_code = 400


class NotFoundError(ShapeshyftError):
    status_code = 404


class MethodNotAllowedError(ShapeshyftError):
    status_code = 405


class ForbiddenError(ShapeshyftError):
    status_code = 403


class ConflictError(ShapeshyftError):
    status_code = 409


class CredentialUnavailableError(ShapeshyftError):
    """Raised when an endpoint's bound LLM key is missing or inactive."""


class PayloadBuildError(ShapeshyftError):
    """Raised when a payload-only endpoint cannot produce its provider payload."""


class LLMProcessingError(ShapeshyftError):
    """Raised by the orchestrator after a failed LLM attempt has been recorded."""
