"""Error taxonomy shared by services and the HTTP layer."""

from typing import Optional


class KitError(Exception):
    """Base exception for the listing kit service."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = "", *, code: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.__class__.__doc__ or self.code
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    @property
    def public_message(self) -> str:
        """Message safe to return to callers; server errors stay generic."""
        if self.status_code >= 500:
            return "Generation failed. Please try again later."
        return self.message


class ValidationError(KitError):
    """Missing or malformed request fields."""

    status_code = 400
    code = "missing_fields"


class AuthorizationError(KitError):
    """Request is not entitled to produce a paid artifact."""

    status_code = 401
    code = "unauthorized"


class MissingSessionError(AuthorizationError):
    """A payment session id is required for this kind."""

    code = "missing_session"


class PaymentRequiredError(AuthorizationError):
    """Payment for this session has not been confirmed."""

    status_code = 402
    code = "payment_required"


class NotFoundError(KitError):
    """Requested resource does not exist."""

    status_code = 404
    code = "not_found"


class WebhookSignatureError(KitError):
    """Webhook payload could not be verified."""

    status_code = 400
    code = "invalid_signature"


class PayloadTooLargeError(KitError):
    """An uploaded file exceeds the per-file size limit."""

    status_code = 413
    code = "payload_too_large"


class UpstreamError(KitError):
    """An external collaborator failed."""

    status_code = 500
    code = "upstream_error"


class GenerationFailedError(UpstreamError):
    """The artifact pipeline aborted."""

    code = "generation_failed"

    def __init__(self, message: str = "", *, job_id: Optional[str] = None, step: Optional[str] = None):
        super().__init__(message)
        self.job_id = job_id
        self.step = step


class DuplicateJobError(KitError):
    """A job with this id already exists."""

    code = "duplicate_job"


class InvalidTransitionError(KitError):
    """Job status write rejected by the state machine."""

    status_code = 409
    code = "invalid_transition"
