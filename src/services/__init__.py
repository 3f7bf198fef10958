"""Services module exports."""

from .job_service import JobRecord, JobService
from .job_repository import JobRepository
from .entitlement_service import EntitlementService
from .generation_service import GenerationRequest, GenerationResult, GenerationService
from .webhook_service import WebhookService

__all__ = [
    "EntitlementService",
    "GenerationRequest",
    "GenerationResult",
    "GenerationService",
    "JobRecord",
    "JobRepository",
    "JobService",
    "WebhookService",
]
