"""Runs the kit workflow for one request and finalizes its job record."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import mlflow

from config.settings import MLFLOW_EXPERIMENT, MLFLOW_TRACING_ENABLED, OUT_DIR
from src.services.errors import GenerationFailedError
from src.services.job_service import JobRecord, JobService

logger = logging.getLogger(__name__)


@dataclass
class GenerationRequest:
    """Validated, entitled inputs for one kit."""

    address: str
    kind: str
    photo_paths: List[str]
    email: Optional[str] = None
    details: Optional[str] = None
    session_id: Optional[str] = None


@dataclass
class GenerationResult:
    job_id: str
    status: str
    download_url: str
    job: Optional[JobRecord] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jobId": self.job_id,
            "status": self.status,
            "download": self.download_url,
        }


class GenerationService:
    """Creates the job record, invokes the compiled workflow and reports the outcome."""

    def __init__(
        self,
        job_service: JobService,
        workflow: Any,
        out_dir: Path = OUT_DIR,
        tracing_enabled: bool = MLFLOW_TRACING_ENABLED,
        experiment: str = MLFLOW_EXPERIMENT,
    ) -> None:
        self.job_service = job_service
        self.workflow = workflow
        self.out_dir = Path(out_dir)
        self.tracing_enabled = tracing_enabled
        self.experiment = experiment

    def generate(self, request: GenerationRequest) -> GenerationResult:
        job_id = JobRecord.new_id()
        work_dir = self.out_dir / job_id
        work_dir.mkdir(parents=True, exist_ok=True)

        job = self.job_service.create_job(
            job_id=job_id,
            address=request.address,
            kind=request.kind,
            email=request.email,
            correlation_id=request.session_id,
        )

        initial_state = {
            "job_id": job.id,
            "address": request.address,
            "details": request.details,
            "email": request.email,
            "kind": request.kind,
            "source_paths": list(request.photo_paths),
            "work_dir": str(work_dir),
            "status": "processing",
            "failed_step": "",
            "error_message": "",
        }

        result = self._invoke(initial_state)

        if result is None:
            logger.error("Workflow returned None for job %s", job.id)
            raise GenerationFailedError("Workflow returned no result", job_id=job.id)

        if result.get("status") != "ready":
            step = result.get("failed_step") or "unknown"
            raise GenerationFailedError(
                result.get("error_message") or "Generation failed",
                job_id=job.id,
                step=step,
            )

        return GenerationResult(
            job_id=job.id,
            status="ready",
            download_url=result["download_url"],
            job=self.job_service.get(job.id),
        )

    def _invoke(self, state: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if not self.tracing_enabled:
            return self.workflow.invoke(state)

        mlflow.set_experiment(self.experiment)
        with mlflow.start_span(name="listing_kit_workflow") as span:
            span.set_inputs({
                "job_id": state["job_id"],
                "kind": state["kind"],
                "photo_count": len(state["source_paths"]),
            })
            result = self.workflow.invoke(state)
            if result is not None:
                span.set_outputs({
                    "status": result.get("status"),
                    "failed_step": result.get("failed_step"),
                    "brochure_image_count": result.get("brochure_image_count", 0),
                })
            else:
                span.set_outputs({"status": "failed", "error": "Workflow returned no result"})
            return result
