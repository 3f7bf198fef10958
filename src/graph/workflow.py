"""LangGraph workflow orchestration for marketing kit generation."""

import logging
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Dict, Literal
from urllib.parse import quote

from langgraph.graph import StateGraph, END

from config.settings import ORIGIN
from src.agents.copywriter import generate_copy_node
from src.agents.state import KitState, ListingCopy
from src.services.archive_service import ArchiveService
from src.services.document_service import DocumentService
from src.services.image_service import ImageService
from src.services.job_service import JobService
from src.services.llm_service import LLMService
from src.services.notification_service import NotificationService
from src.services.storage_service import StorageService
from src.services.video_service import VideoService

logger = logging.getLogger(__name__)

# Node order is the pipeline order
PIPELINE_STEPS = (
    "generate_copy",
    "enhance_images",
    "render_brochure",
    "render_video",
    "build_archive",
    "upload_archive",
    "notify_customer",
    "finalize",
)

ENHANCED_DIRNAME = "enhanced"
BROCHURE_FILENAME = "brochure.pdf"
VIDEO_FILENAME = "tour.mp4"


@dataclass
class PipelineServices:
    """External collaborators the workflow calls, one long-lived instance each."""

    llm: LLMService
    storage: StorageService
    images: ImageService = field(default_factory=ImageService)
    documents: DocumentService = field(default_factory=DocumentService)
    videos: VideoService = field(default_factory=VideoService)
    archives: ArchiveService = field(default_factory=ArchiveService)
    notifications: NotificationService = field(default_factory=NotificationService)


def download_url_for(key: str, origin: str = ORIGIN) -> str:
    return f"{origin.rstrip('/')}/download/s3/{quote(key, safe='/')}"


class KitWorkflow:
    """Builds the linear kit graph; every node ends the run on failure."""

    def __init__(self, services: PipelineServices, job_service: JobService, origin: str = ORIGIN) -> None:
        self.services = services
        self.job_service = job_service
        self.origin = origin

    def _fail(self, state: KitState, step: str, error: Exception) -> Dict:
        logger.error(f"Step {step} failed for job {state.get('job_id')}: {error}", exc_info=True)
        try:
            self.job_service.record_failure(state["job_id"], step, str(error))
        except Exception as record_error:
            logger.error(f"Could not record failure for job {state.get('job_id')}: {record_error}")
        return {
            "error_message": f"{step} failed: {str(error)}",
            "failed_step": step,
            "status": "failed",
        }

    def enhance_images_node(self, state: KitState) -> Dict:
        logger.info("Enhancing %d photos", len(state.get("source_paths", [])))
        try:
            enhanced = self.services.images.enhance_all(
                state["source_paths"],
                str(Path(state["work_dir"]) / ENHANCED_DIRNAME),
            )
            return {"enhanced_paths": enhanced}
        except Exception as error:
            return self._fail(state, "enhance_images", error)

    def render_brochure_node(self, state: KitState) -> Dict:
        logger.info("Rendering brochure")
        try:
            brochure = self.services.documents.generate_brochure(
                output_path=str(Path(state["work_dir"]) / BROCHURE_FILENAME),
                address=state["address"],
                listing=ListingCopy(**state.get("listing_copy", {})),
                images=state.get("enhanced_paths", []),
            )
            return {
                "brochure_path": brochure.path,
                "brochure_image_count": brochure.image_count,
            }
        except Exception as error:
            return self._fail(state, "render_brochure", error)

    def render_video_node(self, state: KitState) -> Dict:
        logger.info("Rendering slideshow video")
        try:
            video_path = self.services.videos.render_slideshow(
                state.get("enhanced_paths", []),
                str(Path(state["work_dir"]) / VIDEO_FILENAME),
            )
            return {"video_path": video_path}
        except Exception as error:
            return self._fail(state, "render_video", error)

    def build_archive_node(self, state: KitState) -> Dict:
        logger.info("Building archive")
        try:
            work_dir = Path(state["work_dir"])
            archive_path = self.services.archives.zip_directory(
                str(work_dir),
                str(work_dir.parent / f"{state['job_id']}.zip"),
            )
            return {"archive_path": archive_path}
        except Exception as error:
            return self._fail(state, "build_archive", error)

    def upload_archive_node(self, state: KitState) -> Dict:
        logger.info("Uploading archive")
        try:
            storage = self.services.storage
            key = storage.upload_archive(state["archive_path"], storage.key_for_job(state["job_id"]))
            return {
                "artifact_key": key,
                "download_url": download_url_for(key, self.origin),
            }
        except Exception as error:
            return self._fail(state, "upload_archive", error)

    def notify_customer_node(self, state: KitState) -> Dict:
        email = state.get("email")
        notifications = self.services.notifications
        if not email or not notifications.is_configured:
            logger.info("Skipping customer notification (email=%s, smtp=%s)", bool(email), notifications.is_configured)
            return {"notified": False}

        try:
            notifications.send_kit_ready(email, state["download_url"])
            return {"notified": True}
        except Exception as error:
            return self._fail(state, "notify_customer", error)

    def finalize_node(self, state: KitState) -> Dict:
        try:
            self.job_service.mark_ready(state["job_id"], state["artifact_key"])
            logger.info(f"Job {state['job_id']} ready at {state['artifact_key']}")
            return {"status": "ready"}
        except Exception as error:
            return self._fail(state, "finalize", error)

    def build(self):
        """Create and compile the LangGraph workflow.

        Returns:
            Compiled StateGraph
        """
        logger.info("Creating LangGraph workflow")

        workflow = StateGraph(KitState)

        nodes = {
            "generate_copy": partial(
                generate_copy_node,
                llm_service=self.services.llm,
                job_service=self.job_service,
            ),
            "enhance_images": self.enhance_images_node,
            "render_brochure": self.render_brochure_node,
            "render_video": self.render_video_node,
            "build_archive": self.build_archive_node,
            "upload_archive": self.upload_archive_node,
            "notify_customer": self.notify_customer_node,
            "finalize": self.finalize_node,
        }
        for name in PIPELINE_STEPS:
            workflow.add_node(name, nodes[name])

        workflow.set_entry_point(PIPELINE_STEPS[0])

        for current, following in zip(PIPELINE_STEPS, PIPELINE_STEPS[1:]):
            workflow.add_conditional_edges(
                current,
                should_continue,
                {
                    "continue": following,
                    "end": END
                }
            )
        workflow.add_edge(PIPELINE_STEPS[-1], END)

        logger.info("Workflow created with %d nodes", len(PIPELINE_STEPS))

        return workflow.compile()


def should_continue(state: KitState) -> Literal["continue", "end"]:
    """Stop the run as soon as a node reports failure."""
    if state.get("status") == "failed":
        logger.error("Step %s failed, ending workflow", state.get("failed_step", "unknown"))
        return "end"
    return "continue"


def create_workflow(services: PipelineServices, job_service: JobService, origin: str = ORIGIN):
    return KitWorkflow(services, job_service, origin=origin).build()
