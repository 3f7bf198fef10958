"""Listing copywriter agent."""

import json
import logging
from pathlib import Path
from typing import Dict

from src.agents.state import KitState
from src.services.job_service import JobService
from src.services.llm_service import LLMService

logger = logging.getLogger(__name__)

LISTING_FILENAME = "listing.json"


def generate_copy_node(state: KitState, *, llm_service: LLMService, job_service: JobService) -> Dict:
    """Write listing copy for the property.

    This is a workflow node that:
    1. Prompts the model with the address and customer details
    2. Falls back to the raw model text when it is not valid JSON
    3. Saves the copy as listing.json in the job's working directory

    Args:
        state: Current workflow state
        llm_service: Chat model wrapper
        job_service: Used to attribute a failure to this step

    Returns:
        Dict with updated state keys
    """
    logger.info("Generating listing copy for job %s", state["job_id"])

    try:
        listing = llm_service.generate_listing_copy(
            address=state["address"],
            details=state.get("details"),
        )

        listing_path = Path(state["work_dir"]) / LISTING_FILENAME
        listing_path.write_text(json.dumps(listing.model_dump(), indent=2))

        logger.info(
            f"Listing copy ready: {len(listing.mls)} chars of MLS copy, "
            f"{len(listing.captions)} captions"
        )

        return {
            "listing_copy": listing.model_dump(),
        }

    except Exception as error:
        logger.error(f"Error generating listing copy: {error}", exc_info=True)
        job_service.record_failure(state["job_id"], "generate_copy", str(error))
        return {
            "error_message": f"Listing copy generation failed: {str(error)}",
            "failed_step": "generate_copy",
            "status": "failed"
        }
