"""State definitions for the marketing kit workflow."""

from typing import List, Optional, TypedDict

from pydantic import BaseModel, Field


class ListingCopy(BaseModel):
    """Structured output from the listing copywriter."""

    mls: str = Field(default="", description="Long-form MLS listing description")
    seo: str = Field(default="", description="Short promotional summary")
    captions: List[str] = Field(
        default_factory=list,
        description="Social media captions"
    )

    @classmethod
    def from_raw_text(cls, text: str) -> "ListingCopy":
        """Fallback when the model did not return usable JSON."""
        return cls(mls=text or "", seo="", captions=[])


class KitState(TypedDict, total=False):
    """Main state object shared across all workflow nodes."""

    # Input from API
    job_id: str
    address: str
    details: Optional[str]
    email: Optional[str]
    kind: str
    source_paths: List[str]
    work_dir: str

    # Node outputs
    listing_copy: dict  # ListingCopy as dict
    enhanced_paths: List[str]
    brochure_path: str
    brochure_image_count: int
    video_path: str
    archive_path: str
    artifact_key: str
    download_url: str
    notified: bool

    # Workflow control
    status: str  # "processing", "ready", "failed"
    failed_step: str
    error_message: str
