"""Centralized prompt templates for the listing copywriter.

Prompts are kept as system/user pairs; user prompts declare the parameters
they need so a missing field fails loudly before a model call is made.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

CAPTION_COUNT = 5


@dataclass
class PromptTemplate:
    """Prompt text with required and optional parameters."""

    template: str
    required_params: List[str]
    optional_params: Optional[List[str]] = None

    def __post_init__(self) -> None:
        if self.optional_params is None:
            self.optional_params = []

    def format(self, **kwargs: Any) -> str:
        """Format the template with provided parameters."""
        missing = set(self.required_params) - set(kwargs.keys())
        if missing:
            raise ValueError(f"Missing required parameters: {missing}")

        for param in self.optional_params:
            if param not in kwargs or kwargs[param] in (None, ""):
                kwargs[param] = "N/A"

        try:
            return self.template.format(**kwargs)
        except Exception as exc:  # pragma: no cover - logging path
            logger.error("Error formatting template: %s", exc)
            logger.error("Provided kwargs: %s", list(kwargs.keys()))
            raise


LISTING_COPY_SYSTEM_PROMPT = PromptTemplate(
    template="You generate real estate listing copy. Output strictly JSON.",
    required_params=[],
)

LISTING_COPY_USER_PROMPT = PromptTemplate(
    template="""Create an MLS-ready listing and {caption_count} social captions for a property.
Address: {address}
Details: {details}
Style: persuasive but factual. Return JSON with keys: mls, seo, captions (array of {caption_count}).""",
    required_params=["address", "caption_count"],
    optional_params=["details"],
)
