"""LLM service for listing copy generation."""

import logging
from typing import Any, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.output_parsers import JsonOutputParser
from langchain_openai import ChatOpenAI
from pydantic import ValidationError as PydanticValidationError

from config.settings import (
    LLM_TEMPERATURE,
    OPENAI_API_KEY,
    OPENAI_MODEL,
    OPENAI_TIMEOUT_SECONDS,
)
from src.agents.state import ListingCopy
from src.prompts.prompt_templates import (
    CAPTION_COUNT,
    LISTING_COPY_SYSTEM_PROMPT,
    LISTING_COPY_USER_PROMPT,
)
from src.services.errors import UpstreamError

logger = logging.getLogger(__name__)

# Certain models only support the default temperature of 1.0
DEFAULT_TEMPERATURE_MODELS = (
    "gpt-5",
    "gpt-5-preview",
    "gpt-4.1",
    "gpt-4.1-mini",
)


class LLMService:
    """Wrapper for chat model calls that return listing copy."""

    def __init__(
        self,
        chat_model: Optional[Any] = None,
        *,
        api_key: Optional[str] = None,
        model: str = OPENAI_MODEL,
        temperature: Optional[float] = LLM_TEMPERATURE,
        timeout: float = OPENAI_TIMEOUT_SECONDS,
    ):
        """Initialize the chat model.

        Args:
            chat_model: Pre-built LangChain chat model; skips client construction
            api_key: OpenAI API key, defaults to OPENAI_API_KEY
            model: Model name
            temperature: Sampling temperature, ignored for default-temperature models
            timeout: Per-request timeout in seconds
        """
        self.chat_model = chat_model
        if self.chat_model is not None:
            return

        api_key = api_key or OPENAI_API_KEY
        if not api_key:
            logger.warning("OPENAI_API_KEY not configured; copy generation will fail")
            return

        kwargs = {
            "model": model,
            "api_key": api_key,
            "timeout": timeout,
            "max_retries": 0,
        }

        if any(model.startswith(prefix) for prefix in DEFAULT_TEMPERATURE_MODELS):
            if temperature not in (None, 1, 1.0):
                logger.warning(
                    "Model %s requires default temperature=1.0; overriding configured value %s",
                    model,
                    temperature,
                )
            kwargs["temperature"] = 1.0
        elif temperature is not None:
            kwargs["temperature"] = temperature

        self.chat_model = ChatOpenAI(**kwargs)

        logger.info(
            "LLM Service initialized with %s (temperature=%s)",
            model,
            kwargs.get("temperature", "default"),
        )

    def generate_listing_copy(self, address: str, details: Optional[str] = None) -> ListingCopy:
        """Generate MLS copy, a short summary and social captions for a property.

        Args:
            address: Property address
            details: Optional free-text details from the customer

        Returns:
            ListingCopy; unparseable model output lands in ``mls`` with the
            other fields left empty

        Raises:
            UpstreamError: If the model call itself fails
        """
        if self.chat_model is None:
            raise UpstreamError("OPENAI_API_KEY not configured")

        messages = [
            SystemMessage(content=LISTING_COPY_SYSTEM_PROMPT.format()),
            HumanMessage(
                content=LISTING_COPY_USER_PROMPT.format(
                    address=address,
                    details=details,
                    caption_count=CAPTION_COUNT,
                )
            ),
        ]

        try:
            response = self.chat_model.invoke(messages)
        except Exception as error:
            logger.error(f"Error generating listing copy: {error}")
            raise UpstreamError(f"Listing copy generation failed: {error}") from error

        return self.parse_listing_copy(self._response_text(response))

    @staticmethod
    def parse_listing_copy(content: str) -> ListingCopy:
        """Parse model output, degrading to raw text rather than failing."""
        try:
            result = JsonOutputParser(pydantic_object=ListingCopy).parse(content)
            if not isinstance(result, dict):
                raise ValueError(f"Expected a JSON object, got {type(result).__name__}")
            captions = result.get("captions") or []
            if not isinstance(captions, list):
                captions = [captions]
            listing = ListingCopy(
                mls=str(result.get("mls") or ""),
                seo=str(result.get("seo") or ""),
                captions=[str(caption) for caption in captions],
            )
        except (ValueError, PydanticValidationError) as error:
            # OutputParserException subclasses ValueError
            logger.warning("Model returned non-JSON listing copy; using raw text (%s)", error)
            return ListingCopy.from_raw_text(content)

        logger.info("Generated listing copy: %d chars, %d captions", len(listing.mls), len(listing.captions))
        return listing

    @staticmethod
    def _response_text(response: Any) -> str:
        content = getattr(response, "content", response)
        if isinstance(content, list):
            # Content blocks from newer chat models
            parts = []
            for block in content:
                if isinstance(block, dict):
                    parts.append(str(block.get("text", "")))
                else:
                    parts.append(str(block))
            return "".join(parts)
        return str(content or "")
