"""Prompts package for centralized prompt management."""

from .prompt_templates import (
    CAPTION_COUNT,
    LISTING_COPY_SYSTEM_PROMPT,
    LISTING_COPY_USER_PROMPT,
    PromptTemplate,
)

__all__ = [
    'CAPTION_COUNT',
    'LISTING_COPY_SYSTEM_PROMPT',
    'LISTING_COPY_USER_PROMPT',
    'PromptTemplate',
]
