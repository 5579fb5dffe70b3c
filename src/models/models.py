"""
Pydantic data models for Storybook

Stories, system configuration and API request/response bodies.
Entity models (children, characters) live in profiles.py.

API LIMITS (user-facing)
========================
| Field                  | Min | Max     | Model                  |
|------------------------|-----|---------|------------------------|
| ResolveRequest.texts   | 0   | 500     | ResolveRequest         |
| ResolveRequest.texts[] | 0   | 100,000 | ResolveRequest         |
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.config.limits import RESOLVE_BATCH_MAX_TEXTS, RESOLVE_TEXT_MAX_LENGTH


class SubstitutionMode(str, Enum):
    """How a resolved placeholder is rendered back into text"""
    NAME = "name"                  # plain display name
    DESCRIPTION = "description"    # "[Nutsy, a Pet, who likes acorns]" for characters
    TTS = "tts"                    # pronunciation when known, else display name


# ============================================================================
# Stories
# ============================================================================

class StoryMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None


class Story(BaseModel):
    """
    A story document from the `stories` collection.

    Unknown fields are kept so API responses can pass the document
    through alongside the resolved fields.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    child_id: Optional[str] = None
    parent_uid: Optional[str] = None
    metadata: Optional[StoryMetadata] = None
    synopsis: Optional[str] = None
    actors: List[Optional[str]] = Field(default_factory=list)
    created_at: Optional[Any] = None
    deleted_at: Optional[Any] = None

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "Story":
        return cls.model_validate({**data, "id": doc_id})

    @property
    def title(self) -> str:
        if self.metadata and self.metadata.title:
            return self.metadata.title
        return ""

    @property
    def is_deleted(self) -> bool:
        return bool(self.deleted_at)

    def created_at_seconds(self) -> float:
        """Sort key; handles datetimes and serialized {seconds|_seconds} timestamps."""
        value = self.created_at
        if value is None:
            return 0
        if isinstance(value, datetime):
            return value.timestamp()
        if isinstance(value, dict):
            return value.get("seconds") or value.get("_seconds") or 0
        return 0


# ============================================================================
# System configuration
# ============================================================================

class GlobalPromptConfig(BaseModel):
    """
    Global prompt prefix applied to every AI flow.

    Stored at systemConfig/prompts; missing fields take these defaults.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    enabled: bool = False
    global_prefix: str = ""
    updated_by: Optional[str] = None


class GlobalPromptConfigUpdate(BaseModel):
    """Request model for updating the global prompt config"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    enabled: Optional[bool] = None
    global_prefix: Optional[str] = Field(default=None, max_length=20000)


# ============================================================================
# API bodies
# ============================================================================

class ResolveRequest(BaseModel):
    """Body of POST /api/placeholders/resolve"""
    texts: List[Optional[str]] = Field(..., max_length=RESOLVE_BATCH_MAX_TEXTS)
    mode: SubstitutionMode = SubstitutionMode.NAME

    @field_validator("texts")
    @classmethod
    def check_text_lengths(cls, v):
        for text in v:
            if text and len(text) > RESOLVE_TEXT_MAX_LENGTH:
                raise ValueError(f"Text exceeds {RESOLVE_TEXT_MAX_LENGTH} characters")
        return v


class ResolveResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    resolved_texts: List[Optional[str]]
