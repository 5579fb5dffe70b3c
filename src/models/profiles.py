"""
Profile Models for Storybook Entities

Two kinds of record can be referenced from story text by placeholder:
- ChildProfile: the child a story is written for (children/{childId})
- Character: a supporting actor such as a pet, toy or family member
  (characters/{characterId})

Both carry an explicit `kind` discriminant. It is set by the loader from the
collection a document came from and is never inferred from which optional
fields happen to be present.

Firestore documents use camelCase keys; the models accept either camelCase
or snake_case and serialize back to camelCase with `by_alias=True`.
"""

from dataclasses import dataclass
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel


class EntityKind:
    """Discriminant values for the Entity union"""
    CHILD = "child"
    CHARACTER = "character"


class _FirestoreModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class _EntityDocument(_FirestoreModel):
    """
    Fields shared by every referenceable entity.

    Read side only: stored documents are accepted as they are, so optional
    lists may be null and names carry no length limit here.
    """
    id: str
    display_name: str
    owner_parent_uid: Optional[str] = None
    avatar_url: Optional[str] = None
    pronouns: Optional[str] = None
    name_pronunciation: Optional[str] = None
    likes: Optional[List[str]] = Field(default_factory=list)
    dislikes: Optional[List[str]] = Field(default_factory=list)
    description: Optional[str] = None

    @field_validator("likes", "dislikes", mode="before")
    @classmethod
    def null_list_to_empty(cls, v):
        if v is None:
            return []
        if isinstance(v, list):
            return [item for item in v if item is not None]
        return v


# ============================================================================
# Child Profile
# ============================================================================

class ChildProfile(_EntityDocument):
    """
    A child profile owned by a parent account.

    Referenced from story text as the main character.
    """
    kind: Literal["child"] = EntityKind.CHILD

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "ChildProfile":
        """Build from a `children` collection document."""
        return cls.model_validate({**data, "id": doc_id, "kind": EntityKind.CHILD})


# ============================================================================
# Character
# ============================================================================

class Character(_EntityDocument):
    """
    A supporting actor (Family, Friend, Pet, Toy or Other).

    `type` is the role classification shown in description mode,
    e.g. "[Nutsy, a Pet, who likes acorns]".
    """
    kind: Literal["character"] = EntityKind.CHARACTER
    type: Optional[str] = "Other"
    relationship: Optional[str] = None
    child_id: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def default_type(cls, v):
        return v or "Other"

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "Character":
        """Build from a `characters` collection document."""
        return cls.model_validate({**data, "id": doc_id, "kind": EntityKind.CHARACTER})


Entity = Annotated[Union[ChildProfile, Character], Field(discriminator="kind")]

_entity_adapter = TypeAdapter(Entity)


def entity_from_document(kind: str, doc_id: str, data: Dict[str, Any]) -> Union[ChildProfile, Character]:
    """Validate a stored document as the Entity variant named by `kind`."""
    return _entity_adapter.validate_python({**(data or {}), "id": doc_id, "kind": kind})


# ============================================================================
# Resolution results
# ============================================================================

@dataclass(frozen=True)
class ResolvedEntity:
    """An entity found for one placeholder token."""
    display_name: str
    document: Entity

    @property
    def kind(self) -> str:
        return self.document.kind

    @property
    def is_character(self) -> bool:
        return self.document.kind == EntityKind.CHARACTER


# Placeholder token -> resolved entity. Built per request, never persisted.
ResolvedEntityMap = Dict[str, ResolvedEntity]


class EntityMetadata(_FirestoreModel):
    """Actor summary returned alongside resolved story text"""
    id: str
    display_name: str
    avatar_url: Optional[str] = None
    type: Literal["character", "child"]


class ActorNameMapping(_FirestoreModel):
    """Display name to identifier pair used when writing placeholders into text"""
    id: str
    display_name: str
