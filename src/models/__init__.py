"""
Models package - Pydantic data models for Storybook

Re-exports all models for cleaner imports:
    from src.models import Story, Character, ChildProfile
"""

from src.models.models import *
from src.models.profiles import (
    # Entities
    EntityKind,
    ChildProfile,
    Character,
    Entity,
    entity_from_document,
    # Resolution
    ResolvedEntity,
    ResolvedEntityMap,
    EntityMetadata,
    ActorNameMapping,
)
