"""Services package for Storybook"""

from .firebase import FirebaseService
from .placeholders import (
    has_placeholders,
    extract_identifiers,
    extract_identifiers_from_texts,
    substitute,
    render_entity,
    build_character_description,
    replace_names_with_placeholders,
    find_actor_names_in_text,
)
from .entity_resolver import EntityResolver, EntityStore
from .placeholder_service import (
    PlaceholderService,
    ResolvedTextTracker,
    extract_entity_metadata,
    entity_metadata_for_ids,
    characters_in_text,
    build_actor_descriptions_for_audio,
)
from .config_cache import TTLCache, GlobalPromptConfigService

__all__ = [
    "FirebaseService",
    # Placeholder text processing
    "has_placeholders",
    "extract_identifiers",
    "extract_identifiers_from_texts",
    "substitute",
    "render_entity",
    "build_character_description",
    "replace_names_with_placeholders",
    "find_actor_names_in_text",
    # Resolution
    "EntityResolver",
    "EntityStore",
    "PlaceholderService",
    "ResolvedTextTracker",
    "extract_entity_metadata",
    "entity_metadata_for_ids",
    "characters_in_text",
    "build_actor_descriptions_for_audio",
    # System config
    "TTLCache",
    "GlobalPromptConfigService",
]
