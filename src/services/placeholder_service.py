"""
Placeholder Service - batch resolution of story text

Coordinates extraction, resolution and substitution across many texts with
a single resolution pass, so store reads scale with the number of distinct
tokens in the batch rather than with the number of texts or occurrences.

Also provides the read-side helpers built on a resolved map:
- Actor metadata for API responses
- Spoken actor descriptions for narration
- ResolvedTextTracker, which keeps the latest resolution of a changing
  set of texts and discards results that finish out of order
"""

import logging
from typing import Iterable, List, Optional, Sequence

from src.models.models import SubstitutionMode
from src.models.profiles import (
    Character,
    ChildProfile,
    EntityMetadata,
    ResolvedEntityMap,
)
from src.services.entity_resolver import EntityResolver
from src.services.placeholders import (
    extract_identifiers,
    extract_identifiers_from_texts,
    has_placeholders,
    substitute,
)

logger = logging.getLogger(__name__)


class PlaceholderService:
    """Batch placeholder resolution over an EntityResolver"""

    def __init__(self, resolver: EntityResolver):
        self.resolver = resolver

    async def resolve_entities_for(
        self,
        texts: Iterable[Optional[str]],
        extra_ids: Iterable[Optional[str]] = ()
    ) -> ResolvedEntityMap:
        """
        One resolution pass over every token in `texts` plus `extra_ids`.

        `extra_ids` covers identifiers stored outside text (e.g. story.actors)
        so they share the same pass.
        """
        ids = extract_identifiers_from_texts(texts)
        ids.extend(i for i in extra_ids if i)
        ids = list(dict.fromkeys(ids))
        if not ids:
            return {}
        return await self.resolver.resolve_entities(ids)

    async def resolve_and_substitute_batch(
        self,
        texts: Sequence[Optional[str]],
        mode: SubstitutionMode = SubstitutionMode.NAME
    ) -> List[Optional[str]]:
        """
        Resolve and substitute placeholders in many texts.

        Args:
            texts: Texts in caller order; None/empty entries pass through
            mode: Rendering mode for every text

        Returns:
            Substituted texts in the same order
        """
        texts = list(texts)
        if not any(has_placeholders(t) for t in texts):
            return texts

        entity_map = await self.resolve_entities_for(texts)
        return [substitute(text, entity_map, mode) for text in texts]

    async def resolve_text(
        self,
        text: Optional[str],
        mode: SubstitutionMode = SubstitutionMode.NAME
    ) -> Optional[str]:
        """Single-text convenience wrapper around resolve_and_substitute_batch."""
        resolved = await self.resolve_and_substitute_batch([text], mode)
        return resolved[0]

    async def replace_placeholders_with_descriptions(self, text: Optional[str]) -> str:
        """Description-mode resolution used for synopsis prompts."""
        return await self.resolve_text(text, SubstitutionMode.DESCRIPTION) or ""


# =========================================================================
# HELPERS OVER A RESOLVED MAP
# =========================================================================

def extract_entity_metadata(text: Optional[str], entity_map: ResolvedEntityMap) -> List[EntityMetadata]:
    """Metadata for each distinct resolved token in text, in text order."""
    return entity_metadata_for_ids(extract_identifiers(text), entity_map)


def entity_metadata_for_ids(ids: Iterable[Optional[str]], entity_map: ResolvedEntityMap) -> List[EntityMetadata]:
    """Metadata for each resolved id; unresolved and empty ids are skipped."""
    metadata = []
    for entity_id in dict.fromkeys(i for i in ids if i):
        entity = entity_map.get(entity_id)
        if entity is None:
            continue
        metadata.append(EntityMetadata(
            id=entity_id,
            display_name=entity.display_name,
            avatar_url=entity.document.avatar_url,
            type=entity.kind,
        ))
    return metadata


def characters_in_text(text: Optional[str], entity_map: ResolvedEntityMap) -> List[Character]:
    """Character documents referenced in text (children excluded)."""
    characters = []
    for entity_id in extract_identifiers(text):
        entity = entity_map.get(entity_id)
        if entity is not None and entity.is_character:
            characters.append(entity.document)
    return characters


# Narration descriptions

PRONOUN_SENTENCES = {
    "he/him": "He uses he/him pronouns.",
    "she/her": "She uses she/her pronouns.",
    "they/them": "They use they/them pronouns.",
}


def _join_spoken(items: List[str]) -> str:
    # "a", "a and b", "a, b and c"
    if len(items) == 1:
        return items[0]
    return ", ".join(items[:-1]) + " and " + items[-1]


def describe_actor_for_audio(entity):
    """
    Spoken description of one actor.

    Format: "Name is a pet. They use they/them pronouns. They like X and Y."

    Returns:
        (description, pronunciation_hint or None)
    """
    name = entity.display_name
    pronoun_text = PRONOUN_SENTENCES.get(entity.pronouns, PRONOUN_SENTENCES["they/them"])

    hint = None
    if entity.name_pronunciation:
        hint = f'The name "{name}" should be pronounced as "{entity.name_pronunciation}".'

    if isinstance(entity, ChildProfile):
        type_text = "the main character of this story"
    elif entity.relationship:
        type_text = f"the main character's {entity.relationship}"
    else:
        type_text = f"a {entity.type.lower()}"

    preferences = ""
    likes = [like for like in entity.likes if like]
    dislikes = [dislike for dislike in entity.dislikes if dislike]
    if likes:
        preferences += f" They like {_join_spoken(likes)}."
    if dislikes:
        preferences += f" They dislike {_join_spoken(dislikes)}."

    description_text = f" {entity.description}" if entity.description else ""

    description = f"{name} is {type_text}. {pronoun_text}{preferences}{description_text}".strip()
    return description, hint


def build_actor_descriptions_for_audio(entity_ids: Iterable[str], entity_map: ResolvedEntityMap) -> str:
    """
    Scene block listing every resolved actor, appended to narration prompts.

    Returns "" when none of the ids resolve.
    """
    descriptions = []
    hints = []
    for entity_id in entity_ids or []:
        entity = entity_map.get(entity_id)
        if entity is None:
            continue
        description, hint = describe_actor_for_audio(entity.document)
        descriptions.append(description)
        if hint:
            hints.append(hint)

    if not descriptions:
        return ""

    result = "\n\n[Characters in this scene: " + " ".join(descriptions) + "]"
    if hints:
        result += "\n\n[Pronunciation: " + " ".join(hints) + "]"
    return result


# =========================================================================
# RESOLVED TEXT TRACKER
# =========================================================================

class ResolvedTextTracker:
    """
    Latest resolution of a changing list of texts.

    Each update() gets a sequence number; a resolution that completes after
    a newer update has started is dropped instead of overwriting newer text.
    If resolution fails the original texts are published.
    """

    def __init__(self, service: PlaceholderService, mode: SubstitutionMode = SubstitutionMode.NAME):
        self.service = service
        self.mode = mode
        self.resolved_texts: List[Optional[str]] = []
        self.is_resolving = False
        self._sequence = 0

    @property
    def resolved_text(self) -> Optional[str]:
        return self.resolved_texts[0] if self.resolved_texts else None

    async def update(self, texts: Sequence[Optional[str]]) -> bool:
        """
        Re-resolve for new input.

        Returns:
            True if this call's result was published, False if it went stale
        """
        self._sequence += 1
        sequence = self._sequence
        texts = list(texts)
        passthrough = [t or None for t in texts]

        if not any(has_placeholders(t) for t in texts):
            self.resolved_texts = passthrough
            self.is_resolving = False
            return True

        self.is_resolving = True
        try:
            resolved = await self.service.resolve_and_substitute_batch(texts, self.mode)
            resolved = [t or None for t in resolved]
        except Exception as e:
            logger.error(f"ResolvedTextTracker: failed to resolve placeholders: {e}", exc_info=True)
            resolved = passthrough

        if sequence != self._sequence:
            logger.debug(f"ResolvedTextTracker: dropping stale result #{sequence} (latest #{self._sequence})")
            return False

        self.resolved_texts = resolved
        self.is_resolving = False
        return True
