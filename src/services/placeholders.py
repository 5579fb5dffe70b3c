"""
Placeholder Text Processing

Story text is stored with entity placeholders instead of literal names,
because a child's or character's display name can change after the story
is written. This module holds the pure text side of that mechanism:

- Identifier extraction from placeholder tokens
- Substitution of resolved entities back into text
- Rewriting known display names into placeholders (authoring side)

Placeholder forms:
- `$$<id>$$`  current form; the id contains no `$`
- `$<id>$`    legacy form, id of 15+ chars from [A-Za-z0-9_-]; the length
              floor keeps dollar amounts from matching

Architecture:
- Pure functions, no store access (see EntityResolver for lookups)
- Called by PlaceholderService for batch resolution
"""

import re
from typing import Iterable, List, Optional, Tuple

from src.config.limits import LEGACY_PLACEHOLDER_MIN_LENGTH
from src.models.models import SubstitutionMode
from src.models.profiles import ActorNameMapping, Character, ResolvedEntity, ResolvedEntityMap


DOUBLE_PLACEHOLDER_RE = re.compile(r"\$\$([^$]+)\$\$")
LEGACY_PLACEHOLDER_RE = re.compile(r"\$([A-Za-z0-9_-]{%d,})\$" % LEGACY_PLACEHOLDER_MIN_LENGTH)


def _find_placeholders(text: str) -> Tuple[List[re.Match], List[re.Match]]:
    """
    Double-delimited matches, then legacy matches from the gaps between them.

    A legacy run is never allowed to claim a `$` that belongs to a `$$id$$`
    token, so "$abcdefghijklmnopqrst$$char-9$$" yields only "char-9".
    """
    doubles = list(DOUBLE_PLACEHOLDER_RE.finditer(text))
    legacy: List[re.Match] = []
    pos = 0
    for match in doubles:
        legacy.extend(LEGACY_PLACEHOLDER_RE.finditer(text, pos, match.start()))
        pos = match.end()
    legacy.extend(LEGACY_PLACEHOLDER_RE.finditer(text, pos))
    return doubles, legacy


# =========================================================================
# EXTRACTION
# =========================================================================

def has_placeholders(text: Optional[str]) -> bool:
    """Cheap existence test run before any lookup is scheduled."""
    if not text or "$" not in text:
        return False
    # A legacy hit overlapping a double token implies the double token exists
    return DOUBLE_PLACEHOLDER_RE.search(text) is not None or LEGACY_PLACEHOLDER_RE.search(text) is not None


def extract_identifiers(text: Optional[str]) -> List[str]:
    """
    Extract referenced entity identifiers from text.

    Double-delimited identifiers come first, then legacy ones, each in
    order of appearance. Duplicates are dropped.

    Args:
        text: Free text that may contain placeholders

    Returns:
        Ordered, de-duplicated identifiers ([] for empty or None text)
    """
    if not has_placeholders(text):
        return []

    doubles, legacy = _find_placeholders(text)
    return list(dict.fromkeys(m.group(1) for m in doubles + legacy))


def extract_identifiers_from_texts(texts: Iterable[Optional[str]]) -> List[str]:
    """Union of identifiers across many texts, first occurrence order."""
    ids: List[str] = []
    for text in texts:
        ids.extend(extract_identifiers(text))
    return list(dict.fromkeys(ids))


# =========================================================================
# SUBSTITUTION
# =========================================================================

def build_character_description(character: Character) -> str:
    """
    Bracketed description used in synopsis-style output.

    Example: "[Nutsy, a Pet, who likes acorns, trees]"
    """
    likes = [like for like in (character.likes or []) if like]
    likes_clause = f", who likes {', '.join(likes)}" if likes else ""
    return f"[{character.display_name}, a {character.type}{likes_clause}]"


def render_entity(entity: ResolvedEntity, mode: SubstitutionMode = SubstitutionMode.NAME) -> str:
    """Text that replaces a placeholder for the given mode."""
    document = entity.document

    if mode == SubstitutionMode.DESCRIPTION and isinstance(document, Character):
        return build_character_description(document)

    if mode == SubstitutionMode.TTS and document.name_pronunciation:
        return document.name_pronunciation

    return entity.display_name


def substitute(
    text: Optional[str],
    entity_map: ResolvedEntityMap,
    mode: SubstitutionMode = SubstitutionMode.NAME
) -> Optional[str]:
    """
    Replace every resolvable placeholder in text.

    Unresolved placeholders are left exactly as written, delimiters included.
    Output never contains placeholder syntax that substitution produced, so
    running this twice gives the same result as running it once.

    Args:
        text: Text with placeholders (None/empty is returned unchanged)
        entity_map: Token -> ResolvedEntity from EntityResolver
        mode: Rendering mode

    Returns:
        Text with placeholders substituted
    """
    if not text or "$" not in text:
        return text

    mode = SubstitutionMode(mode)
    doubles, legacy = _find_placeholders(text)

    parts = []
    pos = 0
    for match in sorted(doubles + legacy, key=lambda m: m.start()):
        parts.append(text[pos:match.start()])
        entity = entity_map.get(match.group(1))
        # Unresolved or blank renders keep the placeholder as written
        rendered = render_entity(entity, mode) if entity is not None else ""
        parts.append(rendered or match.group(0))
        pos = match.end()
    parts.append(text[pos:])
    return "".join(parts)


# =========================================================================
# NAME -> PLACEHOLDER REWRITING
# =========================================================================

def _name_pattern(display_name: str) -> re.Pattern:
    # Whole word, case-insensitive ("Nymira" must not match "Nymiras")
    return re.compile(rf"\b{re.escape(display_name)}\b", re.IGNORECASE)


def replace_names_with_placeholders(text: str, actors: List[ActorNameMapping]) -> str:
    """
    Replace actor display names in text with their $$id$$ placeholders.

    Lets users write natural instructions like "The child on this page is
    Nymira", stored as "The child on this page is $$abc123$$".

    Longer names are replaced first so "Captain Whiskers" wins over "Captain".

    Args:
        text: Text to rewrite
        actors: Actors with id and display_name

    Returns:
        Text with names replaced by placeholders
    """
    if not text or not actors:
        return text

    result = text
    for actor in sorted(actors, key=lambda a: len(a.display_name or ""), reverse=True):
        if not actor.display_name or not actor.id:
            continue
        placeholder = f"$${actor.id}$$"
        result = _name_pattern(actor.display_name).sub(lambda _m: placeholder, result)

    return result


def find_actor_names_in_text(text: str, actors: List[ActorNameMapping]) -> List[str]:
    """Display names of actors mentioned in text, in actor order."""
    if not text or not actors:
        return []

    return [
        actor.display_name
        for actor in actors
        if actor.display_name and _name_pattern(actor.display_name).search(text)
    ]
