"""
Entity Resolver for Story Placeholders

Maps placeholder tokens to Character / ChildProfile documents.

Lookup order (first hit wins, a token is never looked up again once found):
1. characters by document ID
2. children by document ID
3. characters by displayName  (legacy data that embedded names, not IDs)
4. children by displayName

Name-fallback hits are keyed by the token itself (the display name string)
so substitution finds them under the same string that is in the text.

Store errors are logged and skipped per query chunk; resolution is best
effort and never raises because of the store.
"""

import logging
import time
from typing import Any, Dict, Iterable, List, Protocol, Tuple

from pydantic import ValidationError

from src.config.limits import FIRESTORE_IN_QUERY_LIMIT
from src.models.profiles import EntityKind, ResolvedEntity, ResolvedEntityMap, entity_from_document

logger = logging.getLogger(__name__)

DISPLAY_NAME_FIELD = "displayName"


class EntityStore(Protocol):
    """Read side of the document store used for resolution (FirebaseService in production)"""

    async def get_documents_by_ids(self, collection: str, doc_ids: List[str]) -> List[Tuple[str, Dict[str, Any]]]:
        ...

    async def get_documents_by_field(self, collection: str, field: str, values: List[Any]) -> List[Tuple[str, Dict[str, Any]]]:
        ...


def chunked(items: List[str], size: int) -> Iterable[List[str]]:
    """Split items into consecutive chunks of at most `size`."""
    if size < 1:
        raise ValueError("chunk size must be positive")
    for i in range(0, len(items), size):
        yield items[i:i + size]


class EntityResolver:
    """
    Resolves placeholder tokens against the characters and children collections.

    Stateless apart from its configuration; safe to share across requests.
    """

    def __init__(
        self,
        store: EntityStore,
        characters_collection: str = "characters",
        children_collection: str = "children",
        chunk_size: int = FIRESTORE_IN_QUERY_LIMIT
    ):
        self.store = store
        self.characters_collection = characters_collection
        self.children_collection = children_collection
        self.chunk_size = chunk_size

    async def resolve_entities(self, identifiers: Iterable[str]) -> ResolvedEntityMap:
        """
        Resolve tokens to entities.

        Args:
            identifiers: Placeholder tokens (duplicates allowed)

        Returns:
            Token -> ResolvedEntity. Tokens matching nothing are absent.
        """
        unique_ids = list(dict.fromkeys(i for i in identifiers if i))
        entity_map: ResolvedEntityMap = {}
        if not unique_ids:
            return entity_map

        start_time = time.time()

        # 1-2. By document ID
        await self._resolve_by_id(self.characters_collection, EntityKind.CHARACTER,
                                  unique_ids, entity_map)
        await self._resolve_by_id(self.children_collection, EntityKind.CHILD,
                                  self._unresolved(unique_ids, entity_map), entity_map)

        # 3-4. By display name
        await self._resolve_by_name(self.characters_collection, EntityKind.CHARACTER,
                                    self._unresolved(unique_ids, entity_map), entity_map)
        await self._resolve_by_name(self.children_collection, EntityKind.CHILD,
                                    self._unresolved(unique_ids, entity_map), entity_map)

        logger.debug(
            f"EntityResolver: resolved {len(entity_map)}/{len(unique_ids)} tokens "
            f"in {(time.time() - start_time) * 1000:.0f}ms"
        )
        return entity_map

    @staticmethod
    def _unresolved(ids: List[str], entity_map: ResolvedEntityMap) -> List[str]:
        return [i for i in ids if i not in entity_map]

    async def _resolve_by_id(
        self,
        collection: str,
        kind: str,
        ids: List[str],
        entity_map: ResolvedEntityMap
    ) -> None:
        # Chunks against one collection run one after another
        for chunk in chunked(ids, self.chunk_size):
            try:
                documents = await self.store.get_documents_by_ids(collection, chunk)
            except Exception as e:
                logger.warning(f"EntityResolver: {collection} lookup by ID failed for {len(chunk)} id(s): {e}")
                continue

            for doc_id, data in documents:
                self._add(entity_map, doc_id, kind, doc_id, data, collection)

    async def _resolve_by_name(
        self,
        collection: str,
        kind: str,
        names: List[str],
        entity_map: ResolvedEntityMap
    ) -> None:
        for chunk in chunked(names, self.chunk_size):
            try:
                documents = await self.store.get_documents_by_field(collection, DISPLAY_NAME_FIELD, chunk)
            except Exception as e:
                logger.warning(f"EntityResolver: {collection} lookup by displayName failed for {len(chunk)} name(s): {e}")
                continue

            wanted = set(chunk)
            for doc_id, data in documents:
                token = (data or {}).get(DISPLAY_NAME_FIELD)
                if token not in wanted:
                    continue
                if token in entity_map:
                    # Two documents share this display name; the first one stays
                    logger.debug(f"EntityResolver: duplicate displayName '{token}' in {collection}, keeping first match")
                    continue
                self._add(entity_map, token, kind, doc_id, data, collection)

    @staticmethod
    def _add(
        entity_map: ResolvedEntityMap,
        token: str,
        kind: str,
        doc_id: str,
        data: Dict[str, Any],
        collection: str
    ) -> None:
        if token in entity_map:
            return
        try:
            document = entity_from_document(kind, doc_id, data)
        except ValidationError as e:
            logger.warning(f"EntityResolver: skipping malformed {collection}/{doc_id}: {e}")
            return
        entity_map[token] = ResolvedEntity(display_name=document.display_name, document=document)
