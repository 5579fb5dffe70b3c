"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.models import Character, ChildProfile, ResolvedEntity


class InMemoryEntityStore:
    """
    Firestore stand-in with the FirebaseService read/write surface.

    Records every batch call and rejects "in" queries over `in_limit`
    values, like Firestore does.
    """

    def __init__(self, collections: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None, in_limit: int = 30):
        self.collections = collections or {}
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.in_limit = in_limit
        self.calls: List[Tuple[str, str, Tuple]] = []
        self.fail_on: Set[Tuple[str, str]] = set()

    def _check(self, kind: str, collection: str, values: List[Any]):
        self.calls.append((kind, collection, tuple(values)))
        if len(values) > self.in_limit:
            raise ValueError(f"'in' filter accepts at most {self.in_limit} values")
        if (kind, collection) in self.fail_on:
            raise RuntimeError(f"simulated {kind} failure on {collection}")

    def calls_for(self, kind: str, collection: str) -> List[Tuple]:
        return [values for k, c, values in self.calls if k == kind and c == collection]

    async def get_documents_by_ids(self, collection: str, doc_ids: List[str]):
        self._check("ids", collection, doc_ids)
        docs = self.collections.get(collection, {})
        return [(doc_id, dict(docs[doc_id])) for doc_id in doc_ids if doc_id in docs]

    async def get_documents_by_field(self, collection: str, field: str, values: List[Any]):
        self._check("field", collection, values)
        docs = self.collections.get(collection, {})
        return [(doc_id, dict(data)) for doc_id, data in docs.items() if data.get(field) in values]

    async def get_document(self, collection: str, doc_id: str):
        data = self.collections.get(collection, {}).get(doc_id)
        return dict(data) if data is not None else None

    async def query_documents(self, collection: str, field: str, value: Any):
        docs = self.collections.get(collection, {})
        return [(doc_id, dict(data)) for doc_id, data in docs.items() if data.get(field) == value]

    async def get_document_at(self, path: str):
        if ("path", path) in self.fail_on:
            raise RuntimeError(f"simulated read failure on {path}")
        data = self.documents.get(path)
        return dict(data) if data is not None else None

    async def set_document_at(self, path: str, data: Dict[str, Any], merge: bool = True):
        existing = self.documents.get(path, {}) if merge else {}
        self.documents[path] = {**existing, **data}


@pytest.fixture
def sample_collections() -> Dict[str, Dict[str, Dict[str, Any]]]:
    """Characters and children as stored in Firestore (camelCase)."""
    return {
        "characters": {
            "char-9": {
                "displayName": "Bo",
                "type": "Friend",
                "likes": [],
                "ownerParentUid": "parent-1",
            },
            "nutsyCharacterId001": {
                "displayName": "Nutsy",
                "type": "Pet",
                "likes": ["acorns", "trees"],
                "avatarUrl": "https://example.com/nutsy.png",
                "namePronunciation": "NUT-see",
                "ownerParentUid": "parent-1",
            },
            "grandmaCharacter01": {
                "displayName": "Granny Pearl",
                "type": "Family",
                "relationship": "grandmother",
                "pronouns": "she/her",
                "likes": ["knitting"],
                "dislikes": ["rain"],
                "ownerParentUid": "parent-1",
            },
        },
        "children": {
            "child-1": {
                "displayName": "Ava",
                "ownerParentUid": "parent-1",
                "avatarUrl": "https://example.com/ava.png",
                "pronouns": "she/her",
            },
            "child-2": {
                "displayName": "Milo",
                "ownerParentUid": "parent-2",
            },
        },
    }


@pytest.fixture
def entity_store(sample_collections) -> InMemoryEntityStore:
    return InMemoryEntityStore(sample_collections)


@pytest.fixture
def entity_map() -> Dict[str, ResolvedEntity]:
    """Resolved map built without a store."""
    ava = ChildProfile.from_document("child-1", {"displayName": "Ava", "ownerParentUid": "parent-1"})
    bo = Character.from_document("char-9", {"displayName": "Bo", "type": "Friend"})
    nutsy = Character.from_document("nutsy", {
        "displayName": "Nutsy",
        "type": "Pet",
        "likes": ["acorns", "trees"],
        "namePronunciation": "NUT-see",
    })
    return {
        "child-1": ResolvedEntity(display_name="Ava", document=ava),
        "char-9": ResolvedEntity(display_name="Bo", document=bo),
        "nutsy": ResolvedEntity(display_name="Nutsy", document=nutsy),
    }


@pytest.fixture
def store_factory():
    """Build an InMemoryEntityStore from custom collections."""
    return InMemoryEntityStore
