"""
Firebase service for Storybook

Handles Cloud Firestore reads and writes for children, characters, stories
and system configuration documents.
"""

import os
import time
import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Dict, Any, List, Tuple

import firebase_admin
from firebase_admin import credentials, firestore
from google.cloud.firestore_v1 import FieldFilter
from google.cloud.firestore_v1.field_path import FieldPath

from src.config.limits import FIRESTORE_IN_QUERY_LIMIT


# (document id, document data)
DocumentSnapshotData = Tuple[str, Dict[str, Any]]


class FirebaseService:
    """Service for Cloud Firestore operations"""

    def __init__(
        self,
        project_id: Optional[str] = None,
        credentials_dict: Optional[Dict[str, Any]] = None,
        credentials_path: Optional[str] = None,
        in_query_limit: int = FIRESTORE_IN_QUERY_LIMIT,
        max_workers: int = 10,
        logger=None
    ):
        """
        Initialize Firebase service.

        Args:
            project_id: Google Cloud project ID (optional with ADC)
            credentials_dict: Optional dict with Firebase credentials (project_id, client_email, private_key)
            credentials_path: Optional path to Firebase service account JSON
            in_query_limit: Maximum values Firestore accepts in one "in" filter
            max_workers: Thread pool size for the synchronous client
            logger: Optional StorybookLogger for storage debug logging
        """
        self.project_id = project_id
        self.credentials_dict = credentials_dict
        self.credentials_path = credentials_path
        self.in_query_limit = in_query_limit
        self.logger = logger
        self._initialized = False
        self.db = None
        # Thread pool for async Firestore operations (firebase_admin is synchronous)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="firestore")

    async def _run_sync(self, func, *args, **kwargs):
        """Run a synchronous Firestore operation in the thread pool to avoid blocking."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, lambda: func(*args, **kwargs))

    def shutdown(self):
        """Shutdown the thread pool executor. Call during app shutdown."""
        if self._executor:
            self._executor.shutdown(wait=True)
            self._executor = None

    def initialize(self):
        """Initialize Firebase app and Firestore client (call once at startup)"""
        if self._initialized:
            return

        try:
            firebase_admin.get_app()
            print("   Firebase app already initialized")
        except ValueError:
            if self.credentials_dict:
                print("   Initializing Firebase with credentials from environment variables")
                cred = credentials.Certificate(self.credentials_dict)
            elif self.credentials_path and os.path.exists(self.credentials_path):
                print("   Initializing Firebase with credentials file: [REDACTED]")
                cred = credentials.Certificate(self.credentials_path)
            else:
                print("   Initializing Firebase with Application Default Credentials")
                cred = credentials.ApplicationDefault()

            options = {"projectId": self.project_id} if self.project_id else None
            firebase_admin.initialize_app(cred, options)

        self.db = firestore.client()
        self._initialized = True

    def _log_read(self, path: str, count: int, start_time: float):
        if self.logger:
            self.logger.storage_read(
                path=path,
                result_summary=f"{count} document(s)",
                size_bytes=0,
                duration=time.time() - start_time
            )

    def _check_in_values(self, values: List[str]):
        if len(values) > self.in_query_limit:
            raise ValueError(
                f"'in' filter accepts at most {self.in_query_limit} values, got {len(values)}"
            )

    # Document reads

    async def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve a single document.

        Returns:
            Document data or None if it does not exist
        """
        start_time = time.time()

        def _sync_get():
            snapshot = self.db.collection(collection).document(doc_id).get()
            return snapshot.to_dict() if snapshot.exists else None

        data = await self._run_sync(_sync_get)
        self._log_read(f"{collection}/{doc_id}", 1 if data else 0, start_time)
        return data

    async def get_document_at(self, path: str) -> Optional[Dict[str, Any]]:
        """Retrieve a document by full path, e.g. 'systemConfig/prompts'."""
        start_time = time.time()

        def _sync_get():
            snapshot = self.db.document(path).get()
            return snapshot.to_dict() if snapshot.exists else None

        data = await self._run_sync(_sync_get)
        self._log_read(path, 1 if data else 0, start_time)
        return data

    async def get_documents_by_ids(self, collection: str, doc_ids: List[str]) -> List[DocumentSnapshotData]:
        """
        One "in" query on document ID.

        Args:
            collection: Collection name
            doc_ids: At most `in_query_limit` document IDs

        Returns:
            (doc_id, data) for each existing document
        """
        if not doc_ids:
            return []
        self._check_in_values(doc_ids)
        start_time = time.time()

        def _sync_query():
            col = self.db.collection(collection)
            refs = [col.document(doc_id) for doc_id in doc_ids]
            query = col.where(filter=FieldFilter(FieldPath.document_id(), "in", refs))
            return [(snap.id, snap.to_dict()) for snap in query.stream()]

        results = await self._run_sync(_sync_query)
        self._log_read(f"{collection} [__name__ in {len(doc_ids)}]", len(results), start_time)
        return results

    async def get_documents_by_field(self, collection: str, field: str, values: List[Any]) -> List[DocumentSnapshotData]:
        """
        One "in" query on a field value.

        Args:
            collection: Collection name
            field: Field path, e.g. 'displayName'
            values: At most `in_query_limit` values

        Returns:
            (doc_id, data) for each matching document
        """
        if not values:
            return []
        self._check_in_values(values)
        start_time = time.time()

        def _sync_query():
            query = self.db.collection(collection).where(filter=FieldFilter(field, "in", list(values)))
            return [(snap.id, snap.to_dict()) for snap in query.stream()]

        results = await self._run_sync(_sync_query)
        self._log_read(f"{collection} [{field} in {len(values)}]", len(results), start_time)
        return results

    async def query_documents(self, collection: str, field: str, value: Any) -> List[DocumentSnapshotData]:
        """Equality query, e.g. stories where childId == X."""
        start_time = time.time()

        def _sync_query():
            query = self.db.collection(collection).where(filter=FieldFilter(field, "==", value))
            return [(snap.id, snap.to_dict()) for snap in query.stream()]

        results = await self._run_sync(_sync_query)
        self._log_read(f"{collection} [{field} == ...]", len(results), start_time)
        return results

    # Document writes

    async def set_document_at(self, path: str, data: Dict[str, Any], merge: bool = True) -> None:
        """Write a document by full path."""
        start_time = time.time()

        def _sync_set():
            self.db.document(path).set(data, merge=merge)

        await self._run_sync(_sync_set)

        if self.logger:
            self.logger.storage_operation(
                operation="set",
                path=path,
                data_summary=", ".join(sorted(data.keys())),
                size_bytes=len(str(data)),
                duration=time.time() - start_time
            )
