"""
Ticket Store

Storage access for the shop database: tickets, the service catalog and the
back-office collections (appointments, employees, expenses, products,
categories).

- MongoTicketStore: async pymongo client against the shop database
- MemoryTicketStore: in-process documents, used for tests and TICKET_STORE=memory

Queries are passed as objects exposing to_mongo() (Mongo filter document)
and matches(doc) (in-process predicate), so both stores share one
definition of every filter.

Datetimes are written timezone-aware and read back aware (tz_aware client),
so the stored instant never depends on the server's zone.
"""

import asyncio
import copy
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import AsyncMongoClient, ReturnDocument
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from repairdesk import config
from repairdesk.services.dates import parse_date_like

logger = logging.getLogger(__name__)

# Newest first
DEFAULT_SORT: Tuple[str, int] = ("createdAt", -1)

# One (field, direction) pair or several, applied in order; None keeps natural order
SortSpec = Optional[Union[Tuple[str, int], Sequence[Tuple[str, int]]]]


class StorageError(Exception):
    """Raised when the shop database cannot be reached or a command fails"""


class MatchAll:
    """Query matching every document"""

    def to_mongo(self) -> Dict[str, Any]:
        return {}

    def matches(self, document: Dict[str, Any]) -> bool:
        return True


def to_object_id(document_id: str) -> Optional[ObjectId]:
    """Parse a document id, None when it is not a valid ObjectId"""
    if isinstance(document_id, ObjectId):
        return document_id
    # ObjectId(None) would mint a fresh id
    if not isinstance(document_id, str):
        return None
    try:
        return ObjectId(document_id)
    except (InvalidId, TypeError):
        return None


def serialize_document(value: Any) -> Any:
    """Make a stored document JSON-ready (ObjectId -> str, datetime -> ISO)"""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: serialize_document(item) for key, item in value.items()}
    if isinstance(value, list):
        return [serialize_document(item) for item in value]
    return value


def sort_pairs(sort: SortSpec) -> List[Tuple[str, int]]:
    if not sort:
        return []
    if isinstance(sort[0], str):
        return [tuple(sort)]
    return [tuple(pair) for pair in sort]


class TicketStore:
    """
    Interface shared by the stores.

    Subclasses implement the per-collection primitives; the ticket and
    catalog operations are expressed on top of them.
    """

    name = "base"

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    # ============== Collection primitives ==============

    async def find_documents(
        self,
        collection: str,
        query=None,
        sort: SortSpec = DEFAULT_SORT,
        skip: int = 0,
        limit: int = 0
    ) -> List[Dict]:
        """Matching documents; limit 0 means no limit"""
        raise NotImplementedError

    async def count_documents(self, collection: str, query=None) -> int:
        raise NotImplementedError

    async def get_document(self, collection: str, document_id: str) -> Optional[Dict]:
        raise NotImplementedError

    async def insert_document(self, collection: str, document: Dict) -> Dict:
        """Insert and return the document with its new _id"""
        raise NotImplementedError

    async def update_document(self, collection: str, document_id: str, fields: Dict) -> Optional[Dict]:
        """Set fields on a document, returns the updated document or None"""
        raise NotImplementedError

    async def delete_document(self, collection: str, document_id: str) -> bool:
        raise NotImplementedError

    # ============== Tickets ==============

    async def find(self, query=None, sort: SortSpec = DEFAULT_SORT) -> List[Dict]:
        return await self.find_documents(config.TICKETS_COLLECTION, query, sort)

    async def find_page(
        self,
        query,
        skip: int,
        limit: int,
        sort: SortSpec = DEFAULT_SORT
    ) -> List[Dict]:
        return await self.find_documents(config.TICKETS_COLLECTION, query, sort, skip=skip, limit=limit)

    async def count(self, query=None) -> int:
        return await self.count_documents(config.TICKETS_COLLECTION, query)

    async def get(self, ticket_id: str) -> Optional[Dict]:
        return await self.get_document(config.TICKETS_COLLECTION, ticket_id)

    async def insert(self, ticket: Dict) -> Dict:
        return await self.insert_document(config.TICKETS_COLLECTION, ticket)

    async def update(self, ticket_id: str, fields: Dict) -> Optional[Dict]:
        return await self.update_document(config.TICKETS_COLLECTION, ticket_id, fields)

    async def delete(self, ticket_id: str) -> bool:
        return await self.delete_document(config.TICKETS_COLLECTION, ticket_id)

    async def list_catalog(self) -> Tuple[List[Dict], List[Dict]]:
        """Returns (services, serviceCategories) in stored order"""
        services = await self.find_documents(config.SERVICES_COLLECTION, sort=None)
        categories = await self.find_documents(config.SERVICE_CATEGORIES_COLLECTION, sort=None)
        return services, categories


# =========================================================================
# MongoDB
# =========================================================================

class MongoTicketStore(TicketStore):
    """Store backed by MongoDB"""

    name = "mongo"

    def __init__(self, uri: Optional[str] = None, database: Optional[str] = None):
        self.uri = uri or config.MONGODB_URI
        self.database_name = database or config.MONGODB_DB
        self.client: Optional[AsyncMongoClient] = None
        self.db = None

    def _new_client(self) -> AsyncMongoClient:
        return AsyncMongoClient(
            self.uri,
            server_api=ServerApi("1", strict=True, deprecation_errors=True),
            tz_aware=True,
            connectTimeoutMS=config.MONGODB_CONNECT_TIMEOUT_MS,
            socketTimeoutMS=config.MONGODB_SOCKET_TIMEOUT_MS,
            retryWrites=True,
            retryReads=True,
            maxPoolSize=config.MONGODB_MAX_POOL_SIZE,
            minPoolSize=config.MONGODB_MIN_POOL_SIZE,
            maxIdleTimeMS=config.MONGODB_MAX_IDLE_TIME_MS,
        )

    async def connect(self) -> None:
        """Connect and ping, retrying with exponential backoff (1s, 2s, 4s...)"""
        if self.client is not None:
            return

        retries = config.MONGODB_CONNECT_RETRIES
        last_error: Optional[Exception] = None
        for attempt in range(retries):
            client = self._new_client()
            try:
                await client.admin.command("ping")
            except PyMongoError as e:
                last_error = e
                logger.warning(f"[Store] MongoDB connection attempt {attempt + 1} failed: {e}")
                await client.close()
                if attempt + 1 < retries:
                    await asyncio.sleep(2 ** attempt)
                continue

            self.client = client
            self.db = client[self.database_name]
            logger.info(f"[Store] Connected to MongoDB database '{self.database_name}'")
            return

        raise StorageError(f"Failed to connect to MongoDB after {retries} attempts: {last_error}")

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
            self.client = None
            self.db = None
            logger.info("[Store] MongoDB connection closed")

    async def _collection(self, name: str):
        await self.connect()
        return self.db[name]

    async def find_documents(
        self,
        collection: str,
        query=None,
        sort: SortSpec = DEFAULT_SORT,
        skip: int = 0,
        limit: int = 0
    ) -> List[Dict]:
        query = query or MatchAll()
        try:
            documents = await self._collection(collection)
            cursor = documents.find(query.to_mongo())
            pairs = sort_pairs(sort)
            if pairs:
                cursor = cursor.sort(pairs)
            if skip:
                cursor = cursor.skip(skip)
            if limit:
                cursor = cursor.limit(limit)
            return await cursor.to_list()
        except PyMongoError as e:
            raise StorageError(f"Query on {collection} failed: {e}") from e

    async def count_documents(self, collection: str, query=None) -> int:
        query = query or MatchAll()
        try:
            documents = await self._collection(collection)
            return await documents.count_documents(query.to_mongo())
        except PyMongoError as e:
            raise StorageError(f"Count on {collection} failed: {e}") from e

    async def get_document(self, collection: str, document_id: str) -> Optional[Dict]:
        object_id = to_object_id(document_id)
        if object_id is None:
            return None
        try:
            documents = await self._collection(collection)
            return await documents.find_one({"_id": object_id})
        except PyMongoError as e:
            raise StorageError(f"Lookup on {collection} failed: {e}") from e

    async def insert_document(self, collection: str, document: Dict) -> Dict:
        document = dict(document)
        document.pop("_id", None)
        try:
            documents = await self._collection(collection)
            result = await documents.insert_one(document)
        except PyMongoError as e:
            raise StorageError(f"Insert into {collection} failed: {e}") from e
        document["_id"] = result.inserted_id
        return document

    async def update_document(self, collection: str, document_id: str, fields: Dict) -> Optional[Dict]:
        object_id = to_object_id(document_id)
        if object_id is None:
            return None
        try:
            documents = await self._collection(collection)
            return await documents.find_one_and_update(
                {"_id": object_id},
                {"$set": fields},
                return_document=ReturnDocument.AFTER
            )
        except PyMongoError as e:
            raise StorageError(f"Update on {collection} failed: {e}") from e

    async def delete_document(self, collection: str, document_id: str) -> bool:
        object_id = to_object_id(document_id)
        if object_id is None:
            return False
        try:
            documents = await self._collection(collection)
            result = await documents.delete_one({"_id": object_id})
        except PyMongoError as e:
            raise StorageError(f"Delete on {collection} failed: {e}") from e
        return result.deleted_count > 0


# =========================================================================
# In-memory
# =========================================================================

def _sort_key(value: Any):
    """Order mixed stored values: missing first, then numbers, strings, dates"""
    if value is None:
        return (0, 0)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    if isinstance(value, (datetime, date)):
        return (3, parse_date_like(value))
    return (4, str(value))


class MemoryTicketStore(TicketStore):
    """Store holding documents in process memory"""

    name = "memory"

    def __init__(
        self,
        tickets: Optional[List[Dict]] = None,
        services: Optional[List[Dict]] = None,
        categories: Optional[List[Dict]] = None,
        documents: Optional[Dict[str, List[Dict]]] = None
    ):
        self._collections: Dict[str, Dict[ObjectId, Dict]] = {}
        for ticket in tickets or []:
            self._put(ticket)
        for service in services or []:
            self._put(service, config.SERVICES_COLLECTION)
        for category in categories or []:
            self._put(category, config.SERVICE_CATEGORIES_COLLECTION)
        for collection, items in (documents or {}).items():
            for item in items:
                self._put(item, collection)

    def _put(self, document: Dict, collection: str = config.TICKETS_COLLECTION) -> Dict:
        """Store a copy as is (timestamps untouched), assigning an _id when missing"""
        document = copy.deepcopy(document)
        object_id = document.get("_id")
        if not isinstance(object_id, ObjectId):
            object_id = to_object_id(object_id) if object_id else None
            object_id = object_id or ObjectId()
        document["_id"] = object_id
        self._collections.setdefault(collection, {})[object_id] = document
        return document

    def _documents(self, collection: str) -> Dict[ObjectId, Dict]:
        return self._collections.setdefault(collection, {})

    async def find_documents(
        self,
        collection: str,
        query=None,
        sort: SortSpec = DEFAULT_SORT,
        skip: int = 0,
        limit: int = 0
    ) -> List[Dict]:
        query = query or MatchAll()
        selected = [d for d in self._documents(collection).values() if query.matches(d)]
        # Stable sorts, least significant key first
        for field_name, direction in reversed(sort_pairs(sort)):
            selected.sort(key=lambda d: _sort_key(d.get(field_name)), reverse=direction < 0)
        selected = selected[skip:skip + limit] if limit else selected[skip:]
        return [copy.deepcopy(d) for d in selected]

    async def count_documents(self, collection: str, query=None) -> int:
        query = query or MatchAll()
        return sum(1 for d in self._documents(collection).values() if query.matches(d))

    async def get_document(self, collection: str, document_id: str) -> Optional[Dict]:
        object_id = to_object_id(document_id)
        document = self._documents(collection).get(object_id) if object_id else None
        return copy.deepcopy(document) if document else None

    async def insert_document(self, collection: str, document: Dict) -> Dict:
        document = dict(document)
        document.pop("_id", None)
        return copy.deepcopy(self._put(document, collection))

    async def update_document(self, collection: str, document_id: str, fields: Dict) -> Optional[Dict]:
        object_id = to_object_id(document_id)
        document = self._documents(collection).get(object_id) if object_id else None
        if document is None:
            return None
        document.update(copy.deepcopy(fields))
        return copy.deepcopy(document)

    async def delete_document(self, collection: str, document_id: str) -> bool:
        object_id = to_object_id(document_id)
        if object_id is None:
            return False
        return self._documents(collection).pop(object_id, None) is not None


# Singleton instance
_ticket_store: Optional[TicketStore] = None


def get_ticket_store() -> TicketStore:
    """Get or create the configured store"""
    global _ticket_store
    if _ticket_store is None:
        if config.TICKET_STORE == "memory":
            _ticket_store = MemoryTicketStore()
        else:
            _ticket_store = MongoTicketStore()
        logger.info(f"[Store] Using {_ticket_store.name} ticket store")
    return _ticket_store
