"""Generic repository over a single MongoDB collection."""

from __future__ import annotations

from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database

from app.entities.base import BaseEntity
from app.utils.datetime import utc_now

T = TypeVar("T", bound=BaseEntity)

SortSpec = Optional[Sequence[Tuple[str, int]]]


class BaseRepository(Generic[T]):
    """CRUD helpers that return validated entities instead of raw documents."""

    def __init__(self, db: Database, collection_name: str, model_class: Type[T]):
        self.db = db
        self.collection = db[collection_name]
        self.model_class = model_class

    @staticmethod
    def _to_object_id(value: str | ObjectId | None) -> Optional[ObjectId]:
        """Convert to ObjectId; returns None for anything that is not a valid id."""
        if isinstance(value, ObjectId):
            return value
        if isinstance(value, str) and ObjectId.is_valid(value):
            return ObjectId(value)
        return None

    def _to_entity(self, doc: Optional[Dict[str, Any]]) -> Optional[T]:
        return self.model_class.model_validate(doc) if doc else None

    def find_one(self, query: Dict[str, Any]) -> Optional[T]:
        return self._to_entity(self.collection.find_one(query))

    def find_many(
        self,
        query: Dict[str, Any],
        sort: SortSpec = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[T]:
        cursor = self.collection.find(query)
        if sort:
            cursor = cursor.sort(list(sort))
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return [self.model_class.model_validate(doc) for doc in cursor]

    def count(self, query: Dict[str, Any]) -> int:
        return self.collection.count_documents(query)

    def paginate(
        self,
        query: Dict[str, Any],
        sort: SortSpec = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[T], int]:
        """Return one page of results plus the total match count."""
        total = self.count(query)
        items = self.find_many(query, sort=sort, skip=skip, limit=limit)
        return items, total

    def insert_one(self, entity: T) -> T:
        doc = entity.to_mongo()
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return self.model_class.model_validate(doc)

    def find_one_and_update(
        self, query: Dict[str, Any], updates: Dict[str, Any]
    ) -> Optional[T]:
        """Apply ``$set`` of updates (plus updated_at) and return the new document."""
        payload = {**updates, "updated_at": utc_now()}
        doc = self.collection.find_one_and_update(
            query,
            {"$set": payload},
            return_document=ReturnDocument.AFTER,
        )
        return self._to_entity(doc)

    def find_one_and_delete(self, query: Dict[str, Any]) -> Optional[T]:
        return self._to_entity(self.collection.find_one_and_delete(query))
