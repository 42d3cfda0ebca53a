"""
Service classes for cats and users.

Each service runs its precondition checks (legal name, uniqueness,
existence) before touching the store. ``UserService`` resolves the cat
names of a payload into stored cat ids through ``CatService`` and expands
them back into full cat records on read.
"""

from __future__ import annotations

import logging
import unicodedata
from typing import List, Optional, Sequence

from catkeeper.db import ID_FIELD, DocumentStore
from catkeeper.errors import DuplicateNameError, InvalidInputError, NotFoundError
from catkeeper.schemas import (
    NAME_MAX_LENGTH,
    CatDTO,
    CreateCatDTO,
    CreateUserDTO,
    UserDTO,
)

logger = logging.getLogger(__name__)

CATS_COLLECTION = "cats"
USERS_COLLECTION = "users"


class BaseService:
    """Name validation helpers shared by the entity services."""

    collection: str = ""
    entity_label: str = "Entity"
    max_name_length: int = NAME_MAX_LENGTH

    def __init__(self, store: DocumentStore):
        self.store = store

    def validate_name_is_legal(self, name) -> None:
        if not isinstance(name, str):
            raise InvalidInputError(f"{self.entity_label} name must be a string")
        if not name.strip():
            raise InvalidInputError(f"{self.entity_label} name must not be empty")
        if name != name.strip():
            raise InvalidInputError(
                f"{self.entity_label} name {name!r} has leading or trailing whitespace"
            )
        if len(name) > self.max_name_length:
            raise InvalidInputError(
                f"{self.entity_label} name must be at most "
                f"{self.max_name_length} characters"
            )
        if any(unicodedata.category(ch) == "Cc" for ch in name):
            raise InvalidInputError(
                f"{self.entity_label} name {name!r} contains control characters"
            )

    def validate_no_duplicates(self, name: str) -> None:
        if self.store.find_one(self.collection, {"name": name}) is not None:
            raise DuplicateNameError(f"{self.entity_label} {name} already exists")

    def validate_exists(self, name: str) -> None:
        if self.store.find_one(self.collection, {"name": name}) is None:
            logger.warning("%s %s not found", self.entity_label, name)
            raise NotFoundError(f"{self.entity_label} {name} not found")

    def _validate_replacement(self, name: str, new_name: str) -> None:
        self.validate_name_is_legal(new_name)
        self.validate_exists(name)
        if new_name != name:
            self.validate_no_duplicates(new_name)

    def _find_documents_by_names(self, names: Sequence[str]) -> List[dict]:
        """Return one document per distinct name, in request order."""
        if isinstance(names, str):
            raise TypeError("names must be a sequence of names, not a single string")
        names = list(dict.fromkeys(names))
        if not names:
            return []
        found = {
            doc["name"]: doc
            for doc in self.store.find(self.collection, {"name": {"$in": names}})
        }
        for name in names:
            if name not in found:
                logger.warning("%s %s not found", self.entity_label, name)
                raise NotFoundError(f"{self.entity_label} {name} not found")
        return [found[name] for name in names]


class CatService(BaseService):
    collection = CATS_COLLECTION
    entity_label = "Cat"

    @staticmethod
    def _to_dto(document: dict) -> CatDTO:
        return CatDTO(
            id=document[ID_FIELD],
            name=document["name"],
            tail_length=document["tail_length"],
        )

    @staticmethod
    def _to_document(dto: CreateCatDTO) -> dict:
        return {"name": dto.name, "tail_length": dto.tail_length}

    def find_all(self) -> List[CatDTO]:
        return [self._to_dto(doc) for doc in self.store.find(self.collection)]

    def find_by_name(self, name: str) -> CatDTO:
        document = self.store.find_one(self.collection, {"name": name})
        if document is None:
            logger.warning("Cat %s not found", name)
            raise NotFoundError(f"Cat {name} not found")
        return self._to_dto(document)

    def find_by_names(self, names: Sequence[str]) -> List[CatDTO]:
        """Return the named cats, failing if any one of them is missing."""
        return [self._to_dto(doc) for doc in self._find_documents_by_names(names)]

    def create(self, dto: CreateCatDTO) -> CatDTO:
        self.validate_name_is_legal(dto.name)
        self.validate_no_duplicates(dto.name)
        document = self.store.create(self.collection, self._to_document(dto))
        logger.info("Created cat %s", dto.name)
        return self._to_dto(document)

    def update_by_name(self, name: str, dto: CreateCatDTO) -> CatDTO:
        self._validate_replacement(name, dto.name)
        document = self.store.find_one_and_update(
            self.collection, {"name": name}, self._to_document(dto)
        )
        if document is None:
            raise NotFoundError(f"Cat {name} not found")
        logger.info("Updated cat %s", name)
        return self._to_dto(document)

    def remove_by_name(self, name: str) -> None:
        self.validate_name_is_legal(name)
        self.validate_exists(name)
        if self.store.find_one_and_delete(self.collection, {"name": name}) is None:
            raise NotFoundError(f"Cat {name} not found")
        logger.info("Removed cat %s", name)


class UserService(BaseService):
    collection = USERS_COLLECTION
    entity_label = "User"

    def __init__(self, store: DocumentStore, cat_service: Optional[CatService] = None):
        super().__init__(store)
        self.cat_service = cat_service or CatService(store)

    def _populate(self, documents: List[dict]) -> List[UserDTO]:
        populated = self.store.populate(documents, "cats", self.cat_service.collection)
        return [
            UserDTO(
                id=doc[ID_FIELD],
                name=doc["name"],
                cats=[CatService._to_dto(cat) for cat in doc["cats"]],
            )
            for doc in populated
        ]

    def _populate_one(self, document: dict) -> UserDTO:
        return self._populate([document])[0]

    def _build_document(self, dto: CreateUserDTO) -> dict:
        cats = self.cat_service.find_by_names(dto.cat_names)
        return {"name": dto.name, "cats": [cat.id for cat in cats]}

    def find_all(self) -> List[UserDTO]:
        return self._populate(self.store.find(self.collection))

    def find_by_name(self, name: str) -> UserDTO:
        document = self.store.find_one(self.collection, {"name": name})
        if document is None:
            logger.warning("User %s not found", name)
            raise NotFoundError(f"User {name} not found")
        return self._populate_one(document)

    def find_by_names(self, names: Sequence[str]) -> List[UserDTO]:
        return self._populate(self._find_documents_by_names(names))

    def create(self, dto: CreateUserDTO) -> UserDTO:
        self.validate_name_is_legal(dto.name)
        self.validate_no_duplicates(dto.name)
        document = self.store.create(self.collection, self._build_document(dto))
        logger.info("Created user %s with %d cat(s)", dto.name, len(document["cats"]))
        return self._populate_one(document)

    def update_by_name(self, name: str, dto: CreateUserDTO) -> UserDTO:
        self._validate_replacement(name, dto.name)
        document = self.store.find_one_and_update(
            self.collection, {"name": name}, self._build_document(dto)
        )
        if document is None:
            raise NotFoundError(f"User {name} not found")
        logger.info("Updated user %s", name)
        return self._populate_one(document)

    def remove_by_name(self, name: str) -> UserDTO:
        self.validate_name_is_legal(name)
        self.validate_exists(name)
        document = self.store.find_one_and_delete(self.collection, {"name": name})
        if document is None:
            raise NotFoundError(f"User {name} not found")
        logger.info("Removed user %s", name)
        return self._populate_one(document)
