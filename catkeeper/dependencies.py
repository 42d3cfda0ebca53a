"""
Dependency wiring for the services.
"""

from __future__ import annotations

from catkeeper.config import get_settings
from catkeeper.db import DocumentStore, InMemoryDocumentStore, SqlDocumentStore
from catkeeper.services import CatService, UserService

_document_store: DocumentStore | None = None
_cat_service: CatService | None = None
_user_service: UserService | None = None


def get_document_store() -> DocumentStore:
    """
    Return a singleton store so state persists across calls in one process.
    """
    global _document_store
    if _document_store:
        return _document_store

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _document_store = InMemoryDocumentStore()
    else:
        _document_store = SqlDocumentStore(settings.database_url)
    return _document_store


def get_cat_service() -> CatService:
    global _cat_service
    if _cat_service:
        return _cat_service
    _cat_service = CatService(get_document_store())
    return _cat_service


def get_user_service() -> UserService:
    global _user_service
    if _user_service:
        return _user_service
    _user_service = UserService(get_document_store(), get_cat_service())
    return _user_service


def reset_dependencies() -> None:
    """Drop the cached singletons (useful in tests)."""
    global _document_store, _cat_service, _user_service
    _document_store = None
    _cat_service = None
    _user_service = None
