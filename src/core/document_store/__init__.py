"""
Document registry for MemoRAG.
"""

from src.core.document_store.sqlite_store import SQLiteDocumentStore

__all__ = ["SQLiteDocumentStore"]
