"""
Services for MemoRAG.

High-level business logic:
- IntentClassifier: fact extraction and pipeline selection
- MemoryManager: fact upserts, chat appends, ranked recall
- RAGEngine: thresholded chunk retrieval and semantic search
- ChatOrchestrator: per-request dispatch
- SearchService: semantic document search
- IngestService: document loading and chunking
"""

from src.services.chat_orchestrator import ChatOrchestrator
from src.services.ingest_service import IngestService
from src.services.intent_classifier import IntentClassifier
from src.services.memory_manager import MemoryManager
from src.services.rag_engine import RAGEngine
from src.services.search_service import SearchService

__all__ = [
    "ChatOrchestrator",
    "IngestService",
    "IntentClassifier",
    "MemoryManager",
    "RAGEngine",
    "SearchService",
]
