"""
MemoRAG engine: wires providers, stores and use cases together.

Built once per process from Config; owns store lifecycles.
"""

from src.config import Config
from src.core.document_store.sqlite_store import SQLiteDocumentStore
from src.core.embeddings.base import Embedder
from src.core.factory import EmbedderFactory, LLMFactory, StoreFactory
from src.core.llm.base import LLMProvider
from src.core.memory_store.base import MemoryStore
from src.core.retrieval_store.base import RetrievalStore
from src.models.chat import ChatRequest, ChatResponse, SearchResponse
from src.models.document import IngestResult
from src.services.chat_orchestrator import ChatOrchestrator
from src.services.ingest_service import IngestService
from src.services.intent_classifier import IntentClassifier
from src.services.memory_manager import MemoryManager
from src.services.rag_engine import RAGEngine
from src.services.search_service import SearchService
from src.utils.logger import get_logger

logger = get_logger(__name__)


class MemoRAGEngine:
    """
    Composition root for the chat, search and ingest use cases.
    """

    def __init__(
        self,
        llm: LLMProvider,
        embedder: Embedder,
        memory_store: MemoryStore,
        retrieval_store: RetrievalStore,
        document_store: SQLiteDocumentStore,
        config: Config,
    ):
        """
        Initialize MemoRAG engine.

        Args:
            llm: Completion provider
            embedder: Embedding provider
            memory_store: User memory store
            retrieval_store: Document chunk index
            document_store: Document registry
            config: Configuration object
        """
        self.llm = llm
        self.embedder = embedder
        self.memory_store = memory_store
        self.retrieval_store = retrieval_store
        self.document_store = document_store
        self.config = config

        self.memory = MemoryManager(
            store=memory_store,
            embedder=embedder,
            similar_top_k=config.memory.similar_top_k,
        )
        self.rag = RAGEngine(
            store=retrieval_store,
            top_k=config.rag.top_k,
            distance_threshold=config.rag.distance_threshold,
        )
        self.classifier = IntentClassifier(llm=llm)
        self.orchestrator = ChatOrchestrator(
            classifier=self.classifier,
            memory=self.memory,
            rag=self.rag,
            embedder=embedder,
            llm=llm,
            similar_top_k=config.memory.similar_top_k,
        )
        self.search = SearchService(embedder=embedder, rag=self.rag)
        self.ingest = IngestService(
            embedder=embedder, documents=document_store, chunks=retrieval_store
        )

    @classmethod
    async def from_config(cls, config: Config) -> "MemoRAGEngine":
        """Create providers and stores with the factories."""
        logger.info("Creating LLM provider")
        llm = LLMFactory.create(config.llm)

        logger.info("Creating embedder")
        embedder = EmbedderFactory.create(config.embedder)

        vector_size = await EmbedderFactory.get_dimension(embedder, config.embedder)
        logger.info(f"Embedding dimension: {vector_size}")

        return cls(
            llm=llm,
            embedder=embedder,
            memory_store=StoreFactory.create_memory_store(config.qdrant, vector_size),
            retrieval_store=StoreFactory.create_retrieval_store(config.qdrant, vector_size),
            document_store=StoreFactory.create_document_store(config.sqlite),
            config=config,
        )

    async def initialize(self) -> None:
        """Initialize all stores."""
        logger.info("Initializing MemoRAG engine")

        await self.memory_store.initialize()
        await self.retrieval_store.initialize()
        await self.document_store.initialize()

        logger.info("MemoRAG engine ready")

    async def handle_chat(self, request: ChatRequest) -> ChatResponse:
        return await self.orchestrator.handle_chat(request)

    async def search_documents(self, query: str, limit: int = 5) -> SearchResponse:
        return await self.search.search_documents_by_text(query, limit)

    async def ingest_document(self, filepath: str, title: str = "Uploaded Doc") -> IngestResult:
        return await self.ingest.ingest_document(filepath, title)

    async def close(self) -> None:
        """Close providers and stores."""
        await self.memory_store.close()
        await self.retrieval_store.close()
        await self.document_store.close()
        await self.embedder.close()
        await self.llm.close()
