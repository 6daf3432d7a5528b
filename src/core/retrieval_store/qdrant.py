"""
Qdrant chunk index.

Each chunk point carries two named vectors holding the same embedding:
``l2`` (Euclidean, score is raw distance) and ``cosine`` (score is
similarity). The point ID is the chunk's integer registry ID.
"""

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import Distance, PayloadSchemaType, PointStruct, VectorParams

from src.core.retrieval_store.base import RetrievalStore
from src.models.document import ChunkRow
from src.utils.exceptions import ValidationError, VectorStoreError
from src.utils.logger import get_logger

logger = get_logger(__name__)

L2_VECTOR = "l2"
COSINE_VECTOR = "cosine"


class QdrantRetrievalStore(RetrievalStore):
    """Qdrant-backed store for the ``chunks`` collection."""

    def __init__(
        self,
        url: str = "http://localhost:6333",
        collection_name: str = "chunks",
        vector_size: int = 1536,
        use_grpc: bool = False,
        timeout: int = 30,
        batch_size: int = 100,
    ):
        """
        Initialize Qdrant chunk index.

        Args:
            url: Qdrant URL
            collection_name: Collection name
            vector_size: Embedding dimension
            use_grpc: Prefer gRPC transport
            timeout: Request timeout in seconds
            batch_size: Points per upsert request
        """
        self.url = url
        self.collection_name = collection_name
        self.vector_size = vector_size
        self.use_grpc = use_grpc
        self.timeout = timeout
        self.batch_size = batch_size
        self.client: AsyncQdrantClient | None = None

    async def connect(self) -> None:
        if self.client is None:
            try:
                self.client = AsyncQdrantClient(
                    url=self.url, prefer_grpc=self.use_grpc, timeout=self.timeout
                )
            except Exception as e:
                logger.error(
                    "Failed to connect to Qdrant",
                    extra={"url": self.url, "error": str(e)},
                )
                raise VectorStoreError(f"Failed to connect to Qdrant: {e}") from e

    async def initialize(self) -> None:
        try:
            await self.connect()

            if await self.client.collection_exists(self.collection_name):
                return

            await self.client.create_collection(
                collection_name=self.collection_name,
                vectors_config={
                    L2_VECTOR: VectorParams(size=self.vector_size, distance=Distance.EUCLID),
                    COSINE_VECTOR: VectorParams(size=self.vector_size, distance=Distance.COSINE),
                },
            )
            await self.client.create_payload_index(
                collection_name=self.collection_name,
                field_name="document_id",
                field_schema=PayloadSchemaType.INTEGER,
            )
        except Exception as e:
            logger.error(
                "Failed to initialize Qdrant chunk collection",
                extra={"collection": self.collection_name, "error": str(e)},
            )
            raise VectorStoreError(f"Failed to initialize chunk collection: {e}") from e

    async def _query(self, query_embedding: list[float], limit: int, using: str):
        try:
            await self.connect()
            response = await self.client.query_points(
                collection_name=self.collection_name,
                query=query_embedding,
                using=using,
                limit=limit,
                with_payload=True,
            )
        except Exception as e:
            logger.error(
                "Failed to query chunks",
                extra={"collection": self.collection_name, "using": using, "error": str(e)},
            )
            raise VectorStoreError(f"Failed to query chunks: {e}") from e
        return response.points

    @staticmethod
    def _point_to_chunk(point, **score) -> ChunkRow:
        payload = point.payload or {}
        return ChunkRow(
            id=int(point.id),
            document_id=payload["document_id"],
            chunk_index=payload["chunk_index"],
            content=payload.get("content", ""),
            **score,
        )

    async def query_chunks_by_embedding(
        self, query_embedding: list[float], top_k: int
    ) -> list[ChunkRow]:
        points = await self._query(query_embedding, top_k, L2_VECTOR)
        return [self._point_to_chunk(p, distance=p.score) for p in points]

    async def semantic_search(
        self, query_embedding: list[float], limit: int = 5
    ) -> list[ChunkRow]:
        points = await self._query(query_embedding, limit, COSINE_VECTOR)
        return [self._point_to_chunk(p, similarity=p.score) for p in points]

    async def upsert_chunks(
        self, chunks: list[ChunkRow], embeddings: list[list[float]]
    ) -> int:
        if len(chunks) != len(embeddings):
            raise ValidationError(
                "Chunk and embedding counts differ",
                context={"chunks": len(chunks), "embeddings": len(embeddings)},
            )

        points = [
            PointStruct(
                id=chunk.id,
                vector={L2_VECTOR: embedding, COSINE_VECTOR: embedding},
                payload={
                    "document_id": chunk.document_id,
                    "chunk_index": chunk.chunk_index,
                    "content": chunk.content,
                },
            )
            for chunk, embedding in zip(chunks, embeddings)
        ]

        try:
            await self.connect()
            for i in range(0, len(points), self.batch_size):
                await self.client.upsert(
                    collection_name=self.collection_name,
                    points=points[i : i + self.batch_size],
                    wait=True,
                )
        except Exception as e:
            logger.error(
                "Failed to upsert chunks",
                extra={"collection": self.collection_name, "count": len(points), "error": str(e)},
            )
            raise VectorStoreError(f"Failed to upsert chunks: {e}") from e

        return len(points)

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
            self.client = None
