"""
Qdrant memory store.

One point per memory in a Euclidean collection, so query scores are raw L2
distances (lower is closer). Fact points use a deterministic ID derived from
(user_id, memory_key); writing a fact is therefore a single upsert that
overwrites content, vector and timestamp.
"""

from datetime import datetime
from typing import Any

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Direction,
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    OrderBy,
    PayloadSchemaType,
    PointStruct,
    VectorParams,
)

from src.core.memory_store.base import MemoryStore
from src.core.memory_store.capability import LazyCapability
from src.models.memory import (
    MemoryCandidate,
    MemoryRecord,
    MemoryRoleFilter,
    MemoryType,
    SavedMemory,
    UserFact,
    UserMemory,
)
from src.utils.exceptions import ValidationError, VectorStoreError
from src.utils.id_generator import generate_chat_memory_id, generate_fact_memory_id
from src.utils.logger import get_logger

logger = get_logger(__name__)

CONVERSATION_FIELD = "conversation_id"


class QdrantMemoryStore(MemoryStore):
    """
    Qdrant-backed store for the ``user_memories`` collection.

    Payload fields: user_id, role, content, memory_key, memory_type,
    updated_at and, when the collection has a conversation_id index,
    conversation_id. Collections created by older deployments without that
    index keep working unscoped.
    """

    def __init__(
        self,
        url: str = "http://localhost:6333",
        collection_name: str = "user_memories",
        vector_size: int = 1536,
        use_grpc: bool = False,
        timeout: int = 30,
        conversation_index: bool = True,
        scroll_page_size: int = 256,
    ):
        """
        Initialize Qdrant memory store.

        Args:
            url: Qdrant URL
            collection_name: Collection name
            vector_size: Embedding dimension
            use_grpc: Prefer gRPC transport
            timeout: Request timeout in seconds
            conversation_index: Create the conversation_id index on new collections
            scroll_page_size: Page size used when scanning a user's facts
        """
        self.url = url
        self.collection_name = collection_name
        self.vector_size = vector_size
        self.use_grpc = use_grpc
        self.timeout = timeout
        self.conversation_index = conversation_index
        self.scroll_page_size = scroll_page_size
        self.client: AsyncQdrantClient | None = None
        self.conversation_scope = LazyCapability(
            f"{collection_name}.{CONVERSATION_FIELD}", self._has_conversation_index
        )

    async def connect(self) -> None:
        """
        Establish connection to Qdrant.

        Raises:
            VectorStoreError: If connection fails
        """
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
        """
        Create the memory collection and its payload indices if missing.

        Raises:
            VectorStoreError: If initialization fails
        """
        try:
            await self.connect()

            if await self.client.collection_exists(self.collection_name):
                return

            await self.client.create_collection(
                collection_name=self.collection_name,
                vectors_config=VectorParams(size=self.vector_size, distance=Distance.EUCLID),
            )

            indices = {
                "user_id": PayloadSchemaType.KEYWORD,
                "role": PayloadSchemaType.KEYWORD,
                "memory_key": PayloadSchemaType.KEYWORD,
                "memory_type": PayloadSchemaType.KEYWORD,
                "updated_at": PayloadSchemaType.DATETIME,
            }
            if self.conversation_index:
                indices[CONVERSATION_FIELD] = PayloadSchemaType.INTEGER

            for field_name, schema in indices.items():
                await self.client.create_payload_index(
                    collection_name=self.collection_name,
                    field_name=field_name,
                    field_schema=schema,
                )
        except Exception as e:
            logger.error(
                "Failed to initialize Qdrant memory collection",
                extra={"collection": self.collection_name, "error": str(e)},
            )
            raise VectorStoreError(f"Failed to initialize memory collection: {e}") from e

    async def _has_conversation_index(self) -> bool:
        await self.connect()
        info = await self.client.get_collection(self.collection_name)
        return CONVERSATION_FIELD in (info.payload_schema or {})

    async def supports_conversation_scope(self) -> bool:
        return await self.conversation_scope.get()

    async def _scope(self, conversation_id: int | None) -> int | None:
        """Return conversation_id if it can be used, else None."""
        if conversation_id is None:
            return None
        if not await self.supports_conversation_scope():
            return None
        return conversation_id

    def _record_to_payload(
        self, record: MemoryRecord, conversation_id: int | None
    ) -> dict[str, Any]:
        payload = {
            "user_id": record.user_id,
            "role": record.role.value,
            "content": record.content,
            "memory_key": record.memory_key,
            "memory_type": record.memory_type.value,
            "updated_at": record.updated_at.isoformat(),
        }
        if conversation_id is not None:
            payload[CONVERSATION_FIELD] = conversation_id
        return payload

    def _filter(
        self,
        user_id: str,
        conversation_id: int | None = None,
        **matches: str,
    ) -> Filter:
        conditions = [FieldCondition(key="user_id", match=MatchValue(value=user_id))]
        for key, value in matches.items():
            conditions.append(FieldCondition(key=key, match=MatchValue(value=value)))
        if conversation_id is not None:
            conditions.append(
                FieldCondition(key=CONVERSATION_FIELD, match=MatchValue(value=conversation_id))
            )
        return Filter(must=conditions)

    async def _write(self, point_id: str, record: MemoryRecord) -> SavedMemory:
        if not record.embedding:
            raise ValidationError("Memory must have an embedding")

        conversation_id = await self._scope(record.conversation_id)

        try:
            await self.connect()
            await self.client.upsert(
                collection_name=self.collection_name,
                points=[
                    PointStruct(
                        id=point_id,
                        vector=record.embedding,
                        payload=self._record_to_payload(record, conversation_id),
                    )
                ],
                wait=True,
            )
        except Exception as e:
            logger.error(
                "Failed to write memory",
                extra={
                    "user_id": record.user_id,
                    "memory_key": record.memory_key,
                    "error": str(e),
                },
            )
            raise VectorStoreError(f"Failed to write memory: {e}") from e

        return SavedMemory(id=point_id, content=record.content, memory_key=record.memory_key)

    async def upsert_fact(self, record: MemoryRecord) -> SavedMemory:
        if not record.memory_key:
            raise ValidationError("Fact memory requires a memory_key")

        record = record.model_copy(update={"memory_type": MemoryType.FACT})
        point_id = generate_fact_memory_id(record.user_id, record.memory_key)
        return await self._write(point_id, record)

    async def append_chat(self, record: MemoryRecord) -> SavedMemory:
        record = record.model_copy(
            update={"memory_type": MemoryType.CHAT, "memory_key": None}
        )
        return await self._write(generate_chat_memory_id(), record)

    async def nearest_memories(
        self,
        user_id: str,
        query_embedding: list[float],
        limit: int,
        role_filter: MemoryRoleFilter = MemoryRoleFilter.USER,
        conversation_id: int | None = None,
    ) -> list[MemoryCandidate]:
        matches = {}
        if role_filter != MemoryRoleFilter.ANY:
            matches["role"] = MemoryRoleFilter(role_filter).value

        query_filter = self._filter(user_id, await self._scope(conversation_id), **matches)

        try:
            await self.connect()
            response = await self.client.query_points(
                collection_name=self.collection_name,
                query=query_embedding,
                limit=limit,
                query_filter=query_filter,
                with_payload=True,
            )
        except Exception as e:
            logger.error(
                "Failed to query memories",
                extra={"user_id": user_id, "error": str(e)},
            )
            raise VectorStoreError(f"Failed to query memories: {e}") from e

        candidates = []
        for point in response.points:
            payload = point.payload or {}
            updated_at = payload.get("updated_at")
            candidates.append(
                MemoryCandidate(
                    content=payload.get("content", ""),
                    memory_key=payload.get("memory_key"),
                    memory_type=MemoryType(payload.get("memory_type", MemoryType.CHAT.value)),
                    updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
                    distance=point.score,
                )
            )
        return candidates

    async def latest_facts(
        self, user_id: str, conversation_id: int | None = None
    ) -> list[UserFact]:
        query_filter = self._filter(
            user_id, await self._scope(conversation_id), memory_type=MemoryType.FACT.value
        )

        latest: dict[str, tuple[str, str]] = {}
        offset = None
        try:
            await self.connect()
            while True:
                points, offset = await self.client.scroll(
                    collection_name=self.collection_name,
                    scroll_filter=query_filter,
                    limit=self.scroll_page_size,
                    offset=offset,
                    with_payload=True,
                )
                for point in points:
                    payload = point.payload or {}
                    key = payload.get("memory_key")
                    if not key:
                        continue
                    stamp = payload.get("updated_at") or ""
                    if key not in latest or stamp > latest[key][0]:
                        latest[key] = (stamp, payload.get("content", ""))
                if offset is None:
                    break
        except Exception as e:
            logger.error(
                "Failed to load latest facts",
                extra={"user_id": user_id, "error": str(e)},
            )
            raise VectorStoreError(f"Failed to load latest facts: {e}") from e

        return [UserFact(memory_key=key, content=content) for key, (_, content) in latest.items()]

    async def recent_user_memories(
        self, user_id: str, limit: int = 5, conversation_id: int | None = None
    ) -> list[UserMemory]:
        query_filter = self._filter(user_id, await self._scope(conversation_id), role="user")

        try:
            await self.connect()
            points, _ = await self.client.scroll(
                collection_name=self.collection_name,
                scroll_filter=query_filter,
                limit=limit,
                order_by=OrderBy(key="updated_at", direction=Direction.DESC),
                with_payload=True,
            )
        except Exception as e:
            logger.error(
                "Failed to load recent memories",
                extra={"user_id": user_id, "error": str(e)},
            )
            raise VectorStoreError(f"Failed to load recent memories: {e}") from e

        return [
            UserMemory(
                memory_key=(point.payload or {}).get("memory_key"),
                content=(point.payload or {}).get("content", ""),
            )
            for point in points
        ]

    async def close(self) -> None:
        """Close the connection to Qdrant."""
        if self.client is not None:
            await self.client.close()
            self.client = None
