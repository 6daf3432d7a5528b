"""
Document ingestion use case.

Reads a markdown-like file, reduces it to plain text, splits it into
paragraph chunks, embeds them in one batch and registers them in the
document registry and the chunk index.
"""

import re
from pathlib import Path

from src.core.document_store.sqlite_store import SQLiteDocumentStore
from src.core.embeddings.base import Embedder
from src.core.retrieval_store.base import RetrievalStore
from src.models.document import IngestResult
from src.utils.exceptions import AppError, DocumentStoreError, NotFoundError, ValidationError
from src.utils.logger import get_logger, log_event

logger = get_logger(__name__)

MAX_FILE_BYTES = 5 * 1024 * 1024
MAX_CHUNK_CHARS = 800
DEFAULT_TITLE = "Uploaded Doc"

_CODE_BLOCK = re.compile(r"`{1,3}[\s\S]*?`{1,3}")
_IMAGE = re.compile(r"!\[.*?\]\(.*?\)")
_LINK = re.compile(r"\[([^\]]+)\]\((?:[^)]+)\)")
_MARKUP = re.compile(r"[#*>_\-`]")
_BLANK_RUN = re.compile(r"\n{2,}")


def normalize_markdown(raw: str) -> str:
    """Strip code, images and markup; keep link text; collapse blank-line runs."""
    text = _CODE_BLOCK.sub("", raw)
    text = _IMAGE.sub("", text)
    text = _LINK.sub(r"\1", text)
    text = _MARKUP.sub("", text)
    text = _BLANK_RUN.sub("\n\n", text)
    return text.strip()


def _windows(text: str, size: int) -> list[str]:
    return [text[i : i + size].strip() for i in range(0, len(text), size)]


def chunk_text(text: str, max_len: int = MAX_CHUNK_CHARS) -> list[str]:
    """
    Split text into chunks of at most ``max_len`` characters.

    Paragraphs (separated by two or more newlines) become chunks; longer
    paragraphs are cut into fixed windows. Text without paragraphs falls
    back to windowing the whole string. Blank chunks are dropped.
    """
    paragraphs = [p.strip() for p in re.split(r"\n{2,}", text)]
    chunks = []

    for paragraph in paragraphs:
        if not paragraph:
            continue
        if len(paragraph) <= max_len:
            chunks.append(paragraph)
        else:
            chunks.extend(_windows(paragraph, max_len))

    if not chunks and text.strip():
        chunks = _windows(text, max_len)

    return [c for c in chunks if c]


class IngestService:
    """Loads documents into the registry and the chunk index."""

    def __init__(
        self,
        embedder: Embedder,
        documents: SQLiteDocumentStore,
        chunks: RetrievalStore,
        max_file_bytes: int = MAX_FILE_BYTES,
    ):
        """
        Initialize IngestService.

        Args:
            embedder: Embedder for chunk contents
            documents: Document registry
            chunks: Chunk vector index
            max_file_bytes: Largest accepted file
        """
        self.embedder = embedder
        self.documents = documents
        self.chunks = chunks
        self.max_file_bytes = max_file_bytes

    async def ingest_document(self, filepath: str, title: str = DEFAULT_TITLE) -> IngestResult:
        """
        Ingest one file. A filepath that was already ingested is skipped.

        Args:
            filepath: Path to a UTF-8 markdown/text file
            title: Document title

        Returns:
            IngestResult; a skipped duplicate reports the existing ID and 0/0

        Raises:
            ValidationError: Missing filepath or file too large
            NotFoundError: File does not exist
            DocumentStoreError, EmbeddingError, VectorStoreError: Ingest failed
                and the registry transaction was rolled back
        """
        if not filepath:
            raise ValidationError("filepath required")

        path = Path(filepath)
        if not path.is_file():
            raise NotFoundError("file not found", context={"filepath": filepath})

        if path.stat().st_size > self.max_file_bytes:
            raise ValidationError(
                "File too large (max 5MB)",
                context={"filepath": filepath, "size": path.stat().st_size},
            )

        contents = chunk_text(normalize_markdown(path.read_text(encoding="utf-8")))

        existing = await self.documents.get_document_by_filepath(filepath)
        if existing is not None:
            log_event(
                "INGEST_SKIPPED", filepath=filepath, reason="Document already exists"
            )
            return IngestResult(document_id=existing.id, total_chunks=0, inserted=0)

        try:
            async with self.documents.transaction():
                document = await self.documents.insert_document(title or DEFAULT_TITLE, filepath)
                inserted = 0
                if contents:
                    embeddings = await self.embedder.batch_embed(contents)
                    rows = await self.documents.insert_chunks(document.id, contents)
                    inserted = await self.chunks.upsert_chunks(
                        rows, [embeddings[r.chunk_index] for r in rows]
                    )
        except Exception as e:
            log_event(
                "INGEST_FAILURE",
                level="ERROR",
                filepath=filepath,
                message=str(e),
                name=type(e).__name__,
            )
            if isinstance(e, AppError):
                raise
            raise DocumentStoreError(f"Ingest failed: {e}", context={"filepath": filepath}) from e

        log_event(
            "INGEST_SUCCESS",
            filepath=filepath,
            document_id=document.id,
            total_chunks=len(contents),
            inserted=inserted,
        )
        return IngestResult(document_id=document.id, total_chunks=len(contents), inserted=inserted)
