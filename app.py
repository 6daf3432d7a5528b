"""
MemoRAG FastAPI Application

REST API for the MemoRAG engine: personalised chat over user memory and
ingested documents, semantic document search and document ingestion.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.config import Config
from src.models.chat import ChatRequest, ChatResponse, IngestRequest, SearchRequest, SearchResponse
from src.services.engine import MemoRAGEngine
from src.utils.exceptions import AppError, InfrastructureError, ValidationError
from src.utils.logger import get_logger, setup_logging

# Global engine instance
engine: MemoRAGEngine | None = None
logger = get_logger(__name__)


def error_body(error: AppError) -> dict:
    return {"error": {"message": error.message, "code": error.code, "details": error.context}}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global engine

    config = Config.from_env()

    setup_logging(
        level=config.logging.level,
        log_to_file=config.logging.log_to_file,
        log_dir=config.logging.log_dir,
        file_rotation=config.logging.file_rotation,
        file_retention=config.logging.file_retention,
        compression=config.logging.compression,
        serialize=config.logging.serialize,
    )

    logger.info("Starting MemoRAG server")
    logger.info(
        f"Configuration: LLM={config.llm.provider}/{config.llm.model}, "
        f"Embedder={config.embedder.provider}/{config.embedder.model}"
    )

    engine = await MemoRAGEngine.from_config(config)
    await engine.initialize()

    yield

    logger.info("Shutting down MemoRAG server")
    await engine.close()
    engine = None
    logger.info("Cleanup complete")


app = FastAPI(
    title="MemoRAG API",
    description="Conversational retrieval over user memory and company documents",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "code": exc.code, "error": exc.message},
        )
    else:
        logger.warning(
            "Request rejected",
            extra={"path": request.url.path, "code": exc.code, "error": exc.message},
        )
    return JSONResponse(status_code=exc.status_code, content=error_body(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = ValidationError(
        "Invalid request", context={"issues": jsonable_issues(exc)}
    )
    return JSONResponse(status_code=error.status_code, content=error_body(error))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", extra={"path": request.url.path})
    error = InfrastructureError("Internal server error", status_code=500)
    return JSONResponse(status_code=500, content=error_body(error))


def jsonable_issues(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


def get_engine() -> MemoRAGEngine:
    if engine is None:
        raise InfrastructureError("Engine not initialized", status_code=503)
    return engine


@app.post("/api/chat", response_model=ChatResponse)
async def chat(request: ChatRequest):
    """
    Answer a question from the user's memory and the ingested documents.

    Personal facts ("My name is ...", "I like ...") are remembered; policy
    questions are answered from document context; every answer is stored
    as conversation memory.
    """
    return await get_engine().handle_chat(request)


@app.post("/api/internal/search", response_model=SearchResponse)
async def search(request: SearchRequest):
    """Semantic search over ingested chunks, ranked by similarity."""
    return await get_engine().search_documents(request.query, request.limit)


@app.post("/api/documents/ingest")
async def ingest(request: IngestRequest):
    """
    Ingest a markdown/text file from the server's filesystem.

    A filepath that was already ingested is skipped and reports 0 chunks.
    """
    result = await get_engine().ingest_document(request.filepath, request.title)
    return {"status": "ok", **result.model_dump(by_alias=True)}


@app.get("/api/health")
async def health():
    """Health check: pings the LLM."""
    current = get_engine()
    try:
        response = await current.llm.complete("ping")
    except AppError as e:
        logger.warning("Health check failed", extra={"error": e.message})
        return JSONResponse(
            status_code=500,
            content={"status": "error", "llm": "disconnected", "detail": e.message},
        )
    return {"status": "ok", "llm": "connected", "response": response}


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "MemoRAG API",
        "version": "1.0.0",
        "description": "Conversational retrieval over user memory and company documents",
        "docs": "/docs",
        "health": "/api/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
