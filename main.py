"""
MemoRAG Server Entry Point

Run with: python main.py
Or with uvicorn: uvicorn app:app --reload

MEMORAG_HOST, MEMORAG_PORT and ENVIRONMENT control where and how the server
runs; everything else is read by ``Config.from_env`` at startup.
"""

import os

import uvicorn

if __name__ == "__main__":
    is_dev = os.getenv("ENVIRONMENT", "development") == "development"

    uvicorn.run(
        "app:app",
        host=os.getenv("MEMORAG_HOST", "0.0.0.0"),
        port=int(os.getenv("MEMORAG_PORT", "8000")),
        reload=is_dev,
        log_level=os.getenv("MEMORAG_LOG_LEVEL", "info").lower(),
    )
