"""
Interview Judge - Main FastAPI Application

Sandboxed evaluation and scoring of interview-practice submissions.
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import execute_router, attempts_router
from .config import LOG_LEVEL
from .db import Store
from .sandbox import SandboxEvaluator
from . import __version__

logger = logging.getLogger(__name__)


def create_app(
    store: Optional[Store] = None,
    evaluator: Optional[SandboxEvaluator] = None,
) -> FastAPI:
    """
    Build the application.

    A store or evaluator passed in is used as is; otherwise one is created
    at startup. The store is closed at shutdown either way.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.store = store or Store()
        app.state.evaluator = evaluator or SandboxEvaluator()
        app.state.store.init()
        logger.info("Interview Judge v%s started", __version__)
        try:
            yield
        finally:
            app.state.store.close()

    app = FastAPI(
        title="Interview Judge",
        description="Sandboxed evaluation of interview-practice code submissions.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_timing_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.3f}s"
        return response

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "error_code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
            }
        )

    app.include_router(execute_router)
    app.include_router(attempts_router)

    @app.get("/")
    async def root():
        return {
            "name": "Interview Judge",
            "version": __version__,
            "description": "Sandboxed evaluation of interview-practice submissions",
            "docs": "/docs",
            "endpoints": {
                "execute": "/api/execute",
                "evaluate": "/api/evaluate",
                "attempts": "/api/attempts",
            },
        }

    @app.get("/health")
    async def health(request: Request):
        """Health check endpoint for monitoring."""
        health_status = {
            "status": "healthy",
            "version": __version__,
            "timestamp": datetime.utcnow().isoformat() + "Z",
        }

        try:
            request.app.state.store.ping()
            health_status["database"] = "connected"
        except Exception as e:
            health_status["status"] = "degraded"
            health_status["database"] = f"error: {str(e)}"

        return health_status

    return app


def main():
    import uvicorn
    from .config import API_HOST, API_PORT

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(), host=API_HOST, port=API_PORT)


if __name__ == "__main__":
    main()
