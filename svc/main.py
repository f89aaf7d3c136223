from __future__ import annotations
from dotenv import load_dotenv
load_dotenv()  # Load .env file before importing exporter modules

import time
import logging
from typing import Callable
import uvicorn
from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from exporter.routes import router
from exporter.config import SVC_HOST, SVC_PORT

# Configure logging to show all INFO level logs from our modules
logging.basicConfig(
    level=logging.INFO,
    format='%(levelname)s: %(name)s: %(message)s'
)
logging.getLogger("exporter").setLevel(logging.INFO)

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log request and response information."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        client_ip = request.client.host if request.client else "unknown"

        # Prometheus polls /metrics every scrape interval; keep those lines at DEBUG
        log = logger.debug if request.url.path == "/metrics" else logger.info

        log(f"Request: {request.method} {request.url.path} | IP: {client_ip}")

        response = await call_next(request)

        process_time = time.time() - start_time
        log(
            f"Response: {request.method} {request.url.path} | "
            f"Status: {response.status_code} | "
            f"Time: {process_time:.3f}s"
        )

        return response


def create_app() -> FastAPI:
    app = FastAPI(title="Hue Bridge Exporter", version="0.1.0")

    app.add_middleware(LoggingMiddleware)

    app.include_router(router)
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host=SVC_HOST, port=SVC_PORT)
