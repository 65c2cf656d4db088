import uvicorn
import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from phpcs_gate.agents.orchestrator import Orchestrator
from phpcs_gate.api.commands import router as commands_router
from phpcs_gate.core.config import LOG_LEVEL
from phpcs_gate.services.analyzer import Analyzer
from phpcs_gate.services.toolchain import resolve_toolchain
from phpcs_gate.utils.logging_config import setup_logging

setup_logging(level=LOG_LEVEL)
logger = logging.getLogger("main")


# ---------------------------------------------------------------------------
# Startup: resolve the toolchain once (fatal on failure)
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    toolchain = resolve_toolchain()
    logger.info("Toolchain ready: %s (standard %s)", toolchain.phpcs_path, toolchain.standard)
    app.state.orchestrator = Orchestrator(Analyzer(toolchain))
    yield


app = FastAPI(title="phpcs-gate", lifespan=lifespan)


# ---------------------------------------------------------------------------
# Logging Middleware
# ---------------------------------------------------------------------------
class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Incoming: {request.method} {request.url.path} from {client_host}")

        try:
            response = await call_next(request)
            process_time = (time.time() - start_time) * 1000
            logger.info(
                f"Outgoing: {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Time: {process_time:.2f}ms"
            )
            return response
        except Exception as e:
            logger.error(f"Request failed: {request.method} {request.url.path} - Error: {str(e)}")
            raise


app.add_middleware(LoggingMiddleware)


# Health endpoint
@app.get("/health")
async def health_check():
    return {"status": "ok"}


app.include_router(commands_router)

if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
