"""Main application for the Dealer Voice integration service."""

from contextlib import asynccontextmanager
import datetime
import logging
import sys

import dotenv
import fastapi
from fastapi.middleware import cors
from google.cloud.logging_v2.handlers import StructuredLogHandler
from starlette import exceptions as starlette_exceptions

from dealer_voice import dependencies
from dealer_voice.api import conversations
from dealer_voice.api import hooks
from dealer_voice.api import tools
from dealer_voice.config import Settings
from dealer_voice.core import errors

load_dotenv = dotenv.load_dotenv
FastAPI = fastapi.FastAPI
Request = fastapi.Request
JSONResponse = fastapi.responses.JSONResponse
CORSMiddleware = cors.CORSMiddleware
HTTPException = starlette_exceptions.HTTPException

load_dotenv()

_SERVICE_NAME = "dealer-voice-agent"


def setup_async_logging(level: str = "INFO"):
  """Configures a single structured logger on stdout for Cloud Run."""
  root_logger = logging.getLogger()
  root_logger.handlers.clear()
  root_logger.setLevel(level.upper())
  handler = StructuredLogHandler(stream=sys.stdout)
  root_logger.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
  settings = Settings()
  setup_async_logging(settings.LOG_LEVEL)
  logging.info("FastAPI server starting up...")
  dependencies.instances.update(dependencies.build_instances(settings))
  yield
  logging.info("FastAPI server shutting down...")
  dependencies.instances.clear()


app = FastAPI(title="Dealer Voice Integration", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=[
        "Origin",
        "X-Requested-With",
        "Content-Type",
        "Accept",
        "x-elevenlabs-signature",
        "x-webhook-signature",
    ],
)
app.include_router(tools.router)
app.include_router(conversations.router)
app.include_router(hooks.router)


@app.exception_handler(errors.InvalidSignatureError)
async def invalid_signature_handler(
    request: Request, exc: errors.InvalidSignatureError
) -> JSONResponse:
  del request, exc  # Unused.
  return JSONResponse(status_code=401, content={"error": "Invalid signature"})


@app.exception_handler(HTTPException)
async def http_exception_handler(
    request: Request, exc: HTTPException
) -> JSONResponse:
  if exc.status_code == 404:
    return JSONResponse(
        status_code=404,
        content={"error": "Not found", "path": request.url.path},
    )
  return JSONResponse(
      status_code=exc.status_code,
      content={"error": exc.detail},
      headers=getattr(exc, "headers", None),
  )


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
  logging.exception("Server error on %s: %s", request.url.path, exc)
  return JSONResponse(
      status_code=500,
      content={"error": "Internal server error", "message": str(exc)},
  )


@app.get("/health")
async def health():
  return {
      "status": "healthy",
      "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
      "service": _SERVICE_NAME,
  }


def run():
  """Entry point for the `dealer-voice-server` script."""
  import uvicorn  # pylint: disable=g-import-not-at-top

  uvicorn.run(
      "dealer_voice.main:app",
      host="0.0.0.0",
      port=8080,
  )


if __name__ == "__main__":
  run()
