from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import LOG_LEVEL, cors_origins
from .routes import router

logger = logging.getLogger(__name__)


async def _http_error(request: Request, exc: HTTPException) -> JSONResponse:
  # UI reads `error`; `detail` stays for FastAPI clients
  return JSONResponse({"error": exc.detail, "detail": exc.detail},
                      status_code=exc.status_code,
                      headers=getattr(exc, "headers", None))


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
  logger.info("rejected request path=%s errors=%s", request.url.path, exc.errors())
  return JSONResponse({"error": "Permintaan tidak valid", "detail": exc.errors()},
                      status_code=400)


def create_app() -> FastAPI:
  logging.basicConfig(
      level=getattr(logging, LOG_LEVEL, logging.INFO),
      format="%(asctime)s %(levelname)s %(name)s: %(message)s",
  )
  app = FastAPI(title="NezarAI")
  if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
  app.add_exception_handler(HTTPException, _http_error)
  app.add_exception_handler(RequestValidationError, _validation_error)
  app.include_router(router)

  @app.get("/health")
  def health():
    return {"ok": True}

  return app


app = create_app()
