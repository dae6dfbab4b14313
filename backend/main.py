from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.db_init import init_db
from backend.routes import auth, completions, notes, tasks, user_notes
from backend.settings import get_settings

logger = logging.getLogger("backend")

VALUE_ERROR_PREFIX = "Value error, "


def first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    error = errors[0]
    if error.get("type") == "missing":
        field = str(error.get("loc", ["", "field"])[-1])
        return f"{field} is required"
    message = str(error.get("msg") or "Invalid request")
    if message.startswith(VALUE_ERROR_PREFIX):
        message = message[len(VALUE_ERROR_PREFIX) :]
    return message


def create_app() -> FastAPI:
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    app = FastAPI(title="Daily Habits API", version="0.1.0")

    app.include_router(auth.router)
    app.include_router(tasks.router)
    app.include_router(completions.router)
    app.include_router(notes.router)
    app.include_router(user_notes.router)

    @app.on_event("startup")
    async def _startup():
        await init_db()

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"success": False, "error": first_validation_message(exc)})

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"success": False, "error": "Internal error"})

    @app.get("/health")
    async def health():
        return {"success": True, "data": {"ok": True}}

    return app


app = create_app()
