# lesson_approval/main.py
import logging
import time
import uuid
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from lesson_approval.api.routers import files as files_router
from lesson_approval.api.routers import lesson_plans as lesson_plans_router
from lesson_approval.api.routers import notifications as notifications_router
from lesson_approval.api.routers import reports as reports_router
from lesson_approval.api.routers import schools as schools_router
from lesson_approval.api.routers import teams as teams_router
from lesson_approval.api.routers import users as users_router
from lesson_approval.core.config import settings
from lesson_approval.core.errors import Denied, WorkflowError
from lesson_approval.core.logging import configure_logging

logger = logging.getLogger(__name__)


async def workflow_error_handler(request: Request, exc: WorkflowError) -> JSONResponse:
    body = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, Denied):
        body["reason"] = exc.reason.value
    return JSONResponse(status_code=exc.status_code, content=body)


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Lesson Plan Approval", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"], allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_trace(request: Request, call_next):
        trace_id = request.headers.get("X-Trace-Id", str(uuid.uuid4()))
        start = time.time()
        response = await call_next(request)
        took = int((time.time() - start) * 1000)
        logger.info(
            "%s %s -> %s in %dms trace=%s",
            request.method, request.url.path, response.status_code, took, trace_id,
        )
        response.headers["X-Trace-Id"] = trace_id
        return response

    app.add_exception_handler(WorkflowError, workflow_error_handler)

    # Organization
    app.include_router(schools_router.router, prefix="/api")
    app.include_router(teams_router.router, prefix="/api")
    app.include_router(users_router.router, prefix="/api")

    # Workflow
    app.include_router(lesson_plans_router.router, prefix="/api")
    app.include_router(files_router.router, prefix="/api")

    # Reporting and communications
    app.include_router(reports_router.router, prefix="/api")
    app.include_router(notifications_router.router, prefix="/api")

    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

    @app.get("/healthz")
    def health():
        return {"ok": True}

    return app

app = create_app()
