"""REST routes for creating, inspecting and advancing render jobs.

Every endpoint is safe to call repeatedly: creating a job for a request
that already has one returns the existing job, reading or polling a job
never changes its outcome, and a trigger performs at most one step under
the job's processing lock.

Jobs normally run to completion in a background task. Deployments that
cannot keep a worker alive create them with ``?mode=steps`` instead and call
``POST /v1/jobs/{id}/trigger`` repeatedly; this needs a step processor
registered with :func:`set_step_processor`.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Literal

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from reelsync.api.auth import require_api_bearer_token
from reelsync.api.schemas import ErrorObject, ErrorResponse, RenderJobResponse, TriggerResponse
from reelsync.jobs.models import RenderJob
from reelsync.jobs.orchestrator import RenderOrchestrator
from reelsync.jobs.stepper import SceneStepProcessor
from reelsync.jobs.store import JobNotFoundError
from reelsync.render import get_backend
from reelsync.render.request import RenderRequest
from reelsync.utils.cancel import get_cancel_event
from reelsync.utils.constant import API_RENDER_BACKEND

logger = logging.getLogger(__name__)

router = APIRouter()

_orchestrator_lock = threading.Lock()
_orchestrator: RenderOrchestrator | None = None
_step_processor: SceneStepProcessor | None = None


def get_orchestrator() -> RenderOrchestrator:
    """Return the process-wide orchestrator, creating it on first use.

    The backend is chosen by ``API_RENDER_BACKEND``.
    """
    global _orchestrator
    with _orchestrator_lock:
        if _orchestrator is None:
            logger.info("Creating render orchestrator with backend=%s", API_RENDER_BACKEND)
            _orchestrator = RenderOrchestrator(get_backend(API_RENDER_BACKEND))
        return _orchestrator


def set_orchestrator(orchestrator: RenderOrchestrator | None) -> None:
    """Replace the process-wide orchestrator (``None`` resets it)."""
    global _orchestrator
    with _orchestrator_lock:
        _orchestrator = orchestrator


def get_step_processor() -> SceneStepProcessor | None:
    """Return the registered step processor, if any."""
    with _orchestrator_lock:
        return _step_processor


def set_step_processor(processor: SceneStepProcessor | None) -> None:
    """Register the processor behind the trigger endpoint (``None`` removes it).

    The processor's orchestrator also becomes the process-wide orchestrator
    so that every route sees the same jobs.
    """
    global _orchestrator, _step_processor
    with _orchestrator_lock:
        _step_processor = processor
        if processor is not None:
            _orchestrator = processor.orchestrator


def _build_error_response(
    *,
    status_code: int,
    message: str,
    error_type: str,
    code: str,
) -> JSONResponse:
    """Create an error response.

    Args:
        status_code: HTTP status code.
        message: Error message for clients.
        error_type: Error category.
        code: Short machine-readable error code.

    Returns:
        JSON response containing an ``error`` object.
    """
    payload = ErrorResponse(
        error=ErrorObject(
            message=message,
            type=error_type,
            code=code,
        )
    ).model_dump()
    return JSONResponse(status_code=status_code, content=payload)


def _job_response(job: RenderJob, status_code: int = 200) -> JSONResponse:
    payload = RenderJobResponse.model_validate(job.to_dict()).model_dump(by_alias=True)
    return JSONResponse(status_code=status_code, content=payload)


def _job_not_found(job_id: str) -> JSONResponse:
    return _build_error_response(
        status_code=404,
        message=f"No render job with id '{job_id}'.",
        error_type="invalid_request_error",
        code="job_not_found",
    )


def _run_job(orchestrator: RenderOrchestrator, job_id: str) -> None:
    """Drive a job to completion in the background."""
    try:
        job = orchestrator.run(job_id, cancel_event=get_cancel_event())
        logger.info("Background render for job %s ended as %s", job_id, job.status.value)
    except Exception:
        logger.exception("Background render for job %s crashed", job_id)


@router.post("/v1/jobs")
async def create_job(
    request: Request,
    background_tasks: BackgroundTasks,
    mode: Literal["background", "steps"] = "background",
) -> Response:
    """Create a render job, or return the existing job for an identical request.

    Args:
        request: Incoming request carrying the render request body.
        background_tasks: Task queue used to run new jobs.
        mode: ``background`` runs the job to completion after responding;
            ``steps`` leaves it for the trigger endpoint to advance.

    Returns:
        ``201`` with the new job, ``200`` with an existing one, or a ``400``
        error object for an invalid body.
    """
    auth_error = require_api_bearer_token(request)
    if auth_error is not None:
        return auth_error

    try:
        body = await request.json()
    except json.JSONDecodeError:
        return _build_error_response(
            status_code=400,
            message="Request body must be valid JSON.",
            error_type="invalid_request_error",
            code="invalid_json",
        )
    try:
        render_request = RenderRequest.model_validate(body)
    except ValidationError as exc:
        logger.debug("Rejected render request: %s", exc)
        return _build_error_response(
            status_code=400,
            message=str(exc),
            error_type="invalid_request_error",
            code="invalid_render_request",
        )

    orchestrator = get_orchestrator()
    job, created = orchestrator.create_job(render_request)
    if created and mode == "background":
        background_tasks.add_task(_run_job, orchestrator, job.job_id)
    return _job_response(job, status_code=201 if created else 200)


@router.get("/v1/jobs/{job_id}")
async def get_job(job_id: str, request: Request) -> Response:
    """Return the current state of a render job."""
    auth_error = require_api_bearer_token(request)
    if auth_error is not None:
        return auth_error
    try:
        job = get_orchestrator().get_job(job_id)
    except JobNotFoundError:
        return _job_not_found(job_id)
    return _job_response(job)


@router.post("/v1/jobs/{job_id}/poll")
def poll_job(job_id: str, request: Request) -> Response:
    """Query the backend once for a job's progress and return the job."""
    auth_error = require_api_bearer_token(request)
    if auth_error is not None:
        return auth_error
    try:
        job = get_orchestrator().poll_once(job_id)
    except JobNotFoundError:
        return _job_not_found(job_id)
    return _job_response(job)


@router.post("/v1/jobs/{job_id}/trigger")
def trigger_job(job_id: str, request: Request) -> Response:
    """Advance a job by at most one step and report what the step did.

    Returns:
        The step outcome with the updated job, ``404`` for an unknown job, or
        ``503`` when no step processor is registered.
    """
    auth_error = require_api_bearer_token(request)
    if auth_error is not None:
        return auth_error
    processor = get_step_processor()
    if processor is None:
        return _build_error_response(
            status_code=503,
            message="Step processing is not configured on this server.",
            error_type="server_error",
            code="step_processing_unavailable",
        )
    try:
        outcome = processor.trigger(job_id)
        job = processor.orchestrator.get_job(job_id)
    except JobNotFoundError:
        return _job_not_found(job_id)
    payload = TriggerResponse(
        outcome=outcome.value,
        job=RenderJobResponse.model_validate(job.to_dict()),
    ).model_dump(by_alias=True)
    return JSONResponse(status_code=200, content=payload)
