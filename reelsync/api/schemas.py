"""Response schemas for the render job REST API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class RenderResultPayload(BaseModel):
    """Output of a completed render."""

    video_url: str = Field(..., alias="videoUrl")
    duration: float | None = None

    model_config = {"populate_by_name": True}


class RenderJobResponse(BaseModel):
    """Public shape of a render job."""

    id: str
    status: Literal["pending", "processing", "completed", "failed"]
    progress: int = Field(..., ge=0, le=100)
    progress_message: str = Field(..., alias="progressMessage")
    result: RenderResultPayload | None = None
    error: str | None = None
    error_kind: str | None = Field(None, alias="errorKind")

    model_config = {"populate_by_name": True}


class ErrorObject(BaseModel):
    """Error object returned by every failing endpoint."""

    message: str
    type: str
    code: str


class ErrorResponse(BaseModel):
    """Top-level error response wrapper."""

    error: ErrorObject


class TriggerResponse(BaseModel):
    """Result of one cooperative step."""

    outcome: Literal[
        "already_finished",
        "already_processing",
        "scene_synthesized",
        "render_submitted",
        "render_polled",
        "failed",
    ]
    job: RenderJobResponse
