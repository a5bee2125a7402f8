"""
Pydantic request/response models for the Task API.

Field() descriptions and examples feed the generated OpenAPI document
served at /docs.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from task_api.database import MAX_TASK_ID, MIN_TASK_ID, UNSET, TaskPatch


# ── Task models ───────────────────────────────────────────────────────────────

class TaskOut(BaseModel):
    """A stored task."""
    id: int = Field(..., description="Unique task ID assigned by the store", examples=[1])
    name: str = Field(..., description="Task name", examples=["Task Name"])
    info: str = Field(..., description="Free-form task details", examples=["Task Information"])
    isDone: bool = Field(..., description="Whether the task is complete", examples=[False])


class TaskCreate(BaseModel):
    """Request body for POST /create.

    ``info`` and ``isDone`` fall back to their defaults when omitted or null.
    """
    name: str = Field(..., min_length=1, description="Task name (required, non-empty)", examples=["New Task"])
    info: str = Field("", description="Task details", examples=["Task details"])
    isDone: bool = Field(False, description="Completion flag", examples=[False])

    @field_validator("info", "isDone", mode="before")
    @classmethod
    def _null_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value


class TaskUpdate(BaseModel):
    """Request body for POST /update.

    Omitted fields are left unchanged; a field sent as ``null`` is rejected.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"id": 1, "name": "Updated Task", "info": "Updated Task details", "isDone": True}
            ]
        }
    )

    id: int = Field(
        ..., ge=MIN_TASK_ID, le=MAX_TASK_ID,
        description="ID of the task to update", examples=[1],
    )
    name: str | None = Field(None, description="New task name", examples=["Updated Task"])
    info: str | None = Field(None, description="New task details", examples=["Updated Task details"])
    isDone: bool | None = Field(None, description="New completion flag", examples=[True])

    @field_validator("name", "info", "isDone")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        # Defaults are not validated, so this only fires for an explicit null.
        if value is None:
            raise ValueError("Field may be omitted but must not be null")
        return value

    def to_patch(self) -> TaskPatch:
        """Build a TaskPatch carrying only the fields present in the request."""
        supplied = self.model_fields_set
        return TaskPatch(**{
            name: getattr(self, name) if name in supplied else UNSET
            for name in ("name", "info", "isDone")
        })


# ── Error models ──────────────────────────────────────────────────────────────

class ValidationErrorItem(BaseModel):
    """One failed field rule."""
    type: str = Field("field", description="Kind of failure; always 'field'", examples=["field"])
    msg: str = Field(..., description="Human-readable failure message", examples=["Field required"])
    path: str = Field(..., description="Dotted path of the offending field", examples=["name"])
    location: str = Field(..., description="Where the field was read from: body, path or query", examples=["body"])
    value: Any = Field(None, description="The rejected value, when one was supplied")


class ValidationErrorResponse(BaseModel):
    """Response body for a request that failed validation (HTTP 400)."""
    errors: list[ValidationErrorItem] = Field(..., description="Per-field validation failures")


class ErrorResponse(BaseModel):
    """Standard error response body."""
    error: str = Field(..., description="Short error category", examples=["Store error"])
    detail: str | None = Field(None, description="Extended error detail")
    status_code: int = Field(..., ge=400, le=599, description="HTTP status code", examples=[500])
