"""
Request validation error formatting.

FastAPI validates path parameters and JSON bodies against the pydantic
models before a route runs.  This module turns the resulting
``RequestValidationError`` into a 400 response whose body lists one entry per
failed field:

    {"errors": [{"type": "field", "msg": "Field required",
                 "path": "name", "location": "body"}]}
"""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from task_api.models import ValidationErrorItem, ValidationErrorResponse

logger = logging.getLogger(__name__)

# pydantic reports the whole parent object as ``input`` for missing fields
_NO_VALUE_TYPES = {"missing"}


def to_error_items(errors: list[dict[str, Any]]) -> list[ValidationErrorItem]:
    """Convert pydantic error dicts into ValidationErrorItem records."""
    items = []
    for err in errors:
        loc = tuple(err.get("loc", ()))
        location = str(loc[0]) if loc else "body"
        path = ".".join(str(part) for part in loc[1:])
        item = ValidationErrorItem(
            msg=err.get("msg", "Invalid value"),
            path=path,
            location=location,
        )
        if err.get("type") not in _NO_VALUE_TYPES and "input" in err:
            item.value = jsonable_encoder(err["input"])
        items.append(item)
    return items


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with the structured list of failed field rules."""
    items = to_error_items(exc.errors())
    logger.info(
        "validation_failed method=%s path=%s fields=%s",
        request.method, request.url.path, ",".join(i.path or i.location for i in items),
    )
    body = ValidationErrorResponse(errors=items)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(body),
    )
