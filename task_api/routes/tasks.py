"""
Task CRUD endpoints.

    GET  /read          list every task
    POST /create        create a task
    POST /update        change fields on a task
    GET  /delete/{id}   delete a task

Request shapes are checked by FastAPI against the models in
``task_api.models`` before a handler runs; failures become 400 responses
(see ``task_api.validation``).  Each handler makes exactly one store call.
``StoreError`` raised by the store is turned into a 500 response by the
exception handler registered in ``task_api.app``.
"""

import logging

from fastapi import APIRouter, Depends, Path

from task_api.database import MAX_TASK_ID, MIN_TASK_ID, TaskStore, get_store
from task_api.models import (
    ErrorResponse,
    TaskCreate,
    TaskOut,
    TaskUpdate,
    ValidationErrorResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])

_ERROR_RESPONSES = {
    400: {"model": ValidationErrorResponse, "description": "Validation error."},
    500: {"model": ErrorResponse, "description": "Server error."},
}


@router.get(
    "/read",
    response_model=list[TaskOut],
    responses={500: _ERROR_RESPONSES[500]},
    summary="Retrieve all tasks",
    description="Fetch all tasks from the database.",
    response_description="A list of tasks.",
)
def read_tasks(store: TaskStore = Depends(get_store)) -> list[TaskOut]:
    return [TaskOut(**t) for t in store.list_tasks()]


@router.post(
    "/create",
    response_model=TaskOut,
    responses=_ERROR_RESPONSES,
    summary="Create a new task",
    description="Create a new task with the provided information. "
                "`info` defaults to an empty string and `isDone` to false.",
    response_description="The created task.",
)
def create_task(
    payload: TaskCreate,
    store: TaskStore = Depends(get_store),
) -> TaskOut:
    task = store.create_task(payload.name, payload.info, payload.isDone)
    logger.info("Created task %s", task)
    return TaskOut(**task)


@router.post(
    "/update",
    response_model=TaskOut,
    responses=_ERROR_RESPONSES,
    summary="Update an existing task",
    description="Update a task with the provided information. Only the fields "
                "present in the request body are changed.",
    response_description="The updated task.",
)
def update_task(
    payload: TaskUpdate,
    store: TaskStore = Depends(get_store),
) -> TaskOut:
    task = store.update_task(payload.id, payload.to_patch())
    return TaskOut(**task)


@router.get(
    "/delete/{id}",
    response_model=TaskOut,
    responses=_ERROR_RESPONSES,
    summary="Delete a task",
    description="Delete a task by its ID.",
    response_description="The deleted task.",
)
def delete_task(
    id: int = Path(
        ..., ge=MIN_TASK_ID, le=MAX_TASK_ID,
        description="The ID of the task to delete",
    ),
    store: TaskStore = Depends(get_store),
) -> TaskOut:
    """Delete the task and return its values from before the deletion."""
    return TaskOut(**store.delete_task(id))
