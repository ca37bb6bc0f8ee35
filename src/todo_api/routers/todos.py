from __future__ import annotations

import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, Path, Response, status

from ..auth import get_current_identity, get_todo_repository
from ..errors import Forbidden, TodoNotFound
from ..models import TodoEntity
from ..repositories import TodoRepository
from ..schemas import TodoCreate, TodoOut, TodoStats, TodoUpdate
from ..tokens import TokenIdentity

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
)

TodoId = Annotated[int, Path(alias="id", ge=1, description="Todo id")]


def _get_owned_todo(repo: TodoRepository, todo_id: int, identity: TokenIdentity) -> TodoEntity:
    """
    Fetch a todo and check it belongs to the caller.

    Raises:
        TodoNotFound: no todo with this id.
        Forbidden: the todo belongs to another user.
    """
    todo = repo.find_by_id(todo_id)
    if todo is None:
        raise TodoNotFound()
    if todo["user_id"] != identity.user_id:
        logger.warning("User id=%s denied access to todo id=%s", identity.user_id, todo_id)
        raise Forbidden()
    return todo


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item for the current user and return the created resource.",
    responses={
        201: {"description": "Todo created successfully"},
        400: {"description": "Validation error"},
        401: {"description": "Missing or invalid token"},
    },
)
def create_todo(
    payload: TodoCreate,
    identity: TokenIdentity = Depends(get_current_identity),
    repo: TodoRepository = Depends(get_todo_repository),
) -> TodoOut:
    created = repo.create(
        user_id=identity.user_id,
        title=payload.title,
        description=payload.description,
        completed=payload.completed,
        due_date=payload.due_date,
    )
    logger.info("User id=%s created todo id=%s", identity.user_id, created["id"])
    return TodoOut(**created)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List Todos",
    description="List every todo owned by the current user, newest first.",
)
def list_todos(
    identity: TokenIdentity = Depends(get_current_identity),
    repo: TodoRepository = Depends(get_todo_repository),
) -> List[TodoOut]:
    return [TodoOut(**t) for t in repo.find_by_user_id(identity.user_id)]


# PUBLIC_INTERFACE
@router.get(
    "/stats",
    response_model=TodoStats,
    summary="Todo Stats",
    description="Total, completed and pending todo counts for the current user.",
)
def todo_stats(
    identity: TokenIdentity = Depends(get_current_identity),
    repo: TodoRepository = Depends(get_todo_repository),
) -> TodoStats:
    return TodoStats(**repo.count_by_user_id(identity.user_id))


# PUBLIC_INTERFACE
@router.get(
    "/{id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={
        200: {"description": "Todo found"},
        403: {"description": "Todo belongs to another user"},
        404: {"description": "Todo not found"},
    },
)
def get_todo(
    todo_id: TodoId,
    identity: TokenIdentity = Depends(get_current_identity),
    repo: TodoRepository = Depends(get_todo_repository),
) -> TodoOut:
    return TodoOut(**_get_owned_todo(repo, todo_id, identity))


# PUBLIC_INTERFACE
@router.put(
    "/{id}",
    response_model=TodoOut,
    summary="Update Todo",
    description=(
        "Update some or all of title, description, completed and dueDate. "
        "Fields that are not sent keep their current value."
    ),
    responses={
        200: {"description": "Todo updated"},
        403: {"description": "Todo belongs to another user"},
        404: {"description": "Todo not found"},
    },
)
def update_todo(
    payload: TodoUpdate,
    todo_id: TodoId,
    identity: TokenIdentity = Depends(get_current_identity),
    repo: TodoRepository = Depends(get_todo_repository),
) -> TodoOut:
    _get_owned_todo(repo, todo_id, identity)
    updated = repo.update(todo_id, payload.model_dump(exclude_unset=True))
    if updated is None:
        # deleted between the ownership check and the update
        raise TodoNotFound()
    logger.debug("User id=%s updated todo id=%s", identity.user_id, todo_id)
    return TodoOut(**updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={
        204: {"description": "Todo deleted"},
        403: {"description": "Todo belongs to another user"},
        404: {"description": "Todo not found"},
    },
)
def delete_todo(
    todo_id: TodoId,
    identity: TokenIdentity = Depends(get_current_identity),
    repo: TodoRepository = Depends(get_todo_repository),
) -> Response:
    """
    Delete a Todo. Returns 204 on success.
    """
    _get_owned_todo(repo, todo_id, identity)
    if not repo.delete(todo_id):
        raise TodoNotFound()
    logger.info("User id=%s deleted todo id=%s", identity.user_id, todo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
