# backend/app/api/endpoints/web/tasks.py
from typing import List, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps import get_current_user_id, get_task_store
from app.crud.tasks import TaskStore
from app.models.task import TaskStatus
from app.schemas.task import TaskCreate, TaskRead, TaskUpdate
from app.services.prioritization import sort_tasks

router = APIRouter(prefix="/tasks", tags=["Tasks"])

StatusFilter = Literal["all", "active", "follow-up", "missing", "completed"]


def _to_task_read(task) -> TaskRead:
    return TaskRead.model_validate(task.model_dump(by_alias=False))


# CREATE
@router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    task: TaskCreate,
    user_id: str = Depends(get_current_user_id),
    store: TaskStore = Depends(get_task_store),
):
    created = await store.create_task(user_id, task)
    return _to_task_read(created)


# READ ALL
@router.get("", response_model=List[TaskRead])
async def read_tasks(
    status_filter: StatusFilter = Query("all", alias="status"),
    user_id: str = Depends(get_current_user_id),
    store: TaskStore = Depends(get_task_store),
):
    """
    status=all (default) lists every task that is not completed.
    """
    if status_filter == "all":
        tasks = await store.list_tasks(user_id, exclude_completed=True)
    else:
        tasks = await store.list_tasks(user_id, status=TaskStatus(status_filter))
    return [_to_task_read(t) for t in sort_tasks(tasks)]


# READ ONE
@router.get("/{task_id}", response_model=TaskRead)
async def read_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    store: TaskStore = Depends(get_task_store),
):
    task = await store.get_task(user_id, task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return _to_task_read(task)


# UPDATE
@router.patch("/{task_id}", response_model=TaskRead)
@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: str,
    task: TaskUpdate,
    user_id: str = Depends(get_current_user_id),
    store: TaskStore = Depends(get_task_store),
):
    updated = await store.update_task(user_id, task_id, task)
    if not updated:
        raise HTTPException(status_code=404, detail="Task not found")
    return _to_task_read(updated)


# DELETE
@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    store: TaskStore = Depends(get_task_store),
):
    deleted = await store.delete_task(user_id, task_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Task not found")
    return None
