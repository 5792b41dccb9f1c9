"""
api/routes/v1/tasks.py -- Task routes for the TaskGuard REST API.

Routes:
  GET    /tasks                   -- list tasks (requires auth)
  GET    /tasks/{task_id}         -- task detail (requires auth)
  POST   /admin/tasks             -- create task (admin only)
  PUT    /admin/tasks/{task_id}   -- replace task fields (admin only)
  DELETE /admin/tasks/{task_id}   -- delete task (admin only)

The handlers are pass-throughs to TaskService; the guards live on the routers.
"""

from fastapi import APIRouter, Depends, Request

from api.models import MessageResponse, TaskCreate, TaskResponse
from auth.dependencies import authenticate, require_admin
from tasks.service import TaskService

# Router-level dependencies apply to every route registered on the router.
# On the admin router, authenticate must stay ahead of require_admin.
router = APIRouter(dependencies=[Depends(authenticate)])
admin_router = APIRouter(prefix="/admin", dependencies=[Depends(authenticate), Depends(require_admin)])


@router.get("/tasks", response_model=list[TaskResponse])
async def list_tasks(request: Request) -> list[TaskResponse]:
    tasks: TaskService = request.app.state.tasks
    return [TaskResponse.from_task(t) for t in await tasks.list_tasks()]


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(request: Request, task_id: str) -> TaskResponse:
    tasks: TaskService = request.app.state.tasks
    return TaskResponse.from_task(await tasks.get_task(task_id))


@admin_router.post("/tasks", response_model=TaskResponse, status_code=201)
async def create_task(request: Request, body: TaskCreate) -> TaskResponse:
    tasks: TaskService = request.app.state.tasks
    created = await tasks.create_task(body.to_domain())
    return TaskResponse.from_task(created)


@admin_router.put("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(request: Request, task_id: str, body: TaskCreate) -> TaskResponse:
    tasks: TaskService = request.app.state.tasks
    updated = await tasks.update_task(task_id, body.to_domain())
    return TaskResponse.from_task(updated)


@admin_router.delete("/tasks/{task_id}", response_model=MessageResponse)
async def delete_task(request: Request, task_id: str) -> MessageResponse:
    tasks: TaskService = request.app.state.tasks
    await tasks.delete_task(task_id)
    return MessageResponse(message="deleted successfully")
