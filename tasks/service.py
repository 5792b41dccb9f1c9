"""
tasks/service.py -- Task CRUD use cases.

Thin pass-through over TaskStore. Each call runs inside its own bounded scope
(core/scope.py) and surfaces a missing id as TaskNotFound.
"""

import logging

from core.errors import TaskNotFound
from core.scope import bounded_scope
from tasks.models import Task
from tasks.store import TaskStore

logger = logging.getLogger("taskguard.tasks")


class TaskService:
    def __init__(self, store: TaskStore, timeout: float) -> None:
        self._store = store
        self.timeout = timeout

    async def list_tasks(self) -> list[Task]:
        async with bounded_scope(self.timeout) as scope:
            return await scope.run(self._store.list_all, scope)

    async def get_task(self, task_id: str) -> Task:
        async with bounded_scope(self.timeout) as scope:
            task = await scope.run(self._store.get, scope, task_id)
        if task is None:
            raise TaskNotFound()
        return task

    async def create_task(self, task: Task) -> Task:
        async with bounded_scope(self.timeout) as scope:
            created = await scope.run(self._store.insert, scope, task)
        logger.info("Task %s created", created.id)
        return created

    async def update_task(self, task_id: str, task: Task) -> Task:
        async with bounded_scope(self.timeout) as scope:
            updated = await scope.run(self._store.update, scope, task_id, task)
        if updated is None:
            raise TaskNotFound()
        return updated

    async def delete_task(self, task_id: str) -> None:
        async with bounded_scope(self.timeout) as scope:
            deleted = await scope.run(self._store.delete, scope, task_id)
        if not deleted:
            raise TaskNotFound()
        logger.info("Task %s deleted", task_id)
