"""
tasks/models.py -- Domain dataclass for the protected task resource.

Pure data container with zero logic. Persistence lives in tasks/store.py,
timeout-scoped orchestration in tasks/service.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Task:
    """A unit of work tracked by the API.

    due_date is an ISO 8601 string. status is free text ("pending",
    "in_progress", "done" ...); the API only requires it to be non-empty.

    id is None before the record is written to the database.
    """

    title: str
    description: str
    due_date: str
    status: str
    id: Optional[str] = None
