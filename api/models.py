"""
API request and response models for TaskGuard REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
tasks/models.py, which own the internal domain representation. Route handlers
map between the two.

AccountResponse has no password field: the bcrypt hash never leaves the server.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import Account, Role
from tasks.models import Task

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/register.

    role is accepted so older clients that send it are not rejected, but the
    server ignores it -- the bootstrap rule decides the role.

    No whitespace stripping here: it would alter passwords. AccountService
    strips the username itself.
    """

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=72)
    role: Optional[str] = Field(default=None, max_length=30)


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


class TaskCreate(BaseModel):
    """Request body for POST /api/v1/admin/tasks and PUT /api/v1/admin/tasks/{id}."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1, max_length=5000)
    due_date: datetime
    status: str = Field(min_length=1, max_length=50)

    def to_domain(self) -> Task:
        return Task(
            title=self.title,
            description=self.description,
            due_date=self.due_date.isoformat(),
            status=self.status,
        )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class AccountResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    role: Role
    created_at: str
    updated_at: str

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            id=account.id,
            username=account.username,
            role=account.role,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class LoginResponse(BaseModel):
    """Response for POST /api/v1/login. Send access_token as a Bearer header."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    account: AccountResponse


class MeResponse(BaseModel):
    """Identity published by the authentication stage for the current request."""

    model_config = ConfigDict(frozen=True)

    account_id: str
    username: str
    role: Role


class TaskResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    due_date: str
    status: str

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            due_date=task.due_date,
            status=task.status,
        )


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class ErrorResponse(BaseModel):
    """Error envelope returned on 4xx/5xx responses: {"error": "<message>"}."""

    model_config = ConfigDict(frozen=True)

    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
