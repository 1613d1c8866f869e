from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Optional

from email_validator import validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import TaskPatch, TaskStatus


def _check_email(v: str) -> str:
    # Syntax check only; the address is stored exactly as sent, so no
    # normalized form is returned.
    validate_email(v, check_deliverability=False)
    return v


Email = Annotated[str, AfterValidator(_check_email)]


def _strip_title(v: Optional[str]) -> str:
    if v is None:
        raise ValueError("title must not be null")
    s = v.strip()
    if not (1 <= len(s) <= 255):
        raise ValueError("title length must be between 1 and 255 characters")
    return s


class _ResponseModel(BaseModel):
    """Responses use camelCase keys and can be built from entity dicts."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# PUBLIC_INTERFACE
class RegisterRequest(BaseModel):
    """
    Schema for creating an account.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"name": "John Doe", "email": "john@example.com", "password": "password123"}
        }
    )

    name: str = Field(..., description="Display name", min_length=1)
    email: Email = Field(..., description="Login email, unique per account")
    password: str = Field(..., description="Password, at least 6 characters", min_length=6)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("name is required")
        return s


# PUBLIC_INTERFACE
class LoginRequest(BaseModel):
    """Schema for opening a session."""

    email: Email = Field(..., description="Login email")
    password: str = Field(..., description="Account password", min_length=1)


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new task. Any status sent by the client is ignored;
    new tasks always start as pending.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Complete project documentation",
                "description": "Write detailed documentation for the API",
            }
        }
    )

    title: str = Field(..., description="Task title", min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, description="Optional detailed description")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..255 length.
        """
        return _strip_title(v)


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for updating an existing task.
    All fields are optional; only provided fields will be updated.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Complete project documentation",
                "description": "Include the deployment section",
                "status": "completed",
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Task title", min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, description="Task description; null clears it")
    status: Optional[TaskStatus] = Field(default=None, description="Task status: pending or completed")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> str:
        """
        If title is provided, strip whitespace and enforce 1..255 length.
        """
        return _strip_title(v)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[TaskStatus]) -> TaskStatus:
        if v is None:
            raise ValueError('Status must be either "pending" or "completed"')
        return v

    def to_patch(self) -> TaskPatch:
        """Return only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)  # type: ignore[return-value]


# PUBLIC_INTERFACE
class UserOut(_ResponseModel):
    """Public view of an account. The password hash is never included."""

    id: int = Field(..., description="Unique identifier of the user")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Login email")
    created_at: datetime = Field(..., description="Registration timestamp")


# PUBLIC_INTERFACE
class AuthResponse(_ResponseModel):
    user: UserOut
    token: str = Field(..., description="Bearer session token")


# PUBLIC_INTERFACE
class TaskOut(_ResponseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Complete project documentation",
                "description": "Write detailed documentation for the API",
                "status": "pending",
                "ownerId": 7,
                "createdAt": "2025-01-25T10:15:30.123456+00:00",
                "updatedAt": "2025-01-26T09:00:00.000001+00:00",
            }
        },
    )

    id: int = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Task title")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    status: TaskStatus = Field(..., description="pending or completed")
    owner_id: int = Field(..., description="Id of the owning user")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# PUBLIC_INTERFACE
class PaginationOut(_ResponseModel):
    page: int = Field(..., description="Requested page (1-indexed)")
    limit: int = Field(..., description="Requested page size")
    total: int = Field(..., description="Total number of tasks matching the query")
    total_pages: int = Field(..., description="Number of pages; 0 when nothing matches")


# PUBLIC_INTERFACE
class TaskListResponse(_ResponseModel):
    """
    Envelope for paginated task list responses.
    """

    tasks: List[TaskOut] = Field(..., description="One page of tasks, newest first")
    pagination: PaginationOut


# PUBLIC_INTERFACE
class MessageResponse(BaseModel):
    message: str
