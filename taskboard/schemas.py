"""Request and response bodies. Field names on the wire follow the web client."""

import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _normalize_due_date(value: Any) -> Any:
    if isinstance(value, str) and len(value) == 10:
        # plain "YYYY-MM-DD"
        value = f"{value}T00:00:00"
    return value


def _to_naive_utc(value: Optional[datetime.datetime]) -> Optional[datetime.datetime]:
    if value is not None and value.tzinfo is not None:
        value = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(serialization_alias="_id")
    name: str
    email: str
    created_at: datetime.datetime = Field(serialization_alias="createdAt")
    updated_at: datetime.datetime = Field(serialization_alias="updatedAt")


class AuthResponse(BaseModel):
    user: UserOut
    token: str


class MeResponse(BaseModel):
    user: UserOut


class TaskIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[datetime.datetime] = Field(None, alias="dueDate")
    assigned_to: Optional[str] = Field(None, alias="assignedTo")

    @field_validator("due_date", mode="before")
    @classmethod
    def _parse_due_date(cls, value):
        return _normalize_due_date(value)

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, value):
        return _to_naive_utc(value)


class TaskCreate(TaskIn):
    pass


class TaskUpdate(TaskIn):
    # Accepted so a client can send back a whole task; the repository
    # discards them.
    id: Any = Field(None, alias="_id")
    assigned_by: Any = Field(None, alias="assignedBy")
    created_at: Any = Field(None, alias="createdAt")
    updated_at: Any = Field(None, alias="updatedAt")


class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(serialization_alias="_id")
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    due_date: datetime.datetime = Field(serialization_alias="dueDate")
    assigned_to: Optional[str] = Field(None, serialization_alias="assignedTo")
    assigned_by: str = Field(serialization_alias="assignedBy")
    created_at: datetime.datetime = Field(serialization_alias="createdAt")
    updated_at: datetime.datetime = Field(serialization_alias="updatedAt")


class TaskSummary(BaseModel):
    total_tasks: int = Field(serialization_alias="totalTasks")
    completed_tasks: int = Field(serialization_alias="completedTasks")
    pending_tasks: int = Field(serialization_alias="pendingTasks")
    upcoming_tasks: int = Field(serialization_alias="upcomingTasks")
    completion_rate: int = Field(serialization_alias="completionRate")


class MessageResponse(BaseModel):
    message: str
