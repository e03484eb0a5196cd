import datetime
import uuid
from typing import Optional
from sqlalchemy import ForeignKey, Integer, String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base

TASK_STATUSES = ("todo", "in-progress", "completed", "pending")
TASK_PRIORITIES = ("low", "medium", "high")


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime.datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    tasks: Mapped[list["Task"]] = relationship(back_populates="creator", foreign_keys="Task.assigned_by")


class Task(Base):
    __tablename__ = "tasks"

    # insertion order
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    priority: Mapped[str] = mapped_column(String(10), nullable=False)
    due_date: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False)
    assigned_by: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    assigned_to: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, index=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    creator: Mapped["User"] = relationship(back_populates="tasks", foreign_keys=[assigned_by])
