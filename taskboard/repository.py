"""
Storage for users and tasks.

Repositories receive a SQLAlchemy session per request; nothing is kept in
process memory between requests. Every mutating call is a single
transaction that is either committed as a whole or rolled back.
"""

from __future__ import annotations

import datetime
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from .access import Action, ensure_allowed
from .errors import DuplicateEmail, NotFound, ValidationError
from .models import TASK_PRIORITIES, TASK_STATUSES, Task, User, utcnow

log = logging.getLogger(__name__)

REQUIRED_TASK_FIELDS = ("title", "status", "priority", "due_date")
EDITABLE_TASK_FIELDS = ("title", "description", "status", "priority", "due_date", "assigned_to")
# never taken from caller input
PROTECTED_TASK_FIELDS = ("id", "assigned_by", "created_at", "updated_at")
SORT_ORDERS = ("asc", "desc")


class UserRepository:
    def __init__(self, db: DBSession):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def add(self, name: str, email: str, password_hash: str) -> User:
        now = utcnow()
        user = User(name=name, email=email, password_hash=password_hash, created_at=now, updated_at=now)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateEmail()
        self.db.refresh(user)
        return user


class TaskRepository(ABC):
    """Task storage with ownership checks applied on every access."""

    @abstractmethod
    def create(self, fields: dict[str, Any], owner_id: str) -> Task:
        """Store a new task whose creator is ``owner_id``."""

    @abstractmethod
    def list(self, caller_id: str, status: str | None = None, sort: str | None = None) -> list[Task]:
        """Tasks the caller created or is assigned to."""

    @abstractmethod
    def get(self, task_id: str, caller_id: str) -> Task:
        """Fetch one task the caller may read."""

    @abstractmethod
    def update(self, task_id: str, patch: dict[str, Any], caller_id: str) -> Task:
        """Shallow-merge ``patch`` over a task the caller may update."""

    @abstractmethod
    def delete(self, task_id: str, caller_id: str) -> None:
        """Remove a task; only its creator may do this."""

    def summary(self, caller_id: str) -> dict[str, Any]:
        tasks = self.list(caller_id)
        now = utcnow()
        total = len(tasks)
        completed = sum(1 for t in tasks if t.status == "completed")
        pending = sum(1 for t in tasks if t.status == "pending")
        upcoming = sum(1 for t in tasks if t.due_date > now and t.status != "completed")
        return {
            "total_tasks": total,
            "completed_tasks": completed,
            "pending_tasks": pending,
            "upcoming_tasks": upcoming,
            "completion_rate": round(completed / total * 100) if total else 0,
        }


def _clean(name: str, value: Any) -> Any:
    if name == "assigned_to" and value == "":
        return None
    return value


def _check_value(name: str, value: Any) -> None:
    if name in REQUIRED_TASK_FIELDS and (value is None or value == ""):
        raise ValidationError(f"Field '{name}' is required")
    if name == "status" and value not in TASK_STATUSES:
        raise ValidationError(f"Invalid status '{value}'")
    if name == "priority" and value not in TASK_PRIORITIES:
        raise ValidationError(f"Invalid priority '{value}'")
    if name == "due_date" and not isinstance(value, datetime.datetime):
        raise ValidationError("Field 'due_date' must be a datetime")


class SqlTaskRepository(TaskRepository):
    """SQLAlchemy implementation of the task repository."""

    def __init__(self, db: DBSession):
        self.db = db

    def _find(self, task_id: str, for_update: bool = False) -> Task:
        query = self.db.query(Task).filter(Task.id == task_id)
        if for_update:
            query = query.with_for_update()
        task = query.first()
        if task is None:
            raise NotFound("Task not found")
        return task

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def create(self, fields: dict[str, Any], owner_id: str) -> Task:
        for name in REQUIRED_TASK_FIELDS:
            if name not in fields:
                raise ValidationError("Required fields missing")
        values = {name: _clean(name, fields.get(name)) for name in EDITABLE_TASK_FIELDS}
        for name, value in values.items():
            _check_value(name, value)

        now = utcnow()
        task = Task(**values, assigned_by=owner_id, created_at=now, updated_at=now)
        self.db.add(task)
        self._commit()
        self.db.refresh(task)
        log.info("Task %s created by %s", task.id, owner_id)
        return task

    def list(self, caller_id: str, status: str | None = None, sort: str | None = None) -> list[Task]:
        query = self.db.query(Task).filter(
            or_(Task.assigned_by == caller_id, Task.assigned_to == caller_id)
        )
        if status is not None:
            if status not in TASK_STATUSES:
                raise ValidationError(f"Invalid status '{status}'")
            query = query.filter(Task.status == status)
        if sort is None:
            query = query.order_by(Task.seq.asc())
        elif sort == "asc":
            query = query.order_by(Task.due_date.asc(), Task.seq.asc())
        elif sort == "desc":
            query = query.order_by(Task.due_date.desc(), Task.seq.asc())
        else:
            raise ValidationError(f"Invalid sort order '{sort}'")
        return query.all()

    def get(self, task_id: str, caller_id: str) -> Task:
        task = self._find(task_id)
        ensure_allowed(task, caller_id, Action.READ)
        return task

    def update(self, task_id: str, patch: dict[str, Any], caller_id: str) -> Task:
        task = self._find(task_id, for_update=True)
        ensure_allowed(task, caller_id, Action.UPDATE)

        changes = {k: _clean(k, v) for k, v in patch.items() if k not in PROTECTED_TASK_FIELDS}
        unknown = set(changes) - set(EDITABLE_TASK_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown task fields: {', '.join(sorted(unknown))}")
        for name, value in changes.items():
            _check_value(name, value)

        for name, value in changes.items():
            setattr(task, name, value)

        now = utcnow()
        if now <= task.updated_at:
            now = task.updated_at + datetime.timedelta(microseconds=1)
        task.updated_at = now
        self._commit()
        self.db.refresh(task)
        log.info("Task %s updated by %s (%s)", task.id, caller_id, ", ".join(sorted(changes)) or "touch")
        return task

    def delete(self, task_id: str, caller_id: str) -> None:
        task = self._find(task_id, for_update=True)
        ensure_allowed(task, caller_id, Action.DELETE)
        self.db.delete(task)
        self._commit()
        log.info("Task %s deleted by %s", task_id, caller_id)
