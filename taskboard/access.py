"""Per-task access rules.

| action | allowed when                          |
|--------|---------------------------------------|
| read   | caller is the creator or the assignee |
| update | caller is the creator or the assignee |
| delete | caller is the creator                 |

Creating a task needs no rule: any authenticated caller may do it and
becomes the creator.
"""

import enum
import logging

from .errors import Forbidden
from .models import Task

log = logging.getLogger(__name__)


class Action(str, enum.Enum):
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


def is_creator(task: Task, caller_id: str) -> bool:
    return task.assigned_by == caller_id


def is_assignee(task: Task, caller_id: str) -> bool:
    # an unassigned task has no assignee, only its creator gets in
    return task.assigned_to is not None and task.assigned_to == caller_id


def is_allowed(task: Task, caller_id: str, action: Action) -> bool:
    if action is Action.DELETE:
        return is_creator(task, caller_id)
    return is_creator(task, caller_id) or is_assignee(task, caller_id)


def ensure_allowed(task: Task, caller_id: str, action: Action) -> None:
    if not is_allowed(task, caller_id, action):
        log.warning("Denied %s on task %s for user %s", action.value, task.id, caller_id)
        raise Forbidden()
