"""
AOS task scheduler
"""

from .models import ScheduledTask, TaskKind, Recurrence, TaskStatus
from .scheduler import TaskScheduler, TASKS_FILE

__all__ = [
    'ScheduledTask', 'TaskKind', 'Recurrence', 'TaskStatus',
    'TaskScheduler', 'TASKS_FILE',
]
