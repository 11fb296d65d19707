"""
Scheduled task data model

Tasks are persisted as a JSON array with camelCase keys (nextRunAt,
intervalSeconds, lastResultSummary, ...). Timestamps are epoch seconds.
"""

import uuid
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class TaskKind(str, Enum):
    COMMAND = 'command'
    AGENT_OBJECTIVE = 'agent-objective'
    FLOW_REFERENCE = 'flow-reference'


class Recurrence(str, Enum):
    ONCE = 'once'
    INTERVAL = 'interval'
    HOURLY = 'hourly'
    DAILY = 'daily'


class TaskStatus(str, Enum):
    ACTIVE = 'active'
    PAUSED = 'paused'
    COMPLETED = 'completed'


# seconds added to the completion time for fixed recurrences
PERIODS = {
    Recurrence.HOURLY.value: 60 * 60,
    Recurrence.DAILY.value: 24 * 60 * 60,
}


def new_task_id() -> str:
    return uuid.uuid4().hex[:9]


class ScheduledTask(BaseModel):
    """A recurring or one-shot unit of work"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True,
                              use_enum_values=True, validate_default=True)

    id: str = Field(default_factory=new_task_id)
    name: str
    kind: TaskKind = TaskKind.COMMAND
    action: str
    recurrence: Recurrence = Recurrence.ONCE
    interval_seconds: Optional[float] = None
    next_run_at: float = 0.0
    last_run_at: Optional[float] = None
    last_result_summary: Optional[str] = None
    status: TaskStatus = TaskStatus.ACTIVE

    @model_validator(mode='after')
    def check_interval(self):
        if self.recurrence == Recurrence.INTERVAL and not (
                self.interval_seconds and self.interval_seconds > 0):
            raise ValueError('interval recurrence needs a positive intervalSeconds')
        return self

    def is_due(self, now: float) -> bool:
        return self.status == TaskStatus.ACTIVE and self.next_run_at <= now

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode='json')
