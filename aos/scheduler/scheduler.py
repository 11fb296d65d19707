"""
Task scheduler for AOS

Runs due tasks on a fixed tick. The task list lives inside the VFS it
operates on and is rewritten after every mutation.
"""

import json
import time
import logging
import threading
import posixpath
from typing import Callable, List, Optional

from pydantic import ValidationError

from ..capabilities import ObjectiveExecutor
from ..events import EventBus, TASK_COMPLETE, TASK_RUN
from ..exceptions import (
    AOSError, FileSystemError, SchedulerError, SchedulerTaskError, TaskNotFound
)
from ..vfs import VirtualFileSystem
from .models import PERIODS, Recurrence, ScheduledTask, TaskKind, TaskStatus

logger = logging.getLogger('AOS.scheduler')

TASKS_FILE = '/workspace/system/schedule.json'


class TaskScheduler:
    """Fixed-tick scheduler for shell commands and agent objectives"""

    def __init__(self, vfs: VirtualFileSystem, shell, executor: Optional[ObjectiveExecutor] = None,
                 event_bus: Optional[EventBus] = None, tasks_file: str = TASKS_FILE,
                 tick_seconds: float = 1.0, summary_length: int = 100,
                 clock: Callable[[], float] = time.time):
        self.vfs = vfs
        self.shell = shell
        self.executor = executor
        self.event_bus = event_bus
        self.tasks_file = tasks_file
        self.tick_seconds = tick_seconds
        self.summary_length = summary_length
        self.clock = clock

        self.tasks: List[ScheduledTask] = []
        self.lock = threading.RLock()
        self.thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

        self._load_tasks()

    def _load_tasks(self):
        """Load the task list.

        Records that fail validation are skipped; if anything was skipped
        the original file is copied to '<tasks_file>.corrupt' before the
        next save can overwrite it.
        """
        try:
            if not self.vfs.exists(self.tasks_file):
                self.vfs.mkdir(posixpath.dirname(self.tasks_file))
                return
            raw = self.vfs.read_text(self.tasks_file)
        except FileSystemError as e:
            logger.error(f"Cannot read task file {self.tasks_file}: {e}")
            return

        try:
            records = json.loads(raw)
            if not isinstance(records, list):
                raise ValueError('task file must hold a JSON array')
        except ValueError as e:
            logger.error(f"Scheduler load error, starting empty: {e}")
            self._backup_task_file(raw)
            return

        skipped = 0
        for index, record in enumerate(records):
            try:
                self.tasks.append(ScheduledTask.model_validate(record))
            except ValidationError as e:
                skipped += 1
                logger.error(f"Skipping invalid task record {index}: {e}")

        if skipped:
            self._backup_task_file(raw)
        logger.info(f"Loaded {len(self.tasks)} scheduled tasks")

    def _backup_task_file(self, raw: str):
        backup = f"{self.tasks_file}.corrupt"
        try:
            self.vfs.write_file(backup, raw)
            logger.warning(f"Saved unreadable task data as {backup}")
        except FileSystemError as e:
            logger.error(f"Could not back up task file: {e}")

    def _save_tasks(self):
        data = json.dumps([task.to_record() for task in self.tasks], indent=2)
        try:
            self.vfs.write_file(self.tasks_file, data)
        except FileSystemError as e:
            raise SchedulerError(f"Cannot save tasks to {self.tasks_file}: {e}") from e

    def _emit(self, event: str, payload: dict):
        if self.event_bus:
            self.event_bus.emit(event, payload)

    # Task management

    def add_task(self, name: str, action: str, kind: str = TaskKind.COMMAND.value,
                 recurrence: str = Recurrence.ONCE.value,
                 interval_seconds: Optional[float] = None,
                 next_run_at: Optional[float] = None) -> ScheduledTask:
        """Create an active task; it first runs at next_run_at (default now)"""
        try:
            task = ScheduledTask(
                name=name,
                action=action,
                kind=kind,
                recurrence=recurrence,
                interval_seconds=interval_seconds,
                next_run_at=self.clock() if next_run_at is None else next_run_at,
            )
        except ValidationError as e:
            raise SchedulerError(f"Invalid task '{name}': {e}") from e

        with self.lock:
            self.tasks.append(task)
            self._save_tasks()
        logger.info(f"Task '{name}' scheduled as {task.id}")
        return task

    def remove_task(self, task_id: str) -> bool:
        with self.lock:
            remaining = [t for t in self.tasks if t.id != task_id]
            if len(remaining) == len(self.tasks):
                return False
            self.tasks = remaining
            self._save_tasks()
        return True

    def get_task(self, task_id: str) -> ScheduledTask:
        with self.lock:
            for task in self.tasks:
                if task.id == task_id:
                    return task
        raise TaskNotFound(f"No such task: {task_id}")

    def list_tasks(self) -> List[ScheduledTask]:
        with self.lock:
            return list(self.tasks)

    def pause_task(self, task_id: str) -> ScheduledTask:
        return self._set_status(task_id, TaskStatus.PAUSED.value)

    def resume_task(self, task_id: str) -> ScheduledTask:
        return self._set_status(task_id, TaskStatus.ACTIVE.value)

    def _set_status(self, task_id: str, status: str) -> ScheduledTask:
        with self.lock:
            task = self.get_task(task_id)
            if task.status == TaskStatus.COMPLETED:
                raise SchedulerError(f"Task {task_id} has already completed")
            task.status = status
            self._save_tasks()
        return task

    # Execution

    def tick(self, now: Optional[float] = None) -> int:
        """Run every due task, one after another. Returns how many ran."""
        now = self.clock() if now is None else now
        with self.lock:
            due = [task for task in self.tasks if task.is_due(now)]
            for task in due:
                self._execute_task(task)
        return len(due)

    def _run(self, task: ScheduledTask) -> str:
        if task.kind == TaskKind.COMMAND:
            result = self.shell.execute(task.action)
            return 'Success' if result.ok else f"Failed: {result.stderr}"

        if self.executor is None:
            raise SchedulerTaskError(f"no objective executor for {task.kind} task")
        outcome = self.executor.execute(task.action, task.kind)
        return outcome.summary() if outcome.ok else f"Failed: {outcome.message}"

    def summarize(self, output: str) -> str:
        if len(output) > self.summary_length:
            return output[:self.summary_length] + '...'
        return output

    def _execute_task(self, task: ScheduledTask):
        self._emit(TASK_RUN, {'taskId': task.id, 'name': task.name})
        logger.info(f"Running task: {task.name}")

        try:
            output = self._run(task)
        except Exception as e:
            logger.error(f"Task {task.id} ({task.name}) failed: {e}")
            output = f"Error: {e}"

        now = self.clock()
        task.last_run_at = now
        task.last_result_summary = self.summarize(output)

        if task.recurrence == Recurrence.ONCE:
            task.status = TaskStatus.COMPLETED.value
        elif task.recurrence == Recurrence.INTERVAL:
            task.next_run_at = now + task.interval_seconds
        else:
            task.next_run_at = now + PERIODS[task.recurrence]

        try:
            self._save_tasks()
        except SchedulerError as e:
            logger.error(str(e))
        self._emit(TASK_COMPLETE, {'taskId': task.id, 'result': output})

    # Background thread

    @property
    def running(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def start(self):
        """Start ticking in a daemon thread"""
        if self.running:
            return
        self._stop_event.clear()
        self.thread = threading.Thread(target=self._scheduler_loop,
                                       name='aos-scheduler', daemon=True)
        self.thread.start()
        logger.info("Scheduler started")

    def stop(self):
        """Stop the scheduler thread"""
        self._stop_event.set()
        if self.thread:
            self.thread.join(timeout=max(2.0, self.tick_seconds * 2))
            self.thread = None
        logger.info("Scheduler stopped")

    def _scheduler_loop(self):
        while not self._stop_event.wait(self.tick_seconds):
            try:
                self.tick()
            except AOSError as e:
                logger.error(f"Scheduler tick failed: {e}")
