"""
System event bus

Best-effort change notification for observers of the core (UI, agent loop).
Handlers run synchronously in the emitter's thread; a failing handler is
logged and never affects the emitter or other handlers.
"""

import time
import logging
import threading
from collections import defaultdict, deque
from typing import Any, Callable, Dict, List

logger = logging.getLogger('AOS.events')

FILE_CHANGE = 'file-change'
SHELL_OUTPUT = 'shell-output'
TASK_RUN = 'task-run'
TASK_COMPLETE = 'task-complete'

WILDCARD = '*'


class EventBus:
    """Event bus for core state change notifications"""

    def __init__(self, history_size: int = 1000):
        self.subscribers: Dict[str, List[Callable]] = defaultdict(list)
        self.event_history = deque(maxlen=history_size)
        self.lock = threading.RLock()

    def subscribe(self, event_name: str, handler: Callable) -> Callable[[], None]:
        """Subscribe to an event; '*' receives every event.

        Returns a callable that removes the subscription.
        """
        with self.lock:
            self.subscribers[event_name].append(handler)

        def unsubscribe():
            self.unsubscribe(event_name, handler)

        return unsubscribe

    def unsubscribe(self, event_name: str, handler: Callable):
        """Remove a handler from an event"""
        with self.lock:
            handlers = self.subscribers.get(event_name)
            if handlers and handler in handlers:
                handlers.remove(handler)

    def emit(self, event_name: str, payload: Any = None):
        """Emit event to subscribers"""
        event = {
            'type': event_name,
            'payload': payload,
            'timestamp': time.time()
        }

        with self.lock:
            self.event_history.append(event)
            handlers = list(self.subscribers.get(event_name, []))
            handlers += self.subscribers.get(WILDCARD, [])

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event_name}: {e}")

    def get_event_history(self, count: int = 100) -> List[Dict[str, Any]]:
        """Get recent event history"""
        with self.lock:
            return list(self.event_history)[-count:]
