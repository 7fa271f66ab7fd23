import logging
import os
from typing import Any, Callable, Dict, List, Literal, Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)
log_level = os.getenv("LOG_LEVEL", "WARNING")
logger.setLevel(getattr(logging, log_level.upper()))
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, log_level.upper()))
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

EventType = Literal["cost_updated", "subject_analyzed", "suggestion_emitted"]

# Listener receives the full event dict
EventListener = Callable[[Dict[str, Any]], None]


class FheEvent:
    """Factory for creating observability events."""

    @staticmethod
    def cost_updated(name: str, base_cost: int, per_byte_cost: int) -> Dict[str, Any]:
        return {
            "type": "cost_updated",
            "data": {"operation": name, "base_cost": base_cost, "per_byte_cost": per_byte_cost},
        }

    @staticmethod
    def subject_analyzed(subject_id: str, estimated_gas: int) -> Dict[str, Any]:
        return {"type": "subject_analyzed", "data": {"subject_id": subject_id, "estimated_gas": estimated_gas}}

    @staticmethod
    def suggestion_emitted(subject_id: str, suggestion: str) -> Dict[str, Any]:
        return {"type": "suggestion_emitted", "data": {"subject_id": subject_id, "suggestion": suggestion}}


class EventBus:
    """
    Fire-and-forget dispatch of engine events.

    Every event is logged. Listeners registered for the event type (or for all
    events with `subscribe(listener)`) are called in registration order; a
    listener that raises is logged and skipped, never re-raised to the emitter.
    """

    def __init__(self):
        self._listeners: Dict[str, List[EventListener]] = {}
        self._any_listeners: List[EventListener] = []

    def subscribe(self, listener: EventListener, event_type: Optional[EventType] = None) -> None:
        if event_type is None:
            self._any_listeners.append(listener)
        else:
            self._listeners.setdefault(event_type, []).append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        if listener in self._any_listeners:
            self._any_listeners.remove(listener)
        for listeners in self._listeners.values():
            if listener in listeners:
                listeners.remove(listener)

    def emit(self, event: Dict[str, Any]) -> None:
        logger.info(f"{event['type']}: {event['data']}")
        for listener in [*self._listeners.get(event["type"], []), *self._any_listeners]:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Event listener failed for {event['type']}: {e}", exc_info=True)
