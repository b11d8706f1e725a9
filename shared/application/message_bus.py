"""
Message Bus

Routes commands to their single handler and domain events to any number
of subscribers. Apps register their handlers in ``AppConfig.ready()``.
"""

from typing import Any, Callable, Dict, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class MessageBus:
    """
    Commands: one handler per command type (1:1), errors propagate.
    Events: many handlers per event type (1:N), errors are logged per handler.
    """

    def __init__(self):
        self._event_handlers: Dict[Type[DomainEvent], List[Callable]] = {}
        self._command_handlers: Dict[Type, Callable] = {}

    def register_event_handler(
        self,
        event_type: Type[DomainEvent],
        handler: Callable[[DomainEvent], None]
    ):
        handlers = self._event_handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)
            logger.debug("Registered event handler %s for %s", handler.__name__, event_type.__name__)

    def register_command_handler(
        self,
        command_type: Type,
        handler: Callable[[Any], Any]
    ):
        """Re-registering the same handler is a no-op; a different one is an error"""
        existing = self._command_handlers.get(command_type)
        if existing is not None and existing != handler:
            raise ValueError(
                f"Handler for {command_type.__name__} is already registered. "
                "Commands can have only one handler."
            )
        self._command_handlers[command_type] = handler
        logger.debug("Registered command handler for %s", command_type.__name__)

    def handle_command(self, command: Any) -> Any:
        command_type = type(command)
        handler = self._command_handlers.get(command_type)

        if not handler:
            raise ValueError(f"No handler registered for command {command_type.__name__}")

        logger.info("Handling command: %s", command_type.__name__)
        try:
            return handler(command)
        except Exception as e:
            logger.warning("Command %s failed: %s", command_type.__name__, e)
            raise

    def publish_events(self, events: List[DomainEvent]):
        """
        Deliver events to every subscriber

        A failing subscriber is logged and does not stop the others:
        the state change behind the event is already committed.
        """
        for event in events:
            event_type = type(event)
            handlers = self._event_handlers.get(event_type, [])

            if not handlers:
                logger.debug("No handlers registered for event %s", event_type.__name__)
                continue

            logger.info("Publishing event: %s (ID: %s) %s", event.event_type, event.event_id, event.payload())

            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        "Error in event handler %s for event %s",
                        handler.__name__, event_type.__name__,
                    )


message_bus = MessageBus()
