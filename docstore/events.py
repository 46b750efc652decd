from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union


class ConnectionEvent(str, Enum):
    """Lifecycle events of a single socket connection."""
    CONNECT = "connect"
    ERROR = "connect_error"
    DISCONNECT = "disconnect"


class DocumentEvent(str, Enum):
    """Notifications pushed by the document store over the socket."""
    DOCUMENT_SENT = "document_sent"
    DOCUMENT_RECEIVED = "document_received"
    TRANSFER_ACKNOWLEDGEMENT = "transfer_acknowledgement"


@dataclass
class Connected:
    sid: Optional[str] = None


@dataclass
class ConnectError:
    detail: Any = None


@dataclass
class Disconnected:
    reason: Optional[str] = None


@dataclass
class DocumentNotification:
    event: DocumentEvent
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def document(self) -> Optional[str]:
        doc = self.data.get("document")
        return doc if isinstance(doc, str) else None


EventName = Union[ConnectionEvent, DocumentEvent]
Payload = Union[Connected, ConnectError, Disconnected, DocumentNotification]
EventHandler = Callable[[Any], Union[None, Awaitable[None]]]


def event_name(event: Union[EventName, str]) -> str:
    if isinstance(event, Enum):
        return event.value
    return event


def parse_event(name: str) -> EventName:
    """Resolve a Socket.IO event name to its variant; ValueError if unknown."""
    for enum_cls in (ConnectionEvent, DocumentEvent):
        try:
            return enum_cls(name)
        except ValueError:
            continue
    raise ValueError(f"Unknown event: {name}")
