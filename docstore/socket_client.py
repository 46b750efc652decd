from __future__ import annotations
import inspect
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import socketio

from shared.log import get_logger, log_event
from shared.utils import basic_token, bearer_header, set_header
from .config import ConnectionConfig
from .events import (
    ConnectError,
    Connected,
    ConnectionEvent,
    Disconnected,
    DocumentEvent,
    DocumentNotification,
    EventHandler,
    EventName,
    Payload,
    event_name,
    parse_event,
)

logger = get_logger(__name__)


RequestDecorator = Callable[[Dict[str, str]], None]
ClientFactory = Callable[..., Any]


class SocketIOClient:
    """
    Socket.IO connection to the document store.

    Every call to ``connect()`` is one connection attempt on a brand new
    ``socketio.AsyncClient`` with reconnection disabled, so no session is ever
    reused and a dropped connection stays dropped. Request decorators run
    against a fresh header mapping right before each handshake; the first one
    is always ``authorize``, which derives the Bearer token from the current
    credentials.
    """

    def __init__(
        self,
        api_endpoint: str,
        app_cred_user: str,
        app_cred_password: str,
        *,
        request_decorators: Sequence[RequestDecorator] = (),
        socketio_path: str = "socket.io",
        transports: Optional[List[str]] = None,
        wait_timeout: float = 10.0,
        verbose: bool = False,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.api_endpoint = api_endpoint
        self.app_cred_user = app_cred_user
        self.app_cred_password = app_cred_password
        self.request_decorators: List[RequestDecorator] = [self.authorize, *request_decorators]
        self.socketio_path = socketio_path
        self.transports = transports
        self.wait_timeout = wait_timeout
        self.verbose = verbose
        self.client_factory: ClientFactory = client_factory or socketio.AsyncClient
        self.handlers: Dict[str, List[EventHandler]] = {}
        self.socket: Optional[Any] = None
        self.attempts = 0

    def auth_token(self) -> str:
        return basic_token(self.app_cred_user, self.app_cred_password)

    def authorize(self, headers: Dict[str, str]) -> None:
        """Request decorator that sets the handshake's authorization header."""
        set_header(headers, "authorization", bearer_header(self.app_cred_user, self.app_cred_password))

    def on(self, event: Union[EventName, str], handler: EventHandler) -> "SocketIOClient":
        """Register an observer; returns self so registrations can be chained."""
        name = event_name(parse_event(event_name(event)))
        self.handlers.setdefault(name, []).append(handler)
        return self

    def handshake_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        for decorate in self.request_decorators:
            decorate(headers)
        return headers

    def init(self) -> Any:
        """Build a new client handle with the observers wired in."""
        sio = self.client_factory(
            reconnection=False,
            logger=self.verbose,
            engineio_logger=self.verbose,
        )
        sio.on(ConnectionEvent.CONNECT.value, self._on_connect)
        sio.on(ConnectionEvent.ERROR.value, self._on_connect_error)
        sio.on(ConnectionEvent.DISCONNECT.value, self._on_disconnect)
        for doc_event in DocumentEvent:
            sio.on(doc_event.value, self._document_handler(doc_event))
        return sio

    async def connect(self) -> None:
        """
        Make one connection attempt.

        Raises socketio.exceptions.ConnectionError if the handshake fails, after
        the error observers have run. A still-connected handle from an earlier
        attempt is disconnected first.
        """
        if self.socket is not None and getattr(self.socket, "connected", False):
            logger.info("Closing previous connection before reconnecting", extra={"endpoint": self.api_endpoint})
            await self.socket.disconnect()
        self.socket = self.init()
        self.attempts += 1
        headers = self.handshake_headers()
        logger.info(f"Connecting (attempt {self.attempts})", extra={"endpoint": self.api_endpoint})
        await self.socket.connect(
            self.api_endpoint,
            headers=headers,
            transports=self.transports,
            socketio_path=self.socketio_path,
            wait_timeout=self.wait_timeout,
        )

    async def wait(self) -> None:
        """Block until the current connection ends."""
        if self.socket is not None:
            await self.socket.wait()

    async def disconnect(self) -> None:
        if self.socket is not None:
            await self.socket.disconnect()

    @property
    def sid(self) -> Optional[str]:
        return getattr(self.socket, "sid", None)

    # ========================================
    #           EVENT DISPATCH
    # ========================================

    async def _dispatch(self, event: EventName, payload: Payload) -> None:
        for handler in list(self.handlers.get(event.value, [])):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Observer for %s failed", event.value)

    async def _on_connect(self) -> None:
        log_event(logger, "debug", "Handshake accepted", event="connect", sid=self.sid)
        await self._dispatch(ConnectionEvent.CONNECT, Connected(sid=self.sid))

    async def _on_connect_error(self, data: Any = None) -> None:
        await self._dispatch(ConnectionEvent.ERROR, ConnectError(detail=data))

    async def _on_disconnect(self, reason: Any = None) -> None:
        await self._dispatch(
            ConnectionEvent.DISCONNECT,
            Disconnected(reason=str(reason) if reason is not None else None),
        )

    def _document_handler(self, doc_event: DocumentEvent) -> Callable[..., Any]:
        async def handler(data: Any = None) -> None:
            if not isinstance(data, dict):
                data = {"value": data}
            await self._dispatch(doc_event, DocumentNotification(event=doc_event, data=data))
        return handler


def create_client(config: ConnectionConfig, **kwargs: Any) -> SocketIOClient:
    """Build a client from a loaded ConnectionConfig."""
    creds = config.app_credentials
    return SocketIOClient(config.api_endpoint, creds.user, creds.password, **kwargs)
