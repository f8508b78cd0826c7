"""Turn an Endpoint and a Role into one connected stream."""
import enum
import logging
import socket
import threading
from dataclasses import dataclass, field

from peerchat.address import Endpoint, Role, describe

log = logging.getLogger(__name__)


class SessionError(Exception):
    pass


class BindError(SessionError):
    pass


class ListenError(SessionError):
    pass


class AcceptError(SessionError):
    pass


class ConnectError(SessionError):
    pass


def _peer_text(family, addr):
    return str(Endpoint(family, addr[0], b"", addr[1]))


@dataclass
class Session:
    sock: socket.socket
    role: Role
    peer: str
    _closed: bool = field(default=False, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def closed(self):
        return self._closed

    def close(self):
        """Close the stream. Returns True for the one call that actually closed it."""
        with self._lock:
            if self._closed:
                return False
            self._closed = True
        self.sock.close()
        log.debug("closed connection to %s", self.peer)
        return True


class ListenerState(enum.Enum):
    AWAITING_PEER = "awaiting peer"
    CONNECTED = "connected"
    CLOSED = "closed"


class Listener:
    """Bound, listening socket that hands out exactly one Session."""

    def __init__(self, endpoint, port):
        target = endpoint.with_port(port)
        try:
            self._sock = socket.socket(endpoint.family, socket.SOCK_STREAM)
        except OSError as e:
            raise BindError(f"cannot create {describe(endpoint.family)} socket: {e}") from e
        try:
            self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            log.info("Binding to %s", target)
            self._sock.bind(target.sockaddr())
        except OSError as e:
            self._sock.close()
            raise BindError(f"cannot bind {target}: {e.strerror or e}") from e
        try:
            self._sock.listen(socket.SOMAXCONN)
        except OSError as e:
            self._sock.close()
            raise ListenError(f"cannot listen on {target}: {e.strerror or e}") from e
        self.family = endpoint.family
        bound = self._sock.getsockname()
        self.port = bound[1]
        self.address = _peer_text(self.family, bound)
        self.state = ListenerState.AWAITING_PEER
        log.info("Listening on %s ...", self.address)

    def accept(self):
        if self.state is not ListenerState.AWAITING_PEER:
            raise AcceptError(f"listener is {self.state.value}, it serves a single peer")
        try:
            conn, addr = self._sock.accept()
        except OSError as e:
            self.close()
            raise AcceptError(f"accept failed: {e.strerror or e}") from e
        # one peer per run: stop taking connections as soon as we have it
        self._sock.close()
        self.state = ListenerState.CONNECTED
        session = Session(conn, Role.LISTENER, _peer_text(self.family, addr))
        log.info("Connection from %s", session.peer)
        return session

    def close(self):
        if self.state is ListenerState.AWAITING_PEER:
            self._sock.close()
            self.state = ListenerState.CLOSED


def dial(endpoint, port):
    target = endpoint.with_port(port)
    try:
        sock = socket.socket(endpoint.family, socket.SOCK_STREAM)
    except OSError as e:
        raise ConnectError(f"cannot create {describe(endpoint.family)} socket: {e}") from e
    log.info("Connecting to %s", target)
    try:
        sock.connect(target.sockaddr())
    except OSError as e:
        sock.close()
        raise ConnectError(f"cannot connect to {target}: {e.strerror or e}") from e
    except KeyboardInterrupt:
        sock.close()
        raise
    log.info("Connected to %s", target)
    return Session(sock, Role.DIALER, str(target))


def establish(endpoint, port, role):
    if role is Role.LISTENER:
        listener = Listener(endpoint, port)
        try:
            return listener.accept()
        finally:
            listener.close()
    if role is Role.DIALER:
        return dial(endpoint, port)
    raise ValueError(f"unknown role {role!r}")
