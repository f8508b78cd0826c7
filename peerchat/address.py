"""Numeric address parsing: picks the socket family from the literal itself."""
import enum
import socket
from dataclasses import dataclass, replace


class Role(enum.Enum):
    LISTENER = "listener"
    DIALER = "dialer"


class InvalidAddress(ValueError):
    def __init__(self, address):
        super().__init__(f"{address!r} is not an IPv4 or IPv6 address")
        self.address = address


@dataclass(frozen=True)
class Endpoint:
    family: int
    host: str
    packed: bytes
    port: int = 0

    def with_port(self, port):
        if not 0 <= port <= 0xFFFF:
            raise ValueError(f"port {port} out of range 0-65535")
        return replace(self, port=port)

    def sockaddr(self):
        if self.family == socket.AF_INET6:
            return (self.host, self.port, 0, 0)
        return (self.host, self.port)

    def __str__(self):
        if self.family == socket.AF_INET6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


def resolve(address):
    """Turn a dotted-quad or colon-hex literal into an Endpoint.

    Hostnames are rejected; there is no DNS lookup here.
    """
    for family in (socket.AF_INET, socket.AF_INET6):
        try:
            packed = socket.inet_pton(family, address)
        except (OSError, ValueError, TypeError):
            continue
        return Endpoint(family, socket.inet_ntop(family, packed), packed)
    raise InvalidAddress(address)


def describe(family):
    return {socket.AF_INET: "IPv4", socket.AF_INET6: "IPv6"}.get(family, str(family))
