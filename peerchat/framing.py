"""Wire codec: each frame is a 2-byte big-endian length plus that many UTF-8 bytes."""
import struct

HEADER = struct.Struct("!H")
MAX_PAYLOAD = 0xFFFF


class FrameError(Exception):
    pass


class Unsendable(FrameError):
    """Text that cannot be put in a frame; nothing was written."""


class FrameTooLarge(Unsendable):
    def __init__(self, size):
        super().__init__(f"message is {size} bytes, frames carry at most {MAX_PAYLOAD}")
        self.size = size


class NotEncodable(Unsendable):
    def __init__(self, error):
        super().__init__(f"text cannot be encoded as UTF-8: {error.reason} at position {error.start}")
        self.error = error


class ShortRead(FrameError):
    """The stream ended part way through a length prefix or payload."""

    def __init__(self, wanted, got):
        super().__init__(f"stream ended after {got} of {wanted} bytes")
        self.wanted, self.got = wanted, got


def encode(text):
    try:
        payload = text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise NotEncodable(e) from e
    if len(payload) > MAX_PAYLOAD:
        raise FrameTooLarge(len(payload))
    return HEADER.pack(len(payload)) + payload


def read_exact(sock, count):
    """Read exactly `count` bytes.

    Returns b"" when the stream is already at EOF, raises ShortRead when it
    ends after some but not all of the bytes arrived.
    """
    buf = bytearray()
    while len(buf) < count:
        chunk = sock.recv(count - len(buf))
        if not chunk:
            if not buf:
                return b""
            raise ShortRead(count, len(buf))
        buf += chunk
    return bytes(buf)


def decode(sock):
    """Read one frame; None means the peer closed the connection."""
    header = read_exact(sock, HEADER.size)
    if not header:
        return None
    (length,) = HEADER.unpack(header)
    if length == 0:
        return ""
    payload = read_exact(sock, length)
    if not payload:
        return None
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FrameError(f"payload is not valid UTF-8: {e}") from e


def send_frame(sock, text):
    sock.sendall(encode(text))


def split_frames(buffer):
    """Peel complete frames off `buffer`; returns (payloads, leftover bytes)."""
    frames, offset = [], 0
    while len(buffer) - offset >= HEADER.size:
        (length,) = HEADER.unpack_from(buffer, offset)
        end = offset + HEADER.size + length
        if end > len(buffer):
            break
        frames.append(bytes(buffer[offset + HEADER.size:end]))
        offset = end
    return frames, bytes(buffer[offset:])
