import socket
import threading

import pytest


@pytest.fixture
def pair():
    a, b = socket.socketpair()
    yield a, b
    a.close()
    b.close()


class ChunkedStream:
    """recv() hands back at most `step` bytes at a time, like a slow network."""

    def __init__(self, data, step=1):
        self.data = bytes(data)
        self.step = step

    def recv(self, n):
        chunk, self.data = self.data[:min(n, self.step)], self.data[min(n, self.step):]
        return chunk


@pytest.fixture
def chunked():
    return ChunkedStream


class HeldInput:
    """A terminal nobody types into: readline() blocks until released."""

    def __init__(self):
        self.released = threading.Event()

    def readline(self):
        self.released.wait()
        return ""


@pytest.fixture
def held():
    h = HeldInput()
    yield h
    h.released.set()
