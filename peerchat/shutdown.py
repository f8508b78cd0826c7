"""One-way, fire-once stop signal shared by the reader, the writer and main."""
import enum
import logging
import signal
import threading

log = logging.getLogger(__name__)


class Reason(enum.Enum):
    INTERRUPTED = "interrupted"
    PEER_CLOSED = "peer closed the connection"
    IO_ERROR = "I/O error"

    @property
    def ok(self):
        return self is not Reason.IO_ERROR


class ShutdownController:
    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._interrupted = False
        self.reason = None

    @property
    def stopped(self):
        return self._event.is_set() or self._interrupted

    def trigger(self, reason):
        """Move to Stopped. Only the first call wins; it alone returns True."""
        with self._lock:
            if self._event.is_set():
                return False
            self.reason = reason
            self._event.set()
        log.debug("shutdown requested: %s", reason.value)
        return True

    def interrupt(self):
        """Record a local interrupt. Takes no locks, so it is safe from a signal handler.

        The next wait() turns it into trigger(Reason.INTERRUPTED).
        """
        self._interrupted = True

    def wait(self, timeout=None):
        """Block until stopped. Pending interrupts are only seen between waits, so poll with a timeout."""
        if self._interrupted:
            self.trigger(Reason.INTERRUPTED)
        done = self._event.wait(timeout)
        if not done and self._interrupted:
            self.trigger(Reason.INTERRUPTED)
            done = True
        return done


def install_signal_handlers(controller):
    """Route SIGINT (and SIGTSTP where it exists) to the controller.

    Must run on the main thread. Returns {signum: previous handler}.
    """
    def handler(signum, frame):
        controller.interrupt()

    previous = {}
    for name in ("SIGINT", "SIGTSTP"):
        signum = getattr(signal, name, None)
        if signum is not None:
            previous[signum] = signal.signal(signum, handler)
    return previous


def restore_signal_handlers(previous):
    for signum, handler in previous.items():
        signal.signal(signum, handler)
