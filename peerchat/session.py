"""The two I/O loops that run over an established Session."""
import logging
import queue
import socket
import threading

from peerchat import framing
from peerchat.console import LinePump
from peerchat.shutdown import Reason

log = logging.getLogger(__name__)


class DuplexSession:
    """Reader and writer threads sharing one socket, split by direction.

    The reader only receives, the writer only sends. Closing happens once, on
    the calling thread, after both loops have been joined.
    """

    def __init__(self, session, shutdown, console, poll_interval=0.2):
        self.session = session
        self.shutdown = shutdown
        self.console = console
        self.poll_interval = poll_interval
        self.frames_in = 0
        self.frames_out = 0

    def run(self):
        pump = LinePump(self.console).start()
        reader = threading.Thread(target=self.read_loop, name="reader", daemon=True)
        writer = threading.Thread(target=self.write_loop, args=(pump,), name="writer", daemon=True)
        reader.start()
        writer.start()

        # polled so a pending Ctrl-C is picked up on this thread
        while not self.shutdown.wait(self.poll_interval):
            pass
        self._unblock()
        reader.join()
        writer.join()
        self.session.close()
        log.debug("session with %s done: %d in, %d out", self.session.peer, self.frames_in, self.frames_out)
        return self.shutdown.reason

    def _unblock(self):
        # wakes a reader parked in recv(); the descriptor stays open until close()
        try:
            self.session.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # already disconnected

    def _failed(self, what, e):
        if not self.shutdown.stopped:
            log.error("%s: %s", what, e)
        self.shutdown.trigger(Reason.IO_ERROR)

    def read_loop(self):
        try:
            self._read_frames()
        finally:
            # the reader never exits while the session is still meant to run
            self.shutdown.trigger(Reason.IO_ERROR)

    def _read_frames(self):
        sock = self.session.sock
        while not self.shutdown.stopped:
            try:
                text = framing.decode(sock)
            except ConnectionResetError:
                text = None
            except (framing.FrameError, OSError) as e:
                self._failed(f"receive from {self.session.peer} failed", e)
                return
            if text is None:
                if self.shutdown.trigger(Reason.PEER_CLOSED):
                    log.info("Connection closed by peer.")
                return
            self.frames_in += 1
            try:
                self.console.write(text)
            except OSError as e:
                self._failed("console output failed", e)
                return

    def write_loop(self, pump):
        finished = False
        try:
            self._write_lines(pump)
            finished = True
        finally:
            if not finished:
                self.shutdown.trigger(Reason.IO_ERROR)

    def _write_lines(self, pump):
        sock = self.session.sock
        while not self.shutdown.stopped:
            try:
                line = pump.get(timeout=self.poll_interval)
            except queue.Empty:
                continue
            if line is None:
                self._end_input(sock)
                return
            if self.shutdown.stopped:
                return
            try:
                framing.send_frame(sock, line)
            except framing.Unsendable as e:
                log.warning("not sent: %s", e)
                continue
            except (ConnectionResetError, BrokenPipeError):
                if self.shutdown.trigger(Reason.PEER_CLOSED):
                    log.info("Connection closed by peer.")
                return
            except OSError as e:
                self._failed(f"send to {self.session.peer} failed", e)
                return
            self.frames_out += 1

    def _end_input(self, sock):
        # let the peer see end-of-stream; our reader keeps going until it hangs up
        log.info("End of input, waiting for peer to close.")
        try:
            sock.shutdown(socket.SHUT_WR)
        except OSError as e:
            if not self.shutdown.stopped:
                self._failed("half-close failed", e)
