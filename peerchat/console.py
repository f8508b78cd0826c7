"""Local terminal side of the chat."""
import queue
import sys
import threading


class Console:
    def __init__(self, infile=None, outfile=None):
        self.infile = infile if infile is not None else sys.stdin
        self.outfile = outfile if outfile is not None else sys.stdout

    def readline(self):
        return self.infile.readline()

    def write(self, text):
        self.outfile.write(text)
        self.outfile.flush()


class LinePump:
    """Reads console lines on a daemon thread so the reader of the queue can time out.

    A blocking readline() cannot be cancelled; the thread is left parked in it
    at shutdown and dies with the process.
    """

    def __init__(self, console):
        self._console = console
        self._lines = queue.Queue()
        self._thread = threading.Thread(target=self._run, name="console-input", daemon=True)

    def start(self):
        self._thread.start()
        return self

    def _run(self):
        try:
            while True:
                line = self._console.readline()
                if not line:
                    break
                self._lines.put(line)
        finally:
            self._lines.put(None)

    def get(self, timeout=None):
        """Next line, None at end of input; raises queue.Empty on timeout."""
        return self._lines.get(timeout=timeout)
