"""One-to-one TCP chat with a length-prefixed UTF-8 wire format."""
from peerchat.address import Endpoint, InvalidAddress, Role, resolve
from peerchat.establish import (AcceptError, BindError, ConnectError, ListenError, Listener, Session,
                                SessionError, dial, establish)
from peerchat.framing import FrameError, FrameTooLarge, NotEncodable, ShortRead, Unsendable, decode, encode
from peerchat.session import DuplexSession
from peerchat.shutdown import Reason, ShutdownController

__version__ = "0.1.0"
