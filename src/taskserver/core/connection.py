"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted client socket for its whole (short) life:

    accept() ──► Connection ──► read_request() ──► send_response() ──► close()
                                 one recv() of       sendall() of
                                 buffer_size bytes   head + body

=============================================================================
ONE READ, NOT A FULL REQUEST
=============================================================================

TCP is a byte stream: a single recv() may return part of what the client
sent. A full HTTP server would keep reading until it has the headers and
Content-Length bytes of body. This one reads exactly once, up to
buffer_size bytes, and works with whatever arrived:

    Client sends 1500 bytes, buffer_size = 1024
        recv() → first ≤1024 bytes     ◄── all the server ever sees
        rest   → drained and discarded on close

A request larger than the buffer is therefore truncated, and its body
usually fails to decode.

=============================================================================
CLOSING
=============================================================================

Each connection carries exactly one response, and closing the socket is
how the client learns where the body ends (no Content-Length is sent).

close() shuts down the write side first, so the client sees EOF, then
drains anything unread before releasing the socket. Closing with unread
bytes in the kernel buffer would make the OS send RST instead of FIN, and
the client could lose the response.

=============================================================================
"""

import socket
import time
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional, Tuple


logger = logging.getLogger(__name__)


@dataclass
class Connection:
    """
    A single client connection.

    Attributes:
        socket: The accepted client socket.
        address: Client's (ip, port).
        buffer_size: Bytes requested by the single read.
        timeout: Socket timeout in seconds, None to block forever.
        id: Short random id for log lines.
        created_at: When the connection was accepted.
    """

    socket: socket.socket
    address: Tuple[str, int]
    buffer_size: int = 1024
    timeout: Optional[float] = None

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    created_at: float = field(default_factory=time.time)
    closed: bool = False

    def __post_init__(self):
        # Accepted sockets inherit the listener's accept-poll timeout.
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    def read_request(self) -> bytes:
        """
        Read once from the socket.

        Returns:
            Up to buffer_size bytes. b"" if the client closed without
            sending anything.

        Raises:
            OSError: The read failed or timed out (socket.timeout is an
                     OSError subclass).
        """
        return self.socket.recv(self.buffer_size)

    def send_response(self, data: bytes) -> bool:
        """
        Send all response bytes.

        Returns:
            True if sent, False if the client was already gone.
        """
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def close(self):
        """Shut down the write side, drain unread input, and close."""
        if self.closed:
            return
        self.closed = True

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Client already disconnected

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(self.buffer_size):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        logger.debug(f"[{self.id}] Connection closed after {self.age * 1000:.2f}ms")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
