"""
Low-level networking and concurrency.

    socket_server.py   listening socket and accept loop
    connection.py      one accepted client: single read, write, close
    thread_pool.py     worker threads for handling connections concurrently
"""

from .socket_server import SocketServer
from .connection import Connection
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ThreadPool",
]
