"""
=============================================================================
CORE - Sockets and Threads
=============================================================================

The transport half of the server. Nothing here knows about HTTP.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   SocketServer          accepts TCP connections on one thread       │
    │        │                                                            │
    │        ▼                                                            │
    │   Connection            one client socket: a single bounded read,   │
    │        │                a full write, a graceful close              │
    │        ▼                                                            │
    │   ThreadPool            fixed set of workers fed by an unbounded    │
    │                         FIFO job queue                              │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Connections are never rejected for lack of a free worker: they wait in
the queue, so under load latency grows instead of errors appearing.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool, Task

__all__ = [
    "SocketServer",     # TCP listener
    "Connection",       # Client socket wrapper
    "ConnectionState",  # Connection lifecycle states
    "ThreadPool",       # Fixed worker pool
    "Task",             # Unit of work queued on the pool
]
