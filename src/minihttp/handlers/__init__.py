"""
Ready-made request handlers.

A handler is any callable taking ``(request, response)`` that finishes
with exactly one terminal call on the response (``send``, ``send_text``
or ``send_binary``). Plain functions and callable objects both work.
"""

from .static import StaticFileHandler, mount_static
from .basic import index, echo, user_agent, FileUploadHandler

__all__ = [
    "StaticFileHandler",
    "mount_static",
    "index",
    "echo",
    "user_agent",
    "FileUploadHandler",
]
