"""
Administrative control channel over a local Unix socket.
"""

from .client import AdminClient, AdminError
from .protocol import AdminRequest, AdminResponse
from .server import AdminService

__all__ = [
    "AdminClient",
    "AdminError",
    "AdminRequest",
    "AdminResponse",
    "AdminService",
]
