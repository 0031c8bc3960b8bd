"""注册表协作方接口"""

from .base import PeerAwareRegistry, ServerContext, CloudBinder
from .standalone import StandaloneRegistry, StandaloneServerContext

__all__ = [
    "PeerAwareRegistry",
    "ServerContext",
    "CloudBinder",
    "StandaloneRegistry",
    "StandaloneServerContext",
]
