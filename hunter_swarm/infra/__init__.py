"""Infrastructure helpers: storage and user-agent pools."""

from .storage import SQLiteManager
from .ua_pool import UserAgentPool

__all__ = ["SQLiteManager", "UserAgentPool"]
