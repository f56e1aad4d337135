# Core modules

from .config import settings, Settings
from .scheduler import Scheduler
from .session import PosSession, SessionManager, session_manager

__all__ = ["settings", "Settings", "Scheduler", "PosSession", "SessionManager", "session_manager"]
