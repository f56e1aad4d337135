"""Shared route dependencies"""

from typing import Optional

from fastapi import Depends, HTTPException

from ..core.config import settings
from ..core.session import PosSession, SessionManager, session_manager
from ..services.backoffice_client import BackOfficeClient

# Initialize services (overridden in tests via app.dependency_overrides)
backoffice_client: Optional[BackOfficeClient] = None


def get_backoffice_client() -> BackOfficeClient:
    """Get or create the back-office client"""
    global backoffice_client
    if backoffice_client is None:
        backoffice_client = BackOfficeClient.from_settings(settings)
    return backoffice_client


def get_session_manager() -> SessionManager:
    return session_manager


def get_pos_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> PosSession:
    """Resolve the session in the request path"""
    session = manager.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session
