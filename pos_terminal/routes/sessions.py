"""Session API routes for the POS terminal"""

from fastapi import APIRouter, Depends, HTTPException

from ..core.config import Settings, get_settings
from ..core.session import PosSession, SessionManager
from ..models.alert import Alert
from .deps import get_backoffice_client, get_pos_session, get_session_manager
from ..services.backoffice_client import BackOfficeClient

router = APIRouter(prefix="/api/sessions", tags=["Sessions"])


def _summary(session: PosSession) -> dict:
    totals = session.totals
    return {
        "session_id": session.session_id,
        "created_at": session.created_at.isoformat(),
        "updated_at": session.updated_at.isoformat(),
        "cart": {
            "items_count": len(session.cart),
            "item_count": totals.item_count,
            "total": float(totals.total),
        },
        "payment_type": session.payment_type.value if session.payment_type else None,
        "customer_id": session.customer_id,
        "checkout_state": session.submitter.state.value,
        "products": len(session.products),
        "unread_notifications": session.sink.unread_count,
        "banner": session.banner.model_dump(mode="json") if session.banner else None,
    }


@router.post("", status_code=201)
async def create_session(
    client: BackOfficeClient = Depends(get_backoffice_client),
    manager: SessionManager = Depends(get_session_manager),
    app_settings: Settings = Depends(get_settings),
):
    """Open a POS session: loads settings and catalog and starts alert polling"""
    session = manager.create_session(client, app_settings)
    await session.start()
    return _summary(session)


@router.get("/{session_id}")
async def get_session(session: PosSession = Depends(get_pos_session)):
    """Get session details"""
    return _summary(session)


@router.delete("/{session_id}")
async def delete_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
):
    """Close a session and stop its timers"""
    if await manager.close_session(session_id):
        return {"message": "Session closed"}
    raise HTTPException(status_code=404, detail="Session not found")


@router.post("/{session_id}/reset")
async def reset_session(session: PosSession = Depends(get_pos_session)):
    """Drop the sale in progress"""
    session.reset()
    return _summary(session)


@router.post("/{session_id}/catalog/refresh")
async def refresh_catalog(session: PosSession = Depends(get_pos_session)):
    """Reload the product snapshot from the back office"""
    if not await session.refresh_catalog():
        raise HTTPException(status_code=502, detail="Catalog refresh failed")
    return {"products": len(session.products)}


@router.get("/{session_id}/alerts", response_model=list[Alert])
async def list_alerts(session: PosSession = Depends(get_pos_session)):
    """Current stock and expiry alerts, highest priority first"""
    return session.current_alerts()
