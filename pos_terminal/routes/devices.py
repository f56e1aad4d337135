"""Mobile device pairing routes"""

from fastapi import APIRouter, HTTPException, Depends

from ..errors import BackOfficeError
from ..models.product import ConnectedDevice
from ..services.backoffice_client import BackOfficeClient
from .deps import get_backoffice_client

router = APIRouter(prefix="/api/devices", tags=["Devices"])


@router.get("", response_model=list[ConnectedDevice])
async def list_devices(client: BackOfficeClient = Depends(get_backoffice_client)):
    """Paired mobile devices and their online state"""
    try:
        return await client.list_devices()
    except BackOfficeError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/connection-code", status_code=201)
async def generate_connection_code(client: BackOfficeClient = Depends(get_backoffice_client)):
    """Issue a pairing code for a new mobile device"""
    try:
        return await client.generate_connection_code()
    except BackOfficeError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.delete("/connection-code/{code}")
async def revoke_connection_code(
    code: str,
    client: BackOfficeClient = Depends(get_backoffice_client),
):
    """Revoke a pairing code"""
    try:
        await client.revoke_connection_code(code)
    except BackOfficeError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"message": "Connection code revoked"}
