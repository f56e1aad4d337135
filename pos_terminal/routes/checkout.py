"""Checkout API routes for the POS terminal"""

from fastapi import APIRouter, HTTPException, Depends

from ..core.session import PosSession
from ..errors import BackOfficeError, CheckoutValidationError
from ..models.checkout import Transaction
from .deps import get_pos_session

router = APIRouter(prefix="/api/sessions/{session_id}", tags=["Checkout"])


@router.post("/checkout", response_model=Transaction, status_code=201)
async def checkout(session: PosSession = Depends(get_pos_session)):
    """
    Submit the cart as a sale.

    Validation problems (empty cart, no payment method, credit sale
    without a customer) are rejected with 400 before anything is sent.
    A back-office failure returns 502 and leaves the cart as it was.
    """
    try:
        return await session.checkout()
    except CheckoutValidationError as e:
        raise HTTPException(status_code=400, detail={"title": e.title, "message": e.message})
    except BackOfficeError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/transactions/last", response_model=Transaction)
async def last_transaction(session: PosSession = Depends(get_pos_session)):
    """Most recent completed sale (receipt data)"""
    if not session.last_transaction:
        raise HTTPException(status_code=404, detail="No completed transaction")
    return session.last_transaction
