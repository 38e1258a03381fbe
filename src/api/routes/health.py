from fastapi import APIRouter, Depends

from src.api.dependencies import get_wallet_session
from src.application.schemas.ledger_messages import all_listings_query
from src.application.session import WalletSession

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    session: WalletSession = Depends(get_wallet_session),
) -> dict:  # type: ignore[type-arg]
    """Liveness + ledger reachability check."""
    ledger_status = "connected"
    try:
        await session.ledger.query(session.contract_address, all_listings_query(limit=1))
    except Exception as exc:
        ledger_status = f"error: {exc}"

    return {
        "status": "healthy" if ledger_status == "connected" else "degraded",
        "ledger": ledger_status,
        "contract_address": session.contract_address,
        "wallet_connected": session.is_connected,
    }
