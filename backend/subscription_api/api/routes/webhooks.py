"""PayPal webhook endpoint."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from subscription_api.api.deps import get_db, get_provider_gateway
from subscription_api.billing.gateway import ProviderGateway
from subscription_api.billing.webhooks import handle_notification

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/paypal")
async def paypal_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateway: ProviderGateway = Depends(get_provider_gateway),
) -> JSONResponse:
    """Receive and process a PayPal webhook delivery.

    Answers 200 for processed, duplicate and ignored notifications, 400 for
    unauthenticated or malformed ones, and 500 when PayPal should retry.
    """
    # Raw bytes, so the payload is exactly what PayPal signed
    payload = await request.body()
    result = await handle_notification(db, gateway, request.headers, payload)
    return JSONResponse(status_code=result.status_code, content=result.body)
