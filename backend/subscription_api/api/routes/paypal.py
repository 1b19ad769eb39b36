"""One-off PayPal catalog bootstrap: create the product that billing plans belong to."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, status

from subscription_api.api.deps import get_provider_gateway, require_role
from subscription_api.config import settings
from subscription_api.models.user import Role
from subscription_api.paypal.client import PayPalClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/paypal", tags=["paypal"])


@router.post(
    "/product/init",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_role(Role.ADMIN))],
)
async def init_product(paypal: PayPalClient = Depends(get_provider_gateway)) -> dict[str, Any]:
    """Create the PayPal product (run once) and return its id for PAYPAL_PRODUCT_ID."""
    product = await paypal.create_product(
        name=settings.paypal_brand_name,
        description=f"Subscription plans for {settings.paypal_brand_name} App",
    )
    logger.info("Created PayPal product %s", product.get("id"))
    return {
        "message": "PayPal product created. Copy productId into PAYPAL_PRODUCT_ID in your .env",
        "productId": product.get("id"),
        "product": product,
    }
