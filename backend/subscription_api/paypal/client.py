"""Async PayPal REST API client.

Implements the :class:`~subscription_api.billing.gateway.ProviderGateway`
contract (webhook verification, subscription lookup and creation) plus the
catalog calls used to provision products and billing plans.
"""

import asyncio
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import httpx

from subscription_api.billing.gateway import (
    CreatedSubscription,
    SignatureVerification,
    SubscriptionDetail,
    missing_webhook_headers,
)
from subscription_api.config import settings
from subscription_api.errors import UpstreamFailureError
from subscription_api.paypal.token_cache import AccessTokenCache

logger = logging.getLogger(__name__)


class PayPalAPIError(UpstreamFailureError):
    """PayPal returned an error response, timed out, or is not configured."""

    def __init__(
        self,
        message: str,
        upstream_status: int = 0,
        payload: dict[str, Any] | None = None,
        *,
        code: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if upstream_status:
            details["upstream_status"] = upstream_status
        if code:
            details["code"] = code
        super().__init__(message, details, original_error)
        self.upstream_status = upstream_status
        self.payload = payload or {}
        self.code = code


def parse_provider_time(value: str | None) -> datetime | None:
    """Parse a PayPal RFC 3339 timestamp into a naive UTC datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise PayPalAPIError(
            f"PayPal returned a malformed timestamp: {value!r}",
            code="invalid_response",
            original_error=exc,
        ) from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class PayPalClient:
    """PayPal REST client with a bounded timeout and a cached OAuth token."""

    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: str,
        webhook_id: str = "",
        *,
        return_url: str = "",
        cancel_url: str = "",
        brand_name: str = "Subscription Node",
        timeout: float = 15.0,
        token_cache: AccessTokenCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.webhook_id = webhook_id
        self.return_url = return_url
        self.cancel_url = cancel_url
        self.brand_name = brand_name
        self.timeout = timeout
        self.token_cache = token_cache or AccessTokenCache()
        self._transport = transport
        self._token_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls) -> "PayPalClient":
        """Build a client from the application settings."""
        return cls(
            base_url=settings.paypal_base_url,
            client_id=settings.paypal_client_id,
            client_secret=settings.paypal_client_secret,
            webhook_id=settings.paypal_webhook_id,
            return_url=settings.paypal_return_url,
            cancel_url=settings.paypal_cancel_url,
            brand_name=settings.paypal_brand_name,
            timeout=settings.paypal_timeout_seconds,
            token_cache=AccessTokenCache(settings.paypal_token_expiry_buffer_seconds),
        )

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    # ------------------------------------------------------------------
    # OAuth
    # ------------------------------------------------------------------

    async def get_access_token(self) -> str:
        """Return a valid access token, requesting a new one when the cache is stale."""
        if not self.base_url or not self.client_id or not self.client_secret:
            raise PayPalAPIError(
                "Missing PayPal configuration: PAYPAL_BASE_URL, PAYPAL_CLIENT_ID, PAYPAL_CLIENT_SECRET",
                code="not_configured",
            )

        cached = self.token_cache.get()
        if cached:
            return cached

        async with self._token_lock:
            cached = self.token_cache.get()
            if cached:
                return cached

            try:
                async with self._http() as client:
                    response = await client.post(
                        f"{self.base_url}/v1/oauth2/token",
                        data={"grant_type": "client_credentials"},
                        auth=(self.client_id, self.client_secret),
                    )
                response.raise_for_status()
                data = response.json()
                token = data["access_token"]
                self.token_cache.store(token, float(data.get("expires_in", 0)))
            except httpx.HTTPStatusError as exc:
                self.token_cache.clear()
                payload = self._safe_json(exc.response)
                logger.error(
                    "[PAYPAL] Access token request failed: status=%s payload=%s",
                    exc.response.status_code,
                    payload,
                )
                raise PayPalAPIError(
                    f"Failed to get PayPal access token (HTTP {exc.response.status_code})",
                    exc.response.status_code,
                    payload,
                    code="auth_failed",
                    original_error=exc,
                ) from exc
            except (httpx.RequestError, KeyError, ValueError) as exc:
                self.token_cache.clear()
                logger.error("[PAYPAL] Access token request error: %s", exc)
                raise PayPalAPIError(
                    "Failed to get PayPal access token",
                    code="auth_failed",
                    original_error=exc,
                ) from exc

            return token

    # ------------------------------------------------------------------
    # Request helper
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        token = await self.get_access_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            async with self._http() as client:
                response = await client.request(
                    method, f"{self.base_url}{path}", headers=headers, json=json
                )
        except httpx.RequestError as exc:
            logger.warning("[PAYPAL] Network error: %s %s error=%s", method, path, exc)
            raise PayPalAPIError(
                f"PayPal request failed: {exc.__class__.__name__}",
                code="network_error",
                original_error=exc,
            ) from exc

        if response.status_code >= 400:
            payload = self._safe_json(response)
            logger.error(
                "[PAYPAL] Request failed: %s %s status=%s payload=%s",
                method,
                path,
                response.status_code,
                payload,
            )
            raise PayPalAPIError(
                payload.get("message") or f"PayPal request failed (HTTP {response.status_code})",
                response.status_code,
                payload,
                code=payload.get("name"),
            )

        return self._safe_json(response)

    @staticmethod
    def _safe_json(response: httpx.Response) -> dict[str, Any]:
        try:
            payload = response.json()
            return payload if isinstance(payload, dict) else {"data": payload}
        except ValueError:
            return {"message": response.text}

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    async def verify_signature(
        self, headers: Mapping[str, str], body: dict[str, Any]
    ) -> SignatureVerification:
        """Ask PayPal whether a webhook delivery is authentic.

        The whole event payload is sent back, as PayPal requires.
        """
        missing = missing_webhook_headers(headers)
        if missing:
            return SignatureVerification(ok=False, reason=f"missing headers: {', '.join(missing)}")

        if not self.webhook_id:
            raise PayPalAPIError("Missing PAYPAL_WEBHOOK_ID configuration", code="not_configured")

        lowered = {key.lower(): value for key, value in headers.items()}
        data = await self._request(
            "POST",
            "/v1/notifications/verify-webhook-signature",
            json={
                "auth_algo": lowered["paypal-auth-algo"],
                "cert_url": lowered["paypal-cert-url"],
                "transmission_id": lowered["paypal-transmission-id"],
                "transmission_sig": lowered["paypal-transmission-sig"],
                "transmission_time": lowered["paypal-transmission-time"],
                "webhook_id": self.webhook_id,
                "webhook_event": body,
            },
        )
        verification_status = data.get("verification_status")
        if verification_status == "SUCCESS":
            return SignatureVerification(ok=True)
        return SignatureVerification(ok=False, reason=f"verification_status={verification_status}")

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def fetch_subscription_detail(self, provider_subscription_id: str) -> SubscriptionDetail:
        """Fetch the authoritative subscription snapshot from PayPal."""
        data = await self._request("GET", f"/v1/billing/subscriptions/{provider_subscription_id}")
        billing_info = data.get("billing_info") or {}
        return SubscriptionDetail(
            status=data.get("status"),
            start_time=parse_provider_time(data.get("start_time")),
            next_billing_time=parse_provider_time(billing_info.get("next_billing_time")),
        )

    async def create_subscription(self, provider_plan_id: str, custom_id: str) -> CreatedSubscription:
        """Create a PayPal subscription awaiting buyer approval."""
        if not self.return_url or not self.cancel_url:
            raise PayPalAPIError(
                "Missing PayPal redirect URLs: PAYPAL_RETURN_URL, PAYPAL_CANCEL_URL",
                code="not_configured",
            )

        data = await self._request(
            "POST",
            "/v1/billing/subscriptions",
            json={
                "plan_id": provider_plan_id,
                "custom_id": custom_id,
                "application_context": {
                    "brand_name": self.brand_name,
                    "locale": "en-US",
                    "user_action": "SUBSCRIBE_NOW",
                    "shipping_preference": "NO_SHIPPING",
                    "return_url": self.return_url,
                    "cancel_url": self.cancel_url,
                },
            },
        )

        links = data.get("links") or []
        approval_url = next(
            (link.get("href") for rel in ("approve", "payer-action") for link in links if link.get("rel") == rel),
            None,
        )
        logger.info("Created PayPal subscription %s for %s", data.get("id"), custom_id)
        return CreatedSubscription(provider_subscription_id=data["id"], approval_url=approval_url)

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def create_product(self, name: str, description: str) -> dict[str, Any]:
        """Create the PayPal catalog product plans hang off (run once)."""
        return await self._request(
            "POST",
            "/v1/catalogs/products",
            json={
                "name": name,
                "description": description,
                "type": "SERVICE",
                "category": "SOFTWARE",
            },
        )

    async def create_plan(
        self,
        product_id: str,
        name: str,
        price: Decimal,
        currency: str,
        billing_cycle: str,
    ) -> dict[str, Any]:
        """Create a PayPal billing plan with one infinite regular cycle."""
        interval_unit = "MONTH" if billing_cycle == "monthly" else "YEAR"
        return await self._request(
            "POST",
            "/v1/billing/plans",
            json={
                "product_id": product_id,
                "name": name,
                "status": "ACTIVE",
                "billing_cycles": [
                    {
                        "frequency": {"interval_unit": interval_unit, "interval_count": 1},
                        "tenure_type": "REGULAR",
                        "sequence": 1,
                        "total_cycles": 0,  # 0 = until cancelled
                        "pricing_scheme": {
                            "fixed_price": {
                                "value": f"{Decimal(price):.2f}",
                                "currency_code": currency,
                            },
                        },
                    }
                ],
                "payment_preferences": {
                    "auto_bill_outstanding": True,
                    "setup_fee_failure_action": "CONTINUE",
                    "payment_failure_threshold": 3,
                },
            },
        )


_client: PayPalClient | None = None


def get_provider_gateway() -> PayPalClient:
    """FastAPI dependency returning the process-wide PayPal client.

    The client owns the token cache, so one instance is shared; tests
    override this dependency with a fake gateway.
    """
    global _client
    if _client is None:
        _client = PayPalClient.from_settings()
    return _client
