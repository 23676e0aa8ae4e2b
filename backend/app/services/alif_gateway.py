"""
Alif Gateway Client — payment creation over the bank's JSON/HTTPS API.
"""
from dataclasses import dataclass
from typing import Optional

import httpx
import structlog

from app.config import Settings
from app.exceptions import GatewayProtocolError, GatewayRejection

logger = structlog.get_logger().bind(component="alif_gateway")


@dataclass
class GatewayPaymentResponse:
    code: int
    redirect_url: str
    message: Optional[str]
    raw: dict


class AlifGatewayClient:
    """Thin wrapper around POST {ALIF_API_URL}/v2/."""

    ACCEPTED_CODES = frozenset({0, 200})

    def __init__(self, settings: Settings, http_client: Optional[httpx.Client] = None):
        self.settings = settings
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=settings.GATEWAY_TIMEOUT_SECONDS)

    @property
    def endpoint(self) -> str:
        return f"{self.settings.ALIF_API_URL.rstrip('/')}/v2/"

    def close(self):
        if self._owns_client:
            self._client.close()

    def create_payment(self, payload: dict, gate: str) -> GatewayPaymentResponse:
        """Create a payment and return the redirect URL.

        The channel is sent both in the body and as the `gate` header; the
        gateway routes on the header.

        Raises:
            GatewayProtocolError: transport failure, non-JSON body, or missing url.
            GatewayRejection: the gateway answered with a non-success code.
        """
        try:
            response = self._client.post(
                self.endpoint,
                json=payload,
                headers={"gate": gate, "isMarketPlace": "false"},
            )
        except httpx.HTTPError as exc:
            logger.error("gateway_unreachable", url=self.endpoint, error=str(exc))
            raise GatewayProtocolError(f"Alif Bank is unreachable: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            logger.error(
                "gateway_non_json_response",
                http_status=response.status_code,
                body=response.text[:500],
            )
            raise GatewayProtocolError(
                f"Alif Bank returned a non-JSON response (HTTP {response.status_code})"
            ) from exc

        if not isinstance(data, dict):
            raise GatewayProtocolError("Alif Bank returned an unexpected JSON payload")

        code = _as_int(data.get("code"))
        if code not in self.ACCEPTED_CODES or response.is_error:
            logger.warning(
                "gateway_rejected",
                http_status=response.status_code,
                code=data.get("code"),
                gateway_message=data.get("message"),
            )
            raise GatewayRejection(data.get("message") or "Unknown error", code=data.get("code"))

        redirect_url = data.get("url")
        if not redirect_url:
            raise GatewayProtocolError("Payment URL not received from Alif Bank")

        return GatewayPaymentResponse(
            code=code,
            redirect_url=redirect_url,
            message=data.get("message"),
            raw=data,
        )


def _as_int(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
