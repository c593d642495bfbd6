"""
Checkout gateways

A gateway opens a hosted checkout session and later reports whether it
was paid. ``StripeCheckoutGateway`` talks to the Stripe REST API with
``requests``; ``DemoGateway`` never leaves the process and reports every
session as paid.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Mapping

import requests
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from shared.domain.value_objects import Money

from .exceptions import PaymentGatewayError, PaymentGatewayTimeout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    redirect_url: str


@dataclass(frozen=True)
class SessionStatus:
    """Outcome of a checkout session as reported by the provider."""

    paid: bool
    status: str
    payment_reference: str = ""
    expired: bool = False
    completed: bool = False


class PaymentGateway:
    """Interface every checkout provider implements."""

    name = ""

    def create_session(
        self,
        *,
        amount: Money,
        customer_email: str,
        description: str,
        details: str,
        metadata: Mapping[str, Any],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        raise NotImplementedError

    def get_session_status(self, session_id: str) -> SessionStatus:
        raise NotImplementedError


class StripeCheckoutGateway(PaymentGateway):
    """Stripe Checkout over the REST API (form-encoded, basic auth with the secret key)."""

    name = "stripe"

    def __init__(
        self,
        secret_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        self.secret_key = secret_key if secret_key is not None else settings.STRIPE_SECRET_KEY
        self.base_url = base_url or settings.STRIPE_API_BASE_URL
        self.timeout = timeout or settings.PAYMENT_GATEWAY_TIMEOUT
        if not self.secret_key:
            raise ImproperlyConfigured("STRIPE_SECRET_KEY is required for the Stripe gateway.")

    def _request(self, method: str, path: str, data: Mapping[str, Any] | None = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = requests.request(
                method,
                url,
                data=data,
                auth=(self.secret_key, ""),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.warning(f"Stripe request timed out: {method} {path}")
            raise PaymentGatewayTimeout() from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Network error talking to Stripe: {e}")
            raise PaymentGatewayError(f"Could not reach the payment provider: {e}") from e

        if response.status_code >= 400:
            try:
                error_msg = response.json().get("error", {}).get("message", "Unknown error")
            except ValueError:
                error_msg = response.text[:200]
            logger.error(f"Stripe API returned {response.status_code}: {error_msg}")
            raise PaymentGatewayError(f"Payment provider error: {error_msg}")

        return response.json()

    def create_session(
        self,
        *,
        amount: Money,
        customer_email: str,
        description: str,
        details: str,
        metadata: Mapping[str, Any],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        payload = {
            "mode": "payment",
            "customer_email": customer_email,
            "line_items[0][quantity]": 1,
            "line_items[0][price_data][currency]": amount.currency.lower(),
            "line_items[0][price_data][unit_amount]": amount.minor_units,
            "line_items[0][price_data][product_data][name]": description,
            "line_items[0][price_data][product_data][description]": details,
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        for key, value in metadata.items():
            payload[f"metadata[{key}]"] = value

        result = self._request("POST", "checkout/sessions", data=payload)
        logger.info(f"Stripe checkout session created: {result.get('id')}")
        return CheckoutSession(session_id=result["id"], redirect_url=result["url"])

    def get_session_status(self, session_id: str) -> SessionStatus:
        result = self._request("GET", f"checkout/sessions/{session_id}")
        payment_status = result.get("payment_status") or "unpaid"
        return SessionStatus(
            paid=payment_status == "paid",
            status=payment_status,
            payment_reference=result.get("payment_intent") or "",
            expired=result.get("status") == "expired",
            completed=result.get("status") == "complete",
        )


class DemoGateway(PaymentGateway):
    """Local stand-in for a checkout provider; every session counts as paid."""

    name = "demo"

    def create_session(
        self,
        *,
        amount: Money,
        customer_email: str,
        description: str,
        details: str,
        metadata: Mapping[str, Any],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        session_id = f"demo_cs_{uuid.uuid4().hex[:24]}"
        booking_id = metadata.get("bookingId", "")
        redirect_url = f"{settings.SITE_URL}/demo-checkout?session_id={session_id}&booking_id={booking_id}"
        logger.info(f"Demo checkout session {session_id} for {amount} ({customer_email})")
        return CheckoutSession(session_id=session_id, redirect_url=redirect_url)

    def get_session_status(self, session_id: str) -> SessionStatus:
        return SessionStatus(paid=True, status="paid", payment_reference=f"demo_pi_{int(time.time())}")


GATEWAYS: dict[str, type[PaymentGateway]] = {
    StripeCheckoutGateway.name: StripeCheckoutGateway,
    DemoGateway.name: DemoGateway,
}


def get_gateway(name: str | None = None) -> PaymentGateway:
    """Gateway named ``name``, or the one selected by ``PAYMENT_GATEWAY``."""
    name = name or settings.PAYMENT_GATEWAY
    try:
        gateway_class = GATEWAYS[name]
    except KeyError:
        raise ImproperlyConfigured(f"Unknown payment gateway: {name!r}")
    return gateway_class()
