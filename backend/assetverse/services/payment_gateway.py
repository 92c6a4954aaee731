# Overview: Adapter around the external payment provider (Stripe Checkout).

"""
Payment Gateway

The app talks to the payment provider only through this interface:

    create_checkout_session(...) -> CheckoutSession
    retrieve_checkout_session(session_id) -> CheckoutSession

create_app() attaches a StripePaymentGateway to app.extensions; tests swap
in a fake with the same two methods.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import stripe

from ..errors import UpstreamError, NotFoundError


PAYMENT_STATUS_PAID = "paid"


@dataclass
class CheckoutSession:
    id: str
    payment_status: str
    url: str | None = None
    amount_total: int | None = None
    currency: str | None = None
    customer_email: str | None = None
    metadata: dict = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PAYMENT_STATUS_PAID


class StripePaymentGateway:
    def __init__(self, api_key: str):
        self.api_key = api_key

    @staticmethod
    def _to_session(obj) -> CheckoutSession:
        # StripeObject is not a dict on current SDK releases
        data = obj.to_dict()
        metadata = data.get("metadata") or {}
        if hasattr(metadata, "to_dict"):
            metadata = metadata.to_dict()
        return CheckoutSession(
            id=data["id"],
            payment_status=data.get("payment_status") or "unpaid",
            url=data.get("url"),
            amount_total=data.get("amount_total"),
            currency=data.get("currency"),
            customer_email=data.get("customer_email"),
            metadata={k: str(v) for k, v in metadata.items()},
        )

    def create_checkout_session(
        self,
        *,
        amount_cents: int,
        currency: str,
        product_name: str,
        customer_email: str,
        metadata: dict,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                mode="payment",
                customer_email=customer_email,
                line_items=[{
                    "price_data": {
                        "currency": currency,
                        "unit_amount": amount_cents,
                        "product_data": {"name": product_name},
                    },
                    "quantity": 1,
                }],
                metadata={k: str(v) for k, v in metadata.items()},
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as exc:
            raise UpstreamError("Payment provider unavailable") from exc
        return self._to_session(session)

    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self.api_key)
        except stripe.InvalidRequestError as exc:
            raise NotFoundError("Payment session not found") from exc
        except stripe.StripeError as exc:
            raise UpstreamError("Payment provider unavailable") from exc
        return self._to_session(session)
