"""
Artisan responses to a quote as explicit value types.

A counter amount can only be expressed through ``Counter``; the other
responses have no field for it, so an amount cannot travel with an accept
or a reject. ``build_response`` is the single boundary that turns loosely
typed request input into one of these values.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from apps.quotes.exceptions import QuoteValidationError
from apps.quotes.models import NegotiationAction


@dataclass(frozen=True)
class Accept:
    message: str = ""

    action = NegotiationAction.ACCEPT


@dataclass(frozen=True)
class Reject:
    message: str = ""

    action = NegotiationAction.REJECT


@dataclass(frozen=True)
class Counter:
    amount: Decimal
    message: str = ""

    action = NegotiationAction.COUNTER

    def __post_init__(self):
        if self.amount is None or not self.amount.is_finite() or self.amount <= 0:
            raise QuoteValidationError(
                "Counter offer must be greater than zero.",
                rule="counter_offer_positive",
            )


@dataclass(frozen=True)
class Message:
    text: str

    action = NegotiationAction.MESSAGE

    @property
    def message(self):
        return self.text


QuoteResponse = Union[Accept, Reject, Counter, Message]

RESPONSE_ACTIONS = (
    NegotiationAction.ACCEPT,
    NegotiationAction.REJECT,
    NegotiationAction.COUNTER,
    NegotiationAction.MESSAGE,
)


def _to_decimal(value) -> Decimal:
    try:
        if isinstance(value, bool):
            raise ValueError(value)
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        amount = None
    # NaN and Infinity parse but cannot be compared or stored
    if amount is None or not amount.is_finite():
        raise QuoteValidationError(
            "Counter offer must be a valid amount.", rule="counter_offer_numeric"
        )
    return amount


def build_response(
    action: str, counter_offer=None, message: Optional[str] = None
) -> QuoteResponse:
    """
    Build a typed response from request input.

    The counter amount is required for ``counter`` and forbidden for every
    other action.
    """
    action = (action or "").lower()
    message = message or ""

    if action not in RESPONSE_ACTIONS:
        raise QuoteValidationError(
            f"Unknown response action '{action}'.",
            rule="response_action",
            expected_states=[str(a) for a in RESPONSE_ACTIONS],
        )

    if action == NegotiationAction.COUNTER:
        if counter_offer is None:
            raise QuoteValidationError(
                "A counter offer amount is required when countering.",
                rule="counter_offer_required",
            )
        return Counter(amount=_to_decimal(counter_offer), message=message)

    if counter_offer is not None:
        raise QuoteValidationError(
            "A counter offer amount is only allowed with the counter action.",
            rule="counter_offer_forbidden",
        )

    if action == NegotiationAction.ACCEPT:
        return Accept(message=message)
    if action == NegotiationAction.REJECT:
        return Reject(message=message)
    return Message(text=message)
