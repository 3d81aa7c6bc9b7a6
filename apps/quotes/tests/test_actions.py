from decimal import Decimal

import pytest

from apps.quotes.actions import Accept, Counter, Message, Reject, build_response
from apps.quotes.exceptions import QuoteValidationError


class TestBuildResponse:
    def test_accept(self):
        response = build_response("accept", message="Deal")
        assert response == Accept(message="Deal")

    def test_reject_is_case_insensitive(self):
        assert isinstance(build_response("REJECT"), Reject)

    def test_counter_carries_amount(self):
        response = build_response("counter", counter_offer="85.50")
        assert isinstance(response, Counter)
        assert response.amount == Decimal("85.50")

    def test_message(self):
        response = build_response("message", message="Which finish?")
        assert isinstance(response, Message)
        assert response.message == "Which finish?"

    def test_counter_requires_amount(self):
        with pytest.raises(QuoteValidationError) as exc:
            build_response("counter")
        assert exc.value.rule == "counter_offer_required"

    @pytest.mark.parametrize("action", ["accept", "reject", "message"])
    def test_amount_only_allowed_with_counter(self, action):
        with pytest.raises(QuoteValidationError) as exc:
            build_response(action, counter_offer=Decimal("10.00"))
        assert exc.value.rule == "counter_offer_forbidden"

    @pytest.mark.parametrize("amount", ["0", "-5", "abc"])
    def test_counter_amount_must_be_positive_number(self, amount):
        with pytest.raises(QuoteValidationError):
            build_response("counter", counter_offer=amount)

    def test_unknown_action(self):
        with pytest.raises(QuoteValidationError) as exc:
            build_response("haggle")
        assert exc.value.rule == "response_action"
        assert "counter" in exc.value.expected_states

    @pytest.mark.parametrize(
        "amount", ["NaN", "sNaN", "Infinity", "-Infinity", Decimal("NaN"), True]
    )
    def test_counter_amount_must_be_finite(self, amount):
        with pytest.raises(QuoteValidationError) as exc:
            build_response("counter", counter_offer=amount)
        assert exc.value.rule == "counter_offer_numeric"

    def test_counter_value_rejects_non_finite_amount(self):
        with pytest.raises(QuoteValidationError) as exc:
            Counter(amount=Decimal("Infinity"))
        assert exc.value.rule == "counter_offer_positive"
