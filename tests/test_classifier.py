"""Tests for order outcome classification."""

from __future__ import annotations

from decimal import Decimal

import pytest

from depthdesk.constants import OutcomeKind, Side
from depthdesk.data.models import Trade
from depthdesk.errors import MalformedPayload, SubmissionNetworkError, SubmissionRejected
from depthdesk.execution.classifier import average_fill_price, classify, classify_failure


def fill(price: str, quantity: int) -> Trade:
    return Trade(1, 2, Decimal(price), quantity, 1_700_000_000_000)


class TestClassify:
    def test_full_fill(self) -> None:
        outcome = classify(10, [fill("100", 4), fill("101", 6)])

        assert outcome.kind == OutcomeKind.FULL_FILL
        assert outcome.total_filled == 10
        assert outcome.average_price == Decimal("100.6")
        assert outcome.remaining_quantity == 0
        assert "100.600" in outcome.message
        assert not outcome.is_error

    def test_resting(self) -> None:
        outcome = classify(10, [], side=Side.BUY, price=Decimal("99"))

        assert outcome.kind == OutcomeKind.RESTING
        assert outcome.total_filled == 0
        assert outcome.fills == ()
        assert outcome.average_price is None
        assert "Buy 10 @ 99" in outcome.message

    def test_partial_fill(self) -> None:
        outcome = classify(10, [fill("100", 3)])

        assert outcome.kind == OutcomeKind.PARTIAL_FILL
        assert outcome.total_filled == 3
        assert outcome.remaining_quantity == 7
        assert outcome.message == "Partial fill: 3/10 filled"

    def test_overfill_counts_as_full(self) -> None:
        outcome = classify(5, [fill("100", 6)])
        assert outcome.kind == OutcomeKind.FULL_FILL
        assert outcome.total_filled == 6

    def test_fills_kept_in_order(self) -> None:
        fills = [fill("100", 4), fill("101", 6)]
        assert classify(10, fills).fills == tuple(fills)


class TestClassifyFailure:
    def test_rejected(self) -> None:
        outcome = classify_failure(SubmissionRejected("Insufficient balance", status=400), 10)

        assert outcome.kind == OutcomeKind.REJECTED
        assert outcome.is_error
        assert "Insufficient balance" in outcome.message
        assert outcome.fills == ()

    def test_network_error(self) -> None:
        outcome = classify_failure(SubmissionNetworkError("connection refused"), 10)

        assert outcome.kind == OutcomeKind.NETWORK_ERROR
        assert outcome.is_error
        assert "unknown" in outcome.message

    def test_other_errors_are_not_outcomes(self) -> None:
        with pytest.raises(TypeError):
            classify_failure(MalformedPayload("bad"))


def test_average_fill_price_empty() -> None:
    assert average_fill_price([]) is None


def test_rejection_to_dict_carries_status() -> None:
    cause = ValueError("bad body")
    error = SubmissionRejected("Insufficient balance", status=400, original_exception=cause)

    assert error.to_dict() == {
        "error": "Insufficient balance",
        "error_type": "SubmissionRejected",
        "original_error": "bad body",
        "original_error_type": "ValueError",
        "status": 400,
    }
