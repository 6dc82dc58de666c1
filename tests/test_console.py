"""Tests for terminal rendering."""

from __future__ import annotations

from decimal import Decimal

from depthdesk.app import MarketSession
from depthdesk.config_loader import AppConfig
from depthdesk.constants import OutcomeKind
from depthdesk.data.models import OrderSubmissionOutcome, Trade
from depthdesk.execution.classifier import classify
from depthdesk.feeds.sim import SimExchange
from depthdesk.ui.console import render_outcome, render_view


def session_with_data() -> MarketSession:
    sim = SimExchange(seed=7)
    session = MarketSession(AppConfig(), api=sim, connector=sim.connect)
    session.order_book.replace(sim.snapshot())
    session.trades.replace(
        [
            Trade(1, 2, Decimal("100.5"), 3, 1_700_000_000_000),
            Trade(4, 3, Decimal("100.25"), 1, 1_700_000_001_000),
        ]
    )
    return session


def test_render_view_plain() -> None:
    text = render_view(session_with_data().view(), use_color=False)

    assert "Spread 0.020" in text
    assert "Recent trades:" in text
    assert "100.250 x 1" in text
    assert "Candle O 100.500" in text
    assert "\033[" not in text


def test_render_view_empty_book() -> None:
    session = MarketSession(AppConfig(), api=SimExchange(), connector=SimExchange().connect)
    text = render_view(session.view(), use_color=False)
    assert "Spread ---" in text


def test_render_outcome_lists_fills() -> None:
    fills = [Trade(1, 2, Decimal("100"), 4, 0), Trade(3, 2, Decimal("101"), 6, 0)]
    text = render_outcome(classify(10, fills), use_color=False)

    lines = text.splitlines()
    assert lines[0] == "Filled 10 @ avg 100.600"
    assert lines[1] == "  fill #1: 4 @ 100"


def test_render_error_outcome() -> None:
    outcome = OrderSubmissionOutcome(kind=OutcomeKind.REJECTED, message="Order rejected: no")
    assert render_outcome(outcome, use_color=False) == "Order rejected: no"
