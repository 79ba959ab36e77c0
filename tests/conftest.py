"""Pytest configuration and shared fixtures."""

import asyncio

import pytest

from harvestbot.communication.inbound import Sender
from harvestbot.sources import CoinQuote, MarketStats, Ok, PriceBoard, SourceClient


class FakeSource(SourceClient):
    """Source returning a canned result after an optional delay."""

    name = "fake"

    def __init__(self, result=None, delay: float = 0.0, error: Exception = None):
        super().__init__("https://example.invalid")
        self.result = result
        self.delay = delay
        self.error = error
        self.calls = 0

    def build_request(self):
        return {}, {}

    def parse(self, body):
        return body

    async def fetch(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


class FakeLookup:
    """Membership lookup returning a fixed status (or raising)."""

    def __init__(self, status: str = "member", error: Exception = None):
        self.status = status
        self.error = error
        self.calls = []

    async def get_member_status(self, chat_id, user_id):
        self.calls.append((chat_id, user_id))
        if self.error:
            raise self.error
        return self.status


def make_board(count: int = 10) -> PriceBoard:
    coins = tuple(
        CoinQuote(name=f"Coin{i}", symbol=f"C{i}", price=1000.0 + i, change=float(i - 2))
        for i in range(count)
    )
    stats = MarketStats(total_coins=12345, total_market_cap=2.5e12, total_24h_volume=8.1e10)
    return PriceBoard(coins=coins, stats=stats, time_period="3h")


@pytest.fixture
def board():
    return make_board()


@pytest.fixture
def prices_ok(board):
    return Ok(board)


@pytest.fixture
def alice():
    return Sender(user_id=1001, first_name="Alice", username="alice")
