"""Harvestbot — Telegram community bot with scheduled crypto digests."""

__version__ = "0.3.0"
