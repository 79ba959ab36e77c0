"""Shared utilities for Harvestbot CLI commands."""

from rich.console import Console

console = Console()
