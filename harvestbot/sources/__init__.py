"""Digest data sources.

Each source issues one HTTP request per fetch and returns Ok/Err:
- coinranking: top coins by market cap with price change
- newsapi: latest crypto headlines
"""

from .base import Err, Ok, SourceClient, SourceError, SourceResult
from .coinranking import CoinQuote, CoinRankingSource, MarketStats, PriceBoard
from .newsapi import Article, NewsApiSource, NewsFeed

__all__ = [
    # Base
    "Ok",
    "Err",
    "SourceResult",
    "SourceClient",
    "SourceError",
    # CoinRanking
    "CoinRankingSource",
    "CoinQuote",
    "MarketStats",
    "PriceBoard",
    # NewsAPI
    "NewsApiSource",
    "Article",
    "NewsFeed",
]
