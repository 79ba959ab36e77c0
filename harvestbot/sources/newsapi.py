"""NewsAPI source — latest crypto headlines."""

from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .base import SourceClient, SourceError


@dataclass(frozen=True)
class Article:
    title: str
    url: str
    source_name: str


@dataclass(frozen=True)
class NewsFeed:
    articles: tuple[Article, ...]


class NewsApiSource(SourceClient):
    """Fetch headlines from NewsAPI.org `/v2/everything`.

    Requires an API key; without one `fetch()` returns an Err and makes no
    request.
    """

    name = "newsapi"

    def __init__(
        self,
        url: str = "https://newsapi.org/v2/everything",
        api_key: Optional[str] = None,
        query: str = "crypto",
        page_size: int = 10,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(url, api_key=api_key, timeout=timeout, transport=transport)
        self.query = query
        self.page_size = page_size

    def missing_credential(self) -> Optional[str]:
        if not self.api_key:
            return "NewsAPI key is missing (set NEWS_API_ORG_KEY)"
        return None

    def build_request(self) -> tuple[dict, dict]:
        params = {"q": self.query, "pageSize": self.page_size, "apiKey": self.api_key}
        return params, {"Accept": "application/json"}

    def describe_http_error(self, response: httpx.Response) -> str:
        # NewsAPI explains 4xx errors in the body (bad key, rate limit, ...)
        try:
            message = response.json().get("message")
        except (ValueError, AttributeError):
            message = None
        if message:
            return f"HTTP {response.status_code}: {message}"
        return f"HTTP {response.status_code}"

    def parse(self, body: Any) -> NewsFeed:
        status = body.get("status")
        if status == "error":
            raise SourceError(f"API Error: {body.get('message') or 'Unknown'}")
        if status != "ok":
            raise SourceError(f"NewsAPI returned status: {status}")

        articles = []
        for item in body.get("articles") or []:
            url = item.get("url")
            if not url:
                continue
            articles.append(Article(
                title=str(item.get("title") or "(untitled)"),
                url=str(url),
                source_name=str((item.get("source") or {}).get("name") or "Unknown"),
            ))
        return NewsFeed(articles=tuple(articles))
