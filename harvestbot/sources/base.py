"""Base SourceClient class — every digest data provider inherits from this."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

import httpx

logger = logging.getLogger("harvestbot.sources")

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful fetch carrying a fully parsed payload."""

    payload: T


@dataclass(frozen=True)
class Err:
    """Failed fetch with a short diagnostic reason."""

    reason: str


SourceResult = Union[Ok, Err]


class SourceError(Exception):
    """Raised inside a client when a response cannot be turned into a payload.

    Never escapes `SourceClient.fetch()`.
    """


class SourceClient(ABC):
    """Base class for digest data providers.

    Each client issues exactly one GET request per `fetch()` and returns an
    `Ok` or `Err`. Nothing raises past `fetch()`: transport errors, bad
    status codes, provider-level errors, malformed bodies and a missing
    credential all come back as `Err(reason)`. A missing credential is
    detected before any request is made.

    Subclasses implement:
        - `missing_credential()`: reason string if a required key is absent
        - `build_request()`: (params, headers) for the GET
        - `parse(body)`: turn the decoded JSON into a payload, raising
          `SourceError` for provider-level failures
    """

    name: str = "source"

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def missing_credential(self) -> Optional[str]:
        return None

    def describe_http_error(self, response: httpx.Response) -> str:
        return f"HTTP {response.status_code}"

    @abstractmethod
    def build_request(self) -> tuple[dict, dict]:
        """Return (query params, headers) for the request."""

    @abstractmethod
    def parse(self, body: Any):
        """Convert the decoded JSON body into this source's payload record."""

    async def fetch(self) -> SourceResult:
        """Fetch once and return Ok(payload) or Err(reason). Never raises."""
        missing = self.missing_credential()
        if missing:
            logger.error(f"[{self.name}] {missing}")
            return Err(missing)

        try:
            payload = await asyncio.wait_for(self._request(), timeout=self.timeout)
        except asyncio.TimeoutError:
            reason = f"timed out after {self.timeout:g}s"
        except httpx.HTTPStatusError as e:
            reason = self.describe_http_error(e.response)
        except httpx.HTTPError as e:
            reason = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
        except SourceError as e:
            reason = str(e)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            # json decode errors are ValueErrors too
            reason = f"malformed response ({type(e).__name__})"
        except Exception as e:
            logger.error(f"[{self.name}] unexpected fetch error: {e}", exc_info=True)
            reason = f"unexpected error ({type(e).__name__})"
        else:
            logger.debug(f"[{self.name}] fetch ok")
            return Ok(payload)

        logger.error(f"[{self.name}] fetch failed: {reason}")
        return Err(reason)

    async def _request(self):
        params, headers = self.build_request()
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(self.url, params=params, headers=headers)
            response.raise_for_status()
            body = response.json()
        return self.parse(body)
