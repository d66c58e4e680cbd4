"""Exception hierarchy for LLMSScout.

Only :class:`SeedFetchError` and :class:`RenderContextError` abort a crawl.
Everything else is degraded into fewer results and reported as an event.
"""
from __future__ import annotations


class LLMSScoutError(Exception):
    """Base class for all errors raised by this package."""


class SeedFetchError(LLMSScoutError):
    """The seed (index) page could not be loaded, so there is nothing to summarize."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(reason)
        self.url = url
        self.reason = reason


class RenderContextError(LLMSScoutError):
    """The browser/rendering context is gone and no further page can be loaded."""


class GenerationError(LLMSScoutError):
    """A text-generation call failed or returned nothing usable."""


def describe_seed_failure(url: str, detail: str) -> str:
    """Turn a low-level navigation error into a message fit for the caller."""
    if "ERR_NAME_NOT_RESOLVED" in detail or "ENOTFOUND" in detail:
        return (
            f"Unable to access the website at {url}. "
            "Please verify the URL is correct and the website is online."
        )
    if "ERR_CONNECTION_TIMED_OUT" in detail or "ETIMEDOUT" in detail or "timed out" in detail.lower():
        return f"Connection to {url} timed out. The website may be slow or unavailable."
    return f"Error crawling website {url}: {detail}"


__all__ = [
    "LLMSScoutError",
    "SeedFetchError",
    "RenderContextError",
    "GenerationError",
    "describe_seed_failure",
]
