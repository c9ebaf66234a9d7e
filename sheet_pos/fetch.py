from __future__ import annotations

import asyncio
import logging

import requests

from .errors import FetchAuthRequired, FetchFailed, FetchTimeout, InvalidSource
from .http import HttpClient, HttpResult
from .urls import Candidate, SourceKind, classify, resolve_candidates

logger = logging.getLogger(__name__)

AUTH_STATUSES = (401, 403)


class CatalogFetcher:
    """Download spreadsheet bytes for a catalog source URL.

    Cloud-office links get every resolved candidate tried in order with a
    short per-attempt timeout. Everything else gets a single longer attempt.
    The whole call is raced against ``deadline_s``.
    """

    def __init__(
        self,
        http: HttpClient | None = None,
        *,
        attempt_timeout_s: float = 10.0,
        single_timeout_s: float = 30.0,
        deadline_s: float = 30.0,
    ):
        self.http = http or HttpClient()
        self.attempt_timeout_s = attempt_timeout_s
        self.single_timeout_s = single_timeout_s
        self.deadline_s = deadline_s

    async def load(self, source_url: str) -> bytes:
        url = (source_url or "").strip()
        if not url:
            raise InvalidSource("Please enter an Excel file URL")

        kind = classify(url)
        candidates = resolve_candidates(url)
        logger.info("Loading %s source %s (%d candidate(s))", kind.value, url, len(candidates))

        if kind is SourceKind.ENTERPRISE_CLOUD:
            attempt = self._try_candidates(candidates)
        else:
            attempt = self._try_single(url, candidates[0])

        # Cancelling here does not stop a worker thread mid-download; it
        # stops on its own once HttpClient.get's total-time bound expires.
        try:
            return await asyncio.wait_for(attempt, timeout=self.deadline_s)
        except asyncio.TimeoutError:
            raise FetchTimeout(
                f"Request timeout after {self.deadline_s:g} seconds. "
                "The file may require authentication or be inaccessible."
            ) from None

    async def _get(self, url: str, timeout_s: float) -> HttpResult:
        return await asyncio.to_thread(self.http.get, url, timeout_s=timeout_s)

    async def _try_candidates(self, candidates: list[Candidate]) -> bytes:
        last_error: Exception | None = None

        for i, cand in enumerate(candidates, 1):
            logger.info("[%d/%d] Trying %s: %s", i, len(candidates), cand.name, cand.url)
            try:
                resp = await self._get(cand.url, self.attempt_timeout_s)
            except requests.Timeout as exc:
                logger.info("%s failed: timeout", cand.name)
                last_error = FetchTimeout(f"{cand.name} timed out after {self.attempt_timeout_s:g} seconds")
                last_error.__cause__ = exc
                continue
            except requests.RequestException as exc:
                logger.info("%s failed: %s", cand.name, exc)
                last_error = FetchFailed(f"{cand.name} failed: {exc}")
                last_error.__cause__ = exc
                continue

            if resp.status_code in AUTH_STATUSES:
                logger.info("%s failed: authentication required (%d)", cand.name, resp.status_code)
                last_error = FetchAuthRequired(
                    "File requires authentication. Download the file and load it "
                    "as a local file instead."
                )
                continue

            if not 200 <= resp.status_code < 300:
                logger.info("%s failed: status %d", cand.name, resp.status_code)
                last_error = FetchFailed(f"{cand.name} returned HTTP {resp.status_code}", status_code=resp.status_code)
                continue

            if not resp.content:
                logger.info("%s failed: empty response", cand.name)
                last_error = FetchFailed(f"{cand.name} returned an empty response", status_code=resp.status_code)
                continue

            logger.info("Success with %s, %d bytes", cand.name, len(resp.content))
            return resp.content

        if isinstance(last_error, (FetchAuthRequired, FetchTimeout)):
            raise last_error
        detail = f": {last_error}" if last_error else ""
        raise FetchFailed(f"All methods failed{detail}",
                          status_code=getattr(last_error, "status_code", None))

    async def _try_single(self, source_url: str, cand: Candidate) -> bytes:
        logger.info("Downloading %s (from %s)", cand.url, source_url)
        try:
            resp = await self._get(cand.url, self.single_timeout_s)
        except requests.Timeout as exc:
            raise FetchTimeout(
                f"Request timed out after {self.single_timeout_s:g} seconds. "
                "Try again or load a local file."
            ) from exc
        except requests.RequestException as exc:
            raise FetchFailed(
                "No response from server. Check your internet connection and the file URL."
            ) from exc

        status = resp.status_code
        if status in AUTH_STATUSES:
            if classify(source_url) is SourceKind.SPREADSHEET:
                raise FetchAuthRequired(
                    "Google Sheets file is not publicly accessible. Share it as "
                    "'Anyone with the link' (Viewer) and refresh."
                )
            raise FetchAuthRequired(
                f"Access denied ({status}). The file may be private. Make sure it is publicly accessible."
            )
        if status == 404:
            raise FetchFailed("File not found (404). Please check the URL.", status_code=status)
        if not 200 <= status < 300:
            raise FetchFailed(f"HTTP {status}: {resp.reason or ''}".strip(), status_code=status)

        if not resp.content:
            raise FetchFailed("Empty response from server", status_code=status)

        logger.info("Downloaded %d bytes", len(resp.content))
        return resp.content
