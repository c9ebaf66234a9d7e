from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

import requests


SPREADSHEET_ACCEPT = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet, "
    "application/vnd.ms-excel, */*"
)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class HttpResult:
    status_code: int
    content: bytes
    reason: str = ""


@dataclass(frozen=True)
class HttpClient:
    accept: str = SPREADSHEET_ACCEPT
    max_redirects: int = 5
    clock: Callable[[], float] = time.monotonic

    def get(self, url: str, *, timeout_s: float) -> HttpResult:
        """GET raw bytes. 4xx/5xx come back as results, not exceptions.

        ``timeout_s`` bounds the whole download, not just each socket read,
        so a worker thread never outlives its attempt by more than one read.
        """
        deadline = self.clock() + timeout_s
        with requests.Session() as session:
            session.max_redirects = self.max_redirects
            with session.get(
                url,
                headers={"Accept": self.accept},
                timeout=timeout_s,
                allow_redirects=True,
                stream=True,
            ) as resp:
                chunks: list[bytes] = []
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    chunks.append(chunk)
                    if self.clock() > deadline:
                        raise requests.Timeout(f"Download of {url} took longer than {timeout_s:g} seconds")
                return HttpResult(status_code=resp.status_code, content=b"".join(chunks), reason=resp.reason or "")
