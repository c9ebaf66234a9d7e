from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from urllib.parse import parse_qs, quote, unquote, urlparse

logger = logging.getLogger(__name__)


class SourceKind(str, Enum):
    SPREADSHEET = "spreadsheet"
    ENTERPRISE_CLOUD = "enterprise_cloud"
    OTHER = "other"


@dataclass(frozen=True)
class Candidate:
    name: str
    url: str


_SHEET_ID_RE = re.compile(r"/spreadsheets/d/([a-zA-Z0-9_-]+)")
_GID_RE = re.compile(r"[?&#]gid=(\d+)")
_DRIVE_FILE_RE = re.compile(r"/file/d/([a-zA-Z0-9_-]+)")
_DRIVE_ID_RE = re.compile(r"[?&]id=([a-zA-Z0-9_-]+)")
_RESID_RE = re.compile(r"resid=([^&]+)")

_ENTERPRISE_MARKERS = ("onedrive", "1drv.ms", "excel.cloud.microsoft", "sharepoint")

GRAPH_API = "https://graph.microsoft.com/v1.0"


def is_spreadsheet_host(url: str) -> bool:
    return "docs.google.com/spreadsheets" in url


def classify(url: str) -> SourceKind:
    # Sheets first: a Sheets URL must never be treated as a cloud-office link.
    if is_spreadsheet_host(url):
        return SourceKind.SPREADSHEET
    if any(marker in url for marker in _ENTERPRISE_MARKERS):
        return SourceKind.ENTERPRISE_CLOUD
    return SourceKind.OTHER


def resolve_candidates(url: str) -> list[Candidate]:
    """Map a share/view URL to direct-download candidates, best first.

    Unrecognized URLs come back unchanged as the only candidate.
    """
    if is_spreadsheet_host(url):
        return [Candidate("sheets-export", _google_sheets_export(url))]

    if "drive.google.com" in url:
        direct = _google_drive_download(url)
        if direct:
            return [Candidate("drive-download", direct)]
        return [Candidate("direct", url)]

    if "dropbox.com" in url:
        direct = url.replace("www.dropbox.com", "dl.dropboxusercontent.com").split("?")[0]
        return [Candidate("dropbox-direct", direct)]

    if classify(url) is SourceKind.ENTERPRISE_CLOUD:
        return _enterprise_candidates(url)

    return [Candidate("direct", url)]


def resolve(url: str) -> list[str]:
    return [c.url for c in resolve_candidates(url)]


def _google_sheets_export(url: str) -> str:
    m = _SHEET_ID_RE.search(url)
    if not m:
        logger.warning("Could not extract sheet id from %s", url)
        return url

    export = f"https://docs.google.com/spreadsheets/d/{m.group(1)}/export?format=xlsx"
    gid = _GID_RE.search(url)
    if gid:
        export += f"&gid={gid.group(1)}"
    logger.debug("Sheets URL %s -> %s", url, export)
    return export


def _google_drive_download(url: str) -> str | None:
    file_id = ""
    m = _DRIVE_FILE_RE.search(url)
    if m:
        file_id = m.group(1)
    m = _DRIVE_ID_RE.search(url)
    if m:
        file_id = m.group(1)
    if not file_id:
        return None
    return f"https://drive.google.com/uc?export=download&id={file_id}"


def _enterprise_candidates(url: str) -> list[Candidate]:
    if "excel.cloud.microsoft" in url:
        query = parse_qs(urlparse(url).query)
        doc_id = (query.get("docId") or [""])[0]
        drive_id = (query.get("driveId") or [""])[0]
        if doc_id and drive_id:
            # docId is usually "DRIVE_ID!ITEM_ID"
            item_id = doc_id.split("!")[-1]
            content = f"{GRAPH_API}/drives/{drive_id}/items/{item_id}/content"
            return [
                Candidate("graph-api", content),
                Candidate("graph-api-download", content + "?download=true"),
            ]

    if "onedrive.live.com" in url:
        m = _RESID_RE.search(url)
        if m:
            resid = unquote(m.group(1))
            return [Candidate("onedrive-download", f"https://onedrive.live.com/download?resid={quote(resid, safe='')}")]

    if "1drv.ms" in url:
        return [Candidate("onedrive-short", url.replace("1drv.ms", "onedrive.live.com"))]

    if "sharepoint.com" in url:
        for kind in ("/:x:/", "/:w:/"):
            if kind in url:
                direct = url.replace(kind, kind + "r/", 1)
                direct += ("&" if "?" in direct else "?") + "download=1"
                return [Candidate("sharepoint-download", direct)]

    return [Candidate("direct", url)]
