# fetchers/pagination.py
import re
from typing import Any, Mapping, Optional

from requests.structures import CaseInsensitiveDict

from .transport import path_and_query

_LINK_URL_RE = re.compile(r"<([^>]+)>")


def parse_next_link(link_header: str | None) -> Optional[str]:
    """
    Pull the rel="next" target out of an RFC 5988 Link header, as path+query.

    '<https://x/admin/api/products.json?page_info=abc>; rel="next"' -> '/admin/api/products.json?page_info=abc'
    """
    if not link_header:
        return None
    for part in link_header.split(","):
        if 'rel="next"' not in part:
            continue
        m = _LINK_URL_RE.search(part)
        if not m:
            return None
        return path_and_query(m.group(1))
    return None


class LinkHeaderContinuation:
    """Cursor pagination driven by the response's Link header."""

    name = "link"

    def __init__(self, base_path: str, page_size: int):
        self.base_path = base_path
        self.page_size = page_size

    def first_path(self) -> str:
        return f"{self.base_path}?limit={self.page_size}"

    def next_path(
        self, current_path: str, page_index: int, headers: Mapping[str, Any], item_count: int
    ) -> Optional[str]:
        return parse_next_link(CaseInsensitiveDict(headers).get("link"))


class PageSizeContinuation:
    """Numbered pages; a page shorter than page_size is the last one."""

    name = "page_size"

    def __init__(self, base_path: str, page_size: int):
        self.base_path = base_path
        self.page_size = page_size

    def _path(self, page: int) -> str:
        return f"{self.base_path}?limit={self.page_size}&page={page}"

    def first_path(self) -> str:
        return self._path(1)

    def next_path(
        self, current_path: str, page_index: int, headers: Mapping[str, Any], item_count: int
    ) -> Optional[str]:
        if item_count < self.page_size:
            return None
        # page_index is 0-based, page numbers are 1-based
        return self._path(page_index + 2)
