from typing import Any, Dict, List

import pytest
from requests.structures import CaseInsensitiveDict

from fetchers.transport import RawResponse


def response(status_code: int = 200, body: Any = None, headers: Dict[str, str] | None = None) -> RawResponse:
    return RawResponse(status_code=status_code, headers=CaseInsensitiveDict(headers or {}), body=body)


def products_page(start: int, count: int) -> Dict[str, Any]:
    return {
        "products": [
            {"id": start + i, "title": f"Product {start + i}", "variants": [], "images": []}
            for i in range(count)
        ]
    }


class FakeTransport:
    """Serves canned responses by path prefix; records every requested path."""

    def __init__(self):
        self.routes: Dict[str, List[Any]] = {}
        self.requested: List[str] = []

    def add(self, path_prefix: str, *responses: Any) -> "FakeTransport":
        self.routes.setdefault(path_prefix, []).extend(responses)
        return self

    def request(self, path: str, method: str = "GET", headers=None) -> RawResponse:
        self.requested.append(path)
        for prefix, queue in self.routes.items():
            if path.startswith(prefix):
                # The last canned response repeats once the queue is drained.
                resp = queue.pop(0) if len(queue) > 1 else queue[0]
                if isinstance(resp, Exception):
                    raise resp
                return resp
        return response(404, {"errors": "Not Found"})

    def product_requests(self) -> List[str]:
        return [p for p in self.requested if "/products.json" in p]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
