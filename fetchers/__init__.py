# fetchers/__init__.py
from .pagination import LinkHeaderContinuation, PageSizeContinuation

CONTINUATIONS = {
    "link": LinkHeaderContinuation,
    "page_size": PageSizeContinuation,
}
