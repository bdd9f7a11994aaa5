"""
TechNotes Backend - Landing Page and Not-Found Fallback
========================================================

What:  Serves the HTML landing page at /, /index and /index.html, and renders
       the 404 answer for any request no route matches.

404 content negotiation (first acceptable type in this order):
    text/html         → views/404.html
    application/json  → {"message": "404 resource not found"}
    otherwise         → text/plain "404 resource not found"

A request without an Accept header accepts anything and gets the HTML page.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, PlainTextResponse, Response

from technotes.responses import not_found

VIEWS_DIR = Path(__file__).resolve().parent.parent / "views"
PUBLIC_DIR = Path(__file__).resolve().parent.parent / "public"

NOT_FOUND_MESSAGE = "404 resource not found"
NOT_FOUND_MEDIA_TYPES = ("text/html", "application/json", "text/plain")

router = APIRouter(tags=["Root"])


@router.get("/", include_in_schema=False)
@router.get("/index", include_in_schema=False)
@router.get("/index.html", include_in_schema=False)
async def index() -> FileResponse:
    return FileResponse(VIEWS_DIR / "index.html", media_type="text/html")


def _parse_accept(header: str) -> List[Tuple[str, float]]:
    """Split an Accept header into (media range, q) pairs, dropping q=0 entries."""
    ranges = []
    for part in header.split(","):
        pieces = [p.strip() for p in part.split(";")]
        media_range = pieces[0].lower()
        if not media_range:
            continue
        quality = 1.0
        for param in pieces[1:]:
            name, _, value = param.partition("=")
            if name.strip().lower() == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        if quality > 0:
            ranges.append((media_range, quality))
    return ranges


def _range_matches(media_range: str, media_type: str) -> bool:
    if media_range == "*/*":
        return True
    main, _, sub = media_range.partition("/")
    offered_main, _, offered_sub = media_type.partition("/")
    return main == offered_main and sub in ("*", offered_sub)


def preferred_media_type(accept: Optional[str], offered: Sequence[str]) -> Optional[str]:
    """
    First entry of `offered` the client accepts at all (q > 0).

    `offered` is in server preference order; the client's q-values only
    decide whether a type is acceptable, not which one wins. Returns None
    when the client accepts none of them.
    """
    if not accept or not accept.strip():
        return offered[0] if offered else None

    ranges = _parse_accept(accept)
    for media_type in offered:
        if any(_range_matches(media_range, media_type) for media_range, _ in ranges):
            return media_type
    return None


def not_found_page(request: Request) -> Response:
    """Negotiated 404 answer for requests no route handles."""
    choice = preferred_media_type(request.headers.get("accept"), NOT_FOUND_MEDIA_TYPES)

    if choice == "text/html":
        return FileResponse(VIEWS_DIR / "404.html", status_code=404, media_type="text/html")
    if choice == "application/json":
        return not_found(NOT_FOUND_MESSAGE)
    return PlainTextResponse(NOT_FOUND_MESSAGE, status_code=404)
