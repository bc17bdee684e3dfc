"""Day listing handler for camgate.

Implements: GET /YYYY/MM/DD
"""

import html
import logging
import urllib.parse

from fastapi.responses import HTMLResponse

from camgate.errors import StoreError
from camgate.routing import DateKey
from camgate.storage.backend import ObjectStore

logger = logging.getLogger(__name__)


def render_listing(date: DateKey, keys: list[str]) -> str:
    """Render the HTML index page for one day.

    Args:
        date: The day being listed.
        keys: Object keys in the order the store returned them.

    Returns:
        A complete HTML document with one link per key.
    """
    parts = [
        "<!DOCTYPE html>",
        "<html><head><title>{0}</title></head><body>".format(html.escape(date.label)),
        "<h1>Looking at {0}</h1>".format(html.escape(date.label)),
    ]
    for key in keys:
        href = "/" + urllib.parse.quote(key)
        parts.append(
            '<a href="{0}">{1}</a><br />'.format(html.escape(href, quote=True), html.escape(key))
        )
    parts.append("</body></html>")
    return "\n".join(parts) + "\n"


class ListingHandler:
    """Lists one day's objects.

    Attributes:
        store: The object store to query.
    """

    def __init__(self, store: ObjectStore) -> None:
        self.store = store

    async def list_date(self, date: DateKey) -> HTMLResponse:
        """List every object under ``YYYY/MM/DD/``.

        An empty day renders an empty page. Any store failure is logged
        and raised as StoreError, which the app renders as 404.

        Raises:
            StoreError: If the list call fails.
        """
        try:
            keys = await self.store.list_keys(date.prefix)
        except StoreError as exc:
            logger.error("Listing %s failed: %s", date.label, exc)
            raise

        logger.debug("Listing %s: %d objects", date.label, len(keys))
        return HTMLResponse(content=render_listing(date, keys), status_code=200)
