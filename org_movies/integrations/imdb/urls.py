from __future__ import annotations

import re
from typing import Any

_IMDB_TITLE_PATH_RE = re.compile(r"/title/([a-z0-9]+)/")


class MalformedImdbUrlError(ValueError):
    def __init__(self, message: str, *, url: Any = None) -> None:
        super().__init__(message)
        self.url = url


def extract_imdb_id(url: str) -> str:
    """
    Return the catalog identifier embedded in an IMDb title URL.

    Examples:
    - https://www.imdb.com/title/tt1160419/
    - https://m.imdb.com/title/tt1160419/?ref_=nv_sr_srsg_0
    """

    if not isinstance(url, str) or not url.strip():
        raise MalformedImdbUrlError("IMDb URL is empty.", url=url)

    match = _IMDB_TITLE_PATH_RE.search(url)
    if not match:
        raise MalformedImdbUrlError(f"Unable to parse IMDb title id from: {url!r}", url=url)
    return match.group(1)
