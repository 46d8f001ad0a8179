"""
doginals.com content indexer client.

The indexer is an ord-style explorer without a JSON API, so inscription
lookups scrape its HTML pages:
- /output/{txid}:{vout}  thumbnails link to /shibescription/{id}
- /shibescription/{id}   <h1>Shibescription {number}</h1>
- /content/{id}          raw content with its Content-Type
- /block/{hash}          200 once the block is indexed
"""

from __future__ import annotations

from html.parser import HTMLParser

import httpx
from loguru import logger

from dogwallet.backends.base import ContentIndexClient, InscriptionMetadata
from dogwallet.errors import IndexerError
from dogwallet.models import to_data_uri

DEFAULT_TIMEOUT = 30.0

INSCRIPTION_PATH = "/shibescription/"


class OutputPageParser(HTMLParser):
    """
    Collects inscription ids from an output page.

    Only the first <dl> inside <main> is considered; each <dd class="thumbnails">
    contributes the href of its first link.
    """

    def __init__(self) -> None:
        super().__init__()
        self.found_main = False
        self.found_list = False
        self.hrefs: list[str] = []
        self._main_depth = 0
        self._in_list = False
        self._list_done = False
        self._in_thumbnail = False
        self._thumbnail_has_link = False

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag == "main":
            if not self.found_main or self._main_depth:
                self._main_depth += 1
            self.found_main = True
            return

        if not self._main_depth or self._list_done:
            return

        if tag == "dl" and not self._in_list:
            self._in_list = True
            self.found_list = True
        elif self._in_list and tag == "dd":
            classes = (dict(attrs).get("class") or "").split()
            self._in_thumbnail = classes == ["thumbnails"]
            self._thumbnail_has_link = False
        elif self._in_thumbnail and tag == "a" and not self._thumbnail_has_link:
            self._thumbnail_has_link = True
            self.hrefs.append(dict(attrs).get("href") or "")

    def handle_endtag(self, tag: str) -> None:
        if tag == "main" and self._main_depth:
            self._main_depth -= 1
        elif tag == "dl" and self._in_list:
            self._in_list = False
            self._list_done = True
            self._in_thumbnail = False
        elif tag == "dd":
            self._in_thumbnail = False


class InscriptionPageParser(HTMLParser):
    """Captures the text of the first <h1> inside <main>."""

    def __init__(self) -> None:
        super().__init__()
        self.heading: str | None = None
        self._in_main = False
        self._in_heading = False
        self._parts: list[str] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag == "main":
            self._in_main = True
        elif tag == "h1" and self._in_main and self.heading is None:
            self._in_heading = True

    def handle_endtag(self, tag: str) -> None:
        if tag == "h1" and self._in_heading:
            self._in_heading = False
            self.heading = "".join(self._parts)
        elif tag == "main":
            self._in_main = False

    def handle_data(self, data: str) -> None:
        if self._in_heading:
            self._parts.append(data)


def parse_output_page(html: str) -> list[str]:
    """Inscription ids listed on an output page, in page order."""
    parser = OutputPageParser()
    parser.feed(html)
    parser.close()

    if not parser.found_main or not parser.found_list:
        raise IndexerError("Unexpected output page layout: missing <main> or <dl>")

    ids = []
    for href in parser.hrefs:
        if INSCRIPTION_PATH not in href:
            raise IndexerError(f"Unexpected thumbnail link: {href!r}")
        ids.append(href.split(INSCRIPTION_PATH)[1])
    return ids


def parse_inscription_number(html: str) -> str:
    """Display number from an inscription page heading ("Shibescription 1234")."""
    parser = InscriptionPageParser()
    parser.feed(html)
    parser.close()

    if parser.heading is None:
        raise IndexerError("Unexpected inscription page layout: missing <h1>")

    words = parser.heading.strip().split(" ")
    if len(words) < 2:
        raise IndexerError(f"Unexpected inscription heading: {parser.heading!r}")
    return words[1]


class DoginalsClient(ContentIndexClient):
    def __init__(
        self,
        base_url: str = "https://doginals.com",
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def _get(self, path: str, check_status: bool = True) -> httpx.Response:
        url = f"{self.base_url}/{path}"
        try:
            response = await self.client.get(url)
            if check_status:
                response.raise_for_status()
            return response
        except httpx.HTTPError as e:
            logger.error(f"doginals request failed: {path} - {e}")
            raise IndexerError(f"doginals.com request failed: {e}") from e

    async def has_block(self, block_hash: str) -> bool:
        response = await self._get(f"block/{block_hash}", check_status=False)
        logger.debug(f"doginals block {block_hash}: HTTP {response.status_code}")
        return response.status_code == 200

    async def list_inscriptions_at_output(self, outpoint: str) -> list[str]:
        response = await self._get(f"output/{outpoint}")
        return parse_output_page(response.text)

    async def fetch_inscription_content(self, inscription_id: str) -> str:
        response = await self._get(f"content/{inscription_id}")
        return to_data_uri(response.content, response.headers.get("content-type"))

    async def fetch_inscription_metadata(self, inscription_id: str) -> InscriptionMetadata:
        response = await self._get(f"shibescription/{inscription_id}")
        return InscriptionMetadata(number=parse_inscription_number(response.text))

    async def close(self) -> None:
        await self.client.aclose()
