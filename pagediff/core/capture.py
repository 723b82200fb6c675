# pyright: reportMissingImports=false
import logging
import urllib.robotparser as robotparser
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import httpx

from pagediff.core.errors import CaptureError

logger = logging.getLogger(__name__)


@dataclass
class CapturedPage:
    url: str
    allowed: bool
    html: Optional[str]
    status: Optional[int]
    note: str


def _robots_allowed(url: str, ua: str) -> Optional[bool]:
    try:
        parsed = urlparse(url)
        robots_url = f"{parsed.scheme}://{parsed.netloc}/robots.txt"
        rp = robotparser.RobotFileParser()
        rp.set_url(robots_url)
        rp.read()
        return rp.can_fetch(ua, url)
    except Exception:
        return False


async def capture_page(
    url: str,
    ua: str,
    timeout: int,
    max_mb: int,
    obey_robots: bool,
) -> CapturedPage:
    """Fetch the live HTML for ``url``.

    Never raises for network problems; the outcome is described by ``note``
    and ``html`` is None unless an HTML body was received. ``url`` on the
    result is the final URL after redirects.
    """
    if obey_robots:
        allowed = _robots_allowed(url, ua)
        if not allowed:
            return CapturedPage(url, False, None, None, "robots disallow")
    try:
        async with httpx.AsyncClient(
            http2=True,
            headers={"User-Agent": ua},
            timeout=timeout,
            follow_redirects=True,
        ) as client:
            resp = await client.get(url)
            final_url = str(resp.url)
            ctype = resp.headers.get("content-type", "")
            if "text/html" not in ctype.lower():
                return CapturedPage(final_url, True, None, resp.status_code, "non-HTML content")
            if len(resp.content) > max_mb * 1024 * 1024:
                return CapturedPage(
                    final_url, True, None, resp.status_code, "response too large"
                )
            logger.info("captured %s (%d bytes)", final_url, len(resp.content))
            return CapturedPage(final_url, True, resp.text, resp.status_code, "ok")
    except httpx.HTTPError as e:
        logger.warning("capture of %s failed: %s", url, e)
        return CapturedPage(url, True, None, None, f"error: {e}")


def require_html(page: CapturedPage) -> str:
    if not page.html:
        raise CaptureError(page.url, page.note)
    return page.html
