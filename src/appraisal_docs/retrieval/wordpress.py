"""WordPress REST client for appraisal posts (custom post type + ACF fields).

Uses httpx with application-password basic auth against
settings.wordpress_api_url (the /wp-json/wp/v2 base).
"""

import logging
from datetime import datetime, timezone

import httpx
from bs4 import BeautifulSoup

from appraisal_docs.config import settings
from appraisal_docs.core.types import ImageSet, PostData

logger = logging.getLogger(__name__)

POST_FIELDS = "acf,title,date,_links,_embedded"
POST_EMBEDS = "wp:featuredmedia,wp:term"
TIMEOUT = 30.0


def _auth() -> httpx.BasicAuth:
    return httpx.BasicAuth(settings.wp_username, settings.wp_app_password)


def _post_url(post_id: str | int) -> str:
    return f"{settings.wordpress_api_url}/appraisals/{post_id}"


# ---------------------------------------------------------------------------
# Field extraction
# ---------------------------------------------------------------------------

def extract_image_url(media) -> str | None:
    """URL from an ACF image field: a URL string or an object with 'url'.

    Bare attachment ids are not resolvable without another request and
    yield None.
    """
    if isinstance(media, str) and media.startswith("http"):
        return media
    if isinstance(media, dict) and media.get("url"):
        return media["url"]
    return None


def extract_gallery_urls(gallery) -> list[str]:
    if not isinstance(gallery, list):
        return []
    return [url for url in (extract_image_url(item) for item in gallery) if url]


def decode_title(rendered: str) -> str:
    """'Oil &#8211; Canvas' → 'Oil – Canvas'"""
    if not rendered:
        return ""
    return BeautifulSoup(rendered, "html.parser").get_text().strip()


def _iso_date(raw: str | None) -> str:
    if not raw:
        return datetime.now(timezone.utc).date().isoformat()
    return datetime.fromisoformat(raw.replace("Z", "+00:00")).date().isoformat()


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def fetch_post_data(post_id: str | int) -> PostData:
    """Fetch an appraisal post with its ACF fields and image URLs in one request."""
    async with httpx.AsyncClient(timeout=TIMEOUT, auth=_auth()) as client:
        resp = await client.get(
            _post_url(post_id),
            params={"_fields": POST_FIELDS, "_embed": POST_EMBEDS},
        )
        resp.raise_for_status()
        data = resp.json()

    acf = data.get("acf") or {}
    images = ImageSet(
        main=extract_image_url(acf.get("main")),
        age=extract_image_url(acf.get("age")),
        signature=extract_image_url(acf.get("signature")),
        gallery=extract_gallery_urls(acf.get("googlevision")),
    )
    title = decode_title((data.get("title") or {}).get("rendered", ""))
    logger.info("Fetched post %s: '%s' (%d gallery images)", post_id, title, len(images.gallery),
                extra={"post_id": str(post_id)})
    return PostData(
        post_id=str(post_id),
        acf=acf,
        title=title,
        date=_iso_date(data.get("date")),
        images=images,
    )


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def update_post(post_id: str | int, payload: dict) -> dict:
    async with httpx.AsyncClient(timeout=TIMEOUT, auth=_auth()) as client:
        resp = await client.post(_post_url(post_id), json=payload)
        resp.raise_for_status()
        return resp.json()


async def update_acf_fields(post_id: str | int, fields: dict) -> dict:
    """Write ACF fields; keys not given are left untouched."""
    result = await update_post(post_id, {"acf": fields})
    logger.info("Updated ACF fields %s for post %s", ", ".join(fields), post_id,
                extra={"post_id": str(post_id)})
    return result


async def update_post_links(post_id: str | int, pdf_link: str, doc_link: str) -> dict:
    return await update_acf_fields(post_id, {"pdflink": pdf_link, "doclink": doc_link})


async def update_notes(post_id: str | int, note: str) -> dict:
    """Append a timestamped line to the post's 'notes' ACF field."""
    async with httpx.AsyncClient(timeout=TIMEOUT, auth=_auth()) as client:
        resp = await client.get(_post_url(post_id), params={"_fields": "acf"})
        resp.raise_for_status()
        existing = (resp.json().get("acf") or {}).get("notes") or ""

    stamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
    line = f"[{stamp}] {note}"
    notes = f"{existing}\n{line}" if existing else line
    return await update_acf_fields(post_id, {"notes": notes})
