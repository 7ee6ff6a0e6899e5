"""Parse bookmark service JSON responses into model objects.

The service serializes timestamps as RFC 3339 strings, sometimes with
nanosecond precision ("2025-02-10T18:30:00.123456789Z"), which is more than
datetime.fromisoformat accepts, so fractions are truncated to microseconds.

Records that cannot be parsed are skipped with a warning rather than failing
the whole response.
"""

import logging
import re
from datetime import datetime, timezone

from .models import (
    Bookmark,
    BookmarkPage,
    Media,
    Statistics,
    Tag,
    TopTag,
    UploadResult,
)

logger = logging.getLogger(__name__)

_FRACTION_RE = re.compile(r"\.(\d+)")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware datetime (UTC if naive)."""
    if not value:
        raise ValueError("empty timestamp")
    text = value.strip().replace("Z", "+00:00")
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_tag(data: dict) -> Tag:
    return Tag(
        id=int(data["id"]),
        name=data["name"],
        created_at=parse_timestamp(data.get("created_at", "")),
        completed=bool(data.get("completed", False)),
    )


def parse_tags(raw_tags: list[dict] | None) -> list[Tag]:
    """Parse a tag list, skipping malformed entries and duplicate names."""
    tags: list[Tag] = []
    seen: set[str] = set()
    for item in raw_tags or []:
        try:
            tag = parse_tag(item)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed tag %s: %s", _ident(item), e)
            continue
        if tag.name in seen:
            continue
        seen.add(tag.name)
        tags.append(tag)
    return tags


def _parse_media(data: dict) -> Media:
    return Media(
        id=int(data["id"]),
        tweet_id=str(data.get("tweet_id", "")),
        type=data.get("type", "photo"),
        url=data.get("url", ""),
        thumbnail=data.get("thumbnail", ""),
        original=data.get("original", ""),
        file_name=data.get("file_name", ""),
    )


def parse_bookmark(data: dict) -> Bookmark:
    """Parse a single bookmark record. Raises on missing required fields."""
    media = []
    for item in data.get("media") or []:
        try:
            media.append(_parse_media(item))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed media %s: %s", _ident(item), e)

    return Bookmark(
        id=str(data["id"]),
        name=data.get("name", ""),
        screen_name=data.get("screen_name", ""),
        full_text=data.get("full_text", ""),
        created_at=parse_timestamp(data["created_at"]),
        url=data.get("url", ""),
        profile_image_url=data.get("profile_image_url", ""),
        favorite_count=int(data.get("favorite_count") or 0),
        retweet_count=int(data.get("retweet_count") or 0),
        bookmark_count=int(data.get("bookmark_count") or 0),
        reply_count=int(data.get("reply_count") or 0),
        quote_count=int(data.get("quote_count") or 0),
        views_count=int(data.get("views_count") or 0),
        media=media,
        tags=parse_tags(data.get("tags")),
        archived=bool(data.get("archived", False)),
    )


def parse_bookmarks(raw_bookmarks: list[dict] | None) -> list[Bookmark]:
    """Parse a list of bookmark dicts, skipping malformed ones."""
    bookmarks = []
    for item in raw_bookmarks or []:
        try:
            bookmarks.append(parse_bookmark(item))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed bookmark %s: %s", _ident(item), e)
    return bookmarks


def parse_bookmark_page(data: dict) -> BookmarkPage:
    bookmarks = parse_bookmarks(data.get("bookmarks"))
    return BookmarkPage(bookmarks=bookmarks, total=int(data.get("total") or 0))


def parse_statistics(data: dict) -> Statistics:
    top_tags = [
        TopTag(
            name=t.get("name", ""),
            count=int(t.get("count") or 0),
            completed_count=int(t.get("completed_count") or 0),
        )
        for t in data.get("top_tags") or []
    ]
    return Statistics(
        total_bookmarks=int(data.get("total_bookmarks") or 0),
        active_bookmarks=int(data.get("active_bookmarks") or 0),
        archived_bookmarks=int(data.get("archived_bookmarks") or 0),
        total_tags=int(data.get("total_tags") or 0),
        top_tags=top_tags,
    )


def parse_upload_result(data: dict) -> UploadResult:
    return UploadResult(
        message=data.get("message", ""),
        count=int(data.get("count") or 0),
    )


def _ident(item: object) -> str:
    if isinstance(item, dict):
        return str(item.get("id", "?"))
    return "?"
