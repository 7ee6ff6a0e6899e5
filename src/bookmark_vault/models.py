"""Data models for bookmarks, tags and the responses built around them."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Media:
    id: int
    tweet_id: str  # owning bookmark
    type: str  # "photo" or "video"
    url: str
    thumbnail: str
    original: str  # full-resolution URL
    file_name: str


@dataclass
class Tag:
    id: int  # <= 0 means provisional (not yet confirmed by the server)
    name: str
    created_at: datetime
    completed: bool = False  # only meaningful for task-marker tags

    @property
    def is_provisional(self) -> bool:
        return self.id <= 0


@dataclass
class Bookmark:
    id: str
    name: str  # author display name
    screen_name: str  # author handle without @
    full_text: str
    created_at: datetime
    url: str  # canonical external URL of the post
    profile_image_url: str = ""
    favorite_count: int = 0
    retweet_count: int = 0
    bookmark_count: int = 0
    reply_count: int = 0
    quote_count: int = 0
    views_count: int = 0
    media: list[Media] = field(default_factory=list)
    tags: list[Tag] = field(default_factory=list)
    archived: bool = False

    @property
    def tag_names(self) -> list[str]:
        return [t.name for t in self.tags]

    def has_tag(self, name: str) -> bool:
        return any(t.name == name for t in self.tags)

    def matches_text(self, needle: str) -> bool:
        """Case-insensitive substring match across body, author name and handle."""
        needle = needle.lower()
        return (
            needle in self.full_text.lower()
            or needle in self.name.lower()
            or needle in self.screen_name.lower()
        )


@dataclass
class BookmarkPage:
    """One page of bookmarks plus the server-reported match count."""

    bookmarks: list[Bookmark] = field(default_factory=list)
    total: int = 0


@dataclass
class BookmarkQuery:
    tag: str | None = None
    search: str = ""
    archived: bool = False
    page: int = 1
    limit: int = 12

    def to_params(self) -> dict[str, str]:
        params = {
            "page": str(self.page),
            "limit": str(self.limit),
            "archived": "true" if self.archived else "false",
        }
        if self.tag:
            params["tag"] = self.tag
        if self.search:
            params["search"] = self.search
        return params


@dataclass
class TopTag:
    name: str
    count: int
    completed_count: int = 0


@dataclass
class Statistics:
    total_bookmarks: int = 0
    active_bookmarks: int = 0
    archived_bookmarks: int = 0
    total_tags: int = 0
    top_tags: list[TopTag] = field(default_factory=list)


@dataclass
class UploadResult:
    message: str
    count: int = 0
