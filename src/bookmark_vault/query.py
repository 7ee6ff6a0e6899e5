"""Search text, tag filter and archive flag of the bookmark list.

Search runs at two levels. The search text is sent to the server with the
next fetch, and in between fetches apply() narrows the page already loaded
by plain substring match. Changing the search text therefore leaves the
page index alone, while changing the tag filter or the archive view starts
over at page 1.
"""

from .models import Bookmark, BookmarkQuery
from .pagination import Paginator


class QueryController:
    def __init__(self, paginator: Paginator):
        self._paginator = paginator
        self.search = ""
        self.tag: str | None = None
        self.archived = False

    def set_search(self, text: str) -> None:
        self.search = text

    def set_tag(self, tag: str | None) -> bool:
        tag = tag or None
        if tag == self.tag:
            return False
        self.tag = tag
        self._paginator.reset()
        return True

    def clear_tag(self) -> bool:
        return self.set_tag(None)

    def set_archived(self, archived: bool) -> bool:
        if archived == self.archived:
            return False
        self.archived = archived
        self._paginator.reset()
        return True

    def effective_query(self) -> BookmarkQuery:
        return BookmarkQuery(
            tag=self.tag,
            search=self.search.strip(),
            archived=self.archived,
            page=self._paginator.page,
            limit=self._paginator.page_size,
        )

    def apply(self, bookmarks: list[Bookmark]) -> list[Bookmark]:
        needle = self.search.strip()
        if not needle:
            return list(bookmarks)
        return [b for b in bookmarks if b.matches_text(needle)]
