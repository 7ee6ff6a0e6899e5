"""Bookmarks selected for bulk actions."""


class SelectionManager:
    def __init__(self):
        self.active = False
        self._ids: set[str] = set()

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self._ids)

    @property
    def count(self) -> int:
        return len(self._ids)

    def enter(self) -> None:
        self.active = True
        self._ids.clear()

    def exit(self) -> None:
        self.active = False
        self._ids.clear()

    def toggle_mode(self) -> bool:
        if self.active:
            self.exit()
        else:
            self.enter()
        return self.active

    def toggle(self, bookmark_id: str) -> bool:
        """Flip one bookmark's selection. Returns whether it is now selected."""
        if not self.active:
            return False
        if bookmark_id in self._ids:
            self._ids.remove(bookmark_id)
            return False
        self._ids.add(bookmark_id)
        return True

    def select(self, bookmark_id: str) -> bool:
        """Add one bookmark to the selection. Selecting twice keeps it selected."""
        if not self.active:
            return False
        self._ids.add(bookmark_id)
        return True

    def is_selected(self, bookmark_id: str) -> bool:
        return bookmark_id in self._ids

    def discard(self, bookmark_id: str) -> None:
        self._ids.discard(bookmark_id)
