"""Client state persisted between sessions.

State is stored in .state/client_state.json as a JSON object:
    {
        "bookmark-page-size": 20,
        "updated_at": "2025-01-15T14:30:00+00:00"
    }
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

PAGE_SIZE_KEY = "bookmark-page-size"


class ClientState:
    def __init__(self, state_dir: Path = Path(".state")):
        self.state_dir = state_dir
        self.state_file = state_dir / "client_state.json"
        self._data: dict = {}
        self._load()

    def _load(self) -> None:
        """Load state from disk."""
        if not self.state_file.exists():
            logger.debug("No client state found. Using defaults.")
            return
        try:
            data = json.loads(self.state_file.read_text())
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable state file %s: %s", self.state_file, e)
            return
        if isinstance(data, dict):
            self._data = data

    def save(self) -> None:
        """Persist state to disk."""
        self.state_dir.mkdir(parents=True, exist_ok=True)
        data = dict(self._data)
        data["updated_at"] = datetime.now(timezone.utc).isoformat()
        self.state_file.write_text(json.dumps(data, indent=2))

    def get_page_size(self, default: int, allowed: tuple[int, ...]) -> int:
        value = self._data.get(PAGE_SIZE_KEY)
        if isinstance(value, int) and value in allowed:
            return value
        return default

    def set_page_size(self, size: int) -> None:
        self._data[PAGE_SIZE_KEY] = size
        self.save()

    def reset(self) -> None:
        """Forget all preferences."""
        self._data.clear()
        if self.state_file.exists():
            self.state_file.unlink()
