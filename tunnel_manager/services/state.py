"""Advisory state cache

Remembers whether the last login flow succeeded. Nothing reads this to make
an authorization decision; the daemon's live answer always wins.
"""

import json
import os
import threading
from datetime import datetime
from typing import Any, Dict

from ..config import STATE_FILE, get_logger

logger = get_logger(__name__)

DEFAULT_STATE: Dict[str, Any] = {
    "authenticated": False,
    "last_auth_check": None,
}


class StateStore:
    """Best-effort JSON record of {authenticated, last_auth_check}"""

    def __init__(self, path: str = STATE_FILE):
        self.path = path
        self._lock = threading.Lock()

    def ensure_exists(self) -> bool:
        """Create the state file with defaults if it is missing"""
        if os.path.exists(self.path):
            return True
        return self._write(dict(DEFAULT_STATE))

    def load(self) -> Dict[str, Any]:
        """Load state from file, {} when missing or unreadable"""
        if not os.path.exists(self.path):
            return {}

        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (ValueError, OSError) as e:
            logger.error(f"Failed to load state: {e}")
            return {}

    def update(self, **updates: Any) -> bool:
        """Merge updates into the stored record"""
        with self._lock:
            state = dict(DEFAULT_STATE)
            state.update(self.load())
            state.update(updates)
            return self._write(state)

    def record_auth(self, authenticated: bool) -> bool:
        return self.update(
            authenticated=authenticated,
            last_auth_check=datetime.now().isoformat()
        )

    def _write(self, state: Dict[str, Any]) -> bool:
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            with open(self.path, 'w') as f:
                json.dump(state, f, indent=2)
            return True
        except IOError as e:
            logger.error(f"Failed to update state: {e}")
            return False
