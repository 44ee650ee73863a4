"""Navigation History — bounded app-level path stack and back-destination policy.

Invariants:
    - Holds at most `limit` paths; the oldest is discarded beyond the bound
    - Consecutive visits to the same path are recorded once
    - choose_destination() goes back only when BOTH signals agree a previous
      page exists: the app stack has a prior path and the runtime history > 1

Design Decisions:
    - Two signals, one policy: the app stack alone can outlive a reloaded tab and
      the runtime depth alone counts pages outside the app, so back requires both
"""

from collections import deque
from dataclasses import dataclass

DEFAULT_HISTORY_LIMIT = 10


@dataclass(frozen=True)
class Destination:
    path: str
    go_back: bool


class NavigationHistory:
    """Last N visited paths, newest at the right."""

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT):
        if limit < 1:
            raise ValueError("history limit must be at least 1")
        self._paths: deque[str] = deque(maxlen=limit)

    @property
    def limit(self) -> int:
        return self._paths.maxlen

    @property
    def paths(self) -> list[str]:
        return list(self._paths)

    @property
    def current(self) -> str | None:
        return self._paths[-1] if self._paths else None

    @property
    def previous(self) -> str | None:
        return self._paths[-2] if len(self._paths) >= 2 else None

    def record(self, path: str) -> None:
        if self._paths and self._paths[-1] == path:
            return
        self._paths.append(path)

    def pop(self) -> str | None:
        return self._paths.pop() if self._paths else None

    def choose_destination(
        self, fallback_path: str, runtime_history_length: int,
    ) -> Destination:
        """Back one step if both signals allow it, else the fallback path."""
        previous = self.previous
        if previous is not None and runtime_history_length > 1:
            return Destination(path=previous, go_back=True)
        return Destination(path=fallback_path, go_back=False)

    def __len__(self) -> int:
        return len(self._paths)
