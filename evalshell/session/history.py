from __future__ import annotations

from typing import Iterator, List


class SessionHistory:
    """Units accepted since the last reload, in submission order.

    Failed evaluations are recorded too: they are still valid commands to
    replay after a ``:rerun``.
    """

    def __init__(self) -> None:
        self._units: List[str] = []

    def append(self, unit: str) -> None:
        self._units.append(unit)

    def reset(self) -> List[str]:
        """Clear the history and hand back what it held."""
        previous, self._units = self._units, []
        return previous

    def snapshot(self) -> List[str]:
        return list(self._units)

    def __len__(self) -> int:
        return len(self._units)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._units))

    def __repr__(self) -> str:
        return f"SessionHistory({self._units!r})"


__all__ = ["SessionHistory"]
