"""
gpxstream - Short name generation

Squeezes point names into a fixed length and keeps them unique within one
handle.  The writer opens a fresh handle for each output section, so a
waypoint and a route point may end up with the same name.
"""

from __future__ import annotations

from typing import Dict, Set

from gpxstream.models import Waypoint

_VOWELS = set("aeiou")


class ShortNameHandle:
    def __init__(self, length: int = 32, whitespace_ok: bool = True,
                 default_name: str = "WPT"):
        self.length = max(1, length)
        self.whitespace_ok = whitespace_ok
        self.default_name = default_name
        self._used: Set[str] = set()
        self._conflicts: Dict[str, int] = {}

    def _squeeze(self, name: str) -> str:
        name = "".join(ch for ch in name.strip() if ch.isprintable())
        if not self.whitespace_ok:
            name = "".join(name.split())
        else:
            name = " ".join(name.split())

        # Drop lower-case vowels from the right, keeping the first character.
        chars = list(name)
        i = len(chars) - 1
        while len(chars) > self.length and i > 0:
            if chars[i] in _VOWELS:
                del chars[i]
            i -= 1
        return "".join(chars)[:self.length].rstrip()

    def mkshort(self, name: str) -> str:
        base = self._squeeze(name) or self.default_name[:self.length]
        candidate = base
        while candidate in self._used:
            count = self._conflicts.get(base, 0) + 1
            self._conflicts[base] = count
            suffix = f".{count}"
            candidate = base[:max(0, self.length - len(suffix))] + suffix
        self._used.add(candidate)
        return candidate

    def from_waypoint(self, wpt: Waypoint) -> str:
        """Name a point from its short name, else its comment, else its notes."""
        return self.mkshort(wpt.shortname or wpt.description or wpt.notes)
