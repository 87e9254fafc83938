"""Day-month-year date parsing and anchor-proximity date resolution."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Iterator, List, Optional, Sequence

# dd/mm/yyyy, d/m/yy, dd-mm-yyyy, dd.mm.yyyy (separators may be mixed)
DATE_RE = re.compile(
    r"(?<!\d)(?P<day>0?[1-9]|[12]\d|3[01])[/\-.]"
    r"(?P<month>0?[1-9]|1[0-2])[/\-.]"
    r"(?P<year>(?:19|20)\d{2}|\d{2})(?!\d)"
)


class DateParser:
    """Parse Spanish (day-month-year) numeric dates without touching process locale."""

    def __init__(self, two_digit_year_pivot: int = 49) -> None:
        self.two_digit_year_pivot = two_digit_year_pivot

    def parse(self, raw: str) -> Optional[date]:
        """Parse a single date token such as ``15/01/2026`` or ``1-2-24``."""
        match = DATE_RE.fullmatch(raw.strip())
        if not match:
            return None
        return self._build(match)

    def iter_dates(self, text: str, start: int = 0) -> Iterator[date]:
        """Yield valid dates in ``text`` from position ``start``, skipping impossible ones."""
        for match in DATE_RE.finditer(text, start):
            parsed = self._build(match)
            if parsed is not None:
                yield parsed

    def find_first(self, text: str, start: int = 0) -> Optional[date]:
        return next(self.iter_dates(text, start), None)

    def _build(self, match: re.Match[str]) -> Optional[date]:
        year = int(match.group("year"))
        if len(match.group("year")) == 2:
            year += 2000 if year <= self.two_digit_year_pivot else 1900
        try:
            return date(year, int(match.group("month")), int(match.group("day")))
        except ValueError:
            # e.g. 31/02/2024
            return None


@dataclass(frozen=True)
class AnchorMatch:
    """Date found near an anchor plus the line(s) it came from."""

    value: Optional[date] = None
    hints: List[str] = field(default_factory=list)


class DateAnchorResolver:
    """Locate dates textually associated with anchor keywords.

    For each line containing an anchor (case-insensitive substring), the same
    line is tried first, preferring a date after the anchor; then lines within
    ``window`` of it, scanned in ascending line order. The first anchor line
    that yields any date ends the search.
    """

    def __init__(self, parser: DateParser | None = None, window: int = 3) -> None:
        self.parser = parser or DateParser()
        self.window = window

    def find_date_near_anchor(
        self,
        lines: Sequence[str],
        anchors: Sequence[str],
        window: int | None = None,
    ) -> AnchorMatch:
        window = self.window if window is None else window

        for i, line in enumerate(lines):
            anchor_pos = self._anchor_position(line, anchors)
            if anchor_pos is None:
                continue

            found = self.parser.find_first(line, anchor_pos) or self.parser.find_first(line)
            if found:
                return AnchorMatch(value=found, hints=[line])

            for j in range(max(0, i - window), min(len(lines) - 1, i + window) + 1):
                if j == i:
                    continue
                found = self.parser.find_first(lines[j])
                if found:
                    return AnchorMatch(value=found, hints=[lines[j]])

        return AnchorMatch()

    def find_all_dates(self, lines: Sequence[str]) -> List[tuple[date, str]]:
        """Return each distinct date in document order with the first line it appears on."""
        seen: dict[date, str] = {}
        for line in lines:
            for found in self.parser.iter_dates(line):
                seen.setdefault(found, line)
        return list(seen.items())

    def _anchor_position(self, line: str, anchors: Sequence[str]) -> Optional[int]:
        lowered = line.lower()
        positions = [pos for pos in (lowered.find(anchor) for anchor in anchors) if pos >= 0]
        return min(positions) if positions else None
