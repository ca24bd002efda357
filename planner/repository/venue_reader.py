"""Reader for the plain-text venue description format.

A file holds zero or more venue blocks, each laid out as::

    <venue name>
    <capacity>
    START, END, CAPACITY: TRAFFIC     (zero or more corridor lines)
    <empty line>

Any deviation raises :class:`VenueFormatError` carrying the 1-based number of
the offending line.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path
from typing import Union

from planner.domain.models import Corridor, Location, Traffic, Venue
from planner.utils.logger import get_logger


logger = get_logger(__name__)

_POSITIVE_INT = re.compile(r"[0-9]+")
_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_CORRIDOR_LINE = re.compile(r"(?P<start>[^,:]+), (?P<end>[^,:]+), (?P<capacity>[^,:]+): (?P<traffic>[^,:]+)")


class VenueFormatError(Exception):
    """Raised when venue text does not follow the expected layout."""

    def __init__(self, message: str, line_number: int) -> None:
        super().__init__(f"line {line_number}: {message}")
        self.line_number = line_number


def _parse_positive_int(value: str, label: str, line_number: int) -> int:
    if not _POSITIVE_INT.fullmatch(value):
        raise VenueFormatError(f"{label} must be a positive integer, got {value!r}", line_number)
    parsed = int(value)
    if parsed <= 0:
        raise VenueFormatError(f"{label} must be a positive integer, got {value!r}", line_number)
    return parsed


def _parse_corridor_line(line: str, venue_capacity: int, line_number: int) -> tuple[Corridor, int]:
    match = _CORRIDOR_LINE.fullmatch(line)
    if match is None:
        raise VenueFormatError(
            f"expected 'START, END, CAPACITY: TRAFFIC', got {line!r}",
            line_number,
        )
    start, end = match.group("start"), match.group("end")
    if start == end:
        raise VenueFormatError(f"corridor start and end are both {start!r}", line_number)

    capacity = _parse_positive_int(match.group("capacity"), "corridor capacity", line_number)
    traffic = _parse_positive_int(match.group("traffic"), "corridor traffic", line_number)
    if traffic > capacity:
        raise VenueFormatError(
            f"traffic {traffic} exceeds corridor capacity {capacity}",
            line_number,
        )
    if traffic > venue_capacity:
        raise VenueFormatError(
            f"traffic {traffic} exceeds venue capacity {venue_capacity}",
            line_number,
        )
    return Corridor(Location(start), Location(end), capacity), traffic


def _split_lines(text: str) -> list[str]:
    # Only CR, LF and CRLF end a line; other Unicode separators belong to names.
    pieces = _LINE_BREAK.split(text)
    if pieces[-1] == "":
        pieces.pop()
    return pieces


def parse_venues(lines: Union[str, Iterable[str]]) -> list[Venue]:
    """Parse venue blocks from text (or an iterable of lines without newlines)."""
    if isinstance(lines, str):
        lines = _split_lines(lines)
    numbered = list(enumerate(lines, start=1))

    venues: list[Venue] = []
    seen: set[Venue] = set()
    position = 0
    while position < len(numbered):
        name_line, name = numbered[position]
        if not name:
            raise VenueFormatError("venue name must not be empty", name_line)
        position += 1

        if position >= len(numbered):
            raise VenueFormatError("missing venue capacity", name_line + 1)
        capacity_line, capacity_text = numbered[position]
        capacity = _parse_positive_int(capacity_text, "venue capacity", capacity_line)
        position += 1

        volumes: dict[Corridor, int] = {}
        while True:
            if position >= len(numbered):
                last_line = numbered[-1][0]
                raise VenueFormatError(
                    f"venue {name!r} is not terminated by an empty line",
                    last_line + 1,
                )
            line_number, line = numbered[position]
            position += 1
            if line == "":
                break
            corridor, traffic = _parse_corridor_line(line, capacity, line_number)
            if corridor in volumes:
                raise VenueFormatError(
                    f"corridor {corridor.start}, {corridor.end} repeated for venue {name!r}",
                    line_number,
                )
            volumes[corridor] = traffic

        venue = Venue(name, capacity, Traffic(volumes))
        if venue in seen:
            raise VenueFormatError(f"duplicate venue {name!r}", name_line)
        seen.add(venue)
        venues.append(venue)

    logger.debug("Parsed venue description | venues=%s", len(venues))
    return venues


def read_venues(path: Union[str, Path]) -> list[Venue]:
    """Read venues from ``path`` in file order; I/O failures propagate as ``OSError``."""
    content = Path(path).read_text(encoding="utf-8")
    venues = parse_venues(content)
    logger.info("Venues loaded | path=%s | venues=%s", path, len(venues))
    return venues
