"""Domain models for venue allocation under shared corridor capacity."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class Location:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Corridor:
    """Directed transit link; identity is the (start, end) pair only."""

    start: Location
    end: Location
    capacity: int = field(compare=False)

    def __post_init__(self) -> None:
        if self.capacity <= 0:
            raise ValueError("corridor capacity must be > 0")

    @property
    def key(self) -> tuple[str, str]:
        return (self.start.name, self.end.name)

    def __str__(self) -> str:
        return f"{self.start}, {self.end}, {self.capacity}"


class Traffic(Mapping[Corridor, int]):
    """Per-venue corridor traffic generated by a maximum-size event.

    Immutable; equality and hashing use the canonical corridor ordering so
    two profiles built in different insertion orders compare equal.
    """

    __slots__ = ("_volumes", "_hash")

    def __init__(self, volumes: Mapping[Corridor, int] | Iterable[tuple[Corridor, int]] = ()) -> None:
        items = volumes.items() if isinstance(volumes, Mapping) else volumes
        resolved: dict[Corridor, int] = {}
        for corridor, volume in items:
            if corridor in resolved:
                raise ValueError(f"corridor {corridor} appears more than once")
            if volume <= 0:
                raise ValueError(f"traffic on corridor {corridor} must be > 0")
            if volume > corridor.capacity:
                raise ValueError(
                    f"traffic {volume} exceeds capacity of corridor {corridor}"
                )
            resolved[corridor] = volume
        self._volumes = resolved
        self._hash: int | None = None

    def canonical_items(self) -> list[tuple[Corridor, int]]:
        return sorted(self._volumes.items(), key=lambda item: item[0].key)

    def __getitem__(self, corridor: Corridor) -> int:
        return self._volumes[corridor]

    def __iter__(self) -> Iterator[Corridor]:
        return iter(self._volumes)

    def __len__(self) -> int:
        return len(self._volumes)

    def _identity(self) -> tuple[tuple[tuple[str, str], int, int], ...]:
        # Corridor equality ignores capacity; duplicate profiles must match it too.
        return tuple(
            (corridor.key, corridor.capacity, volume)
            for corridor, volume in self.canonical_items()
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Traffic):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(self._identity())
        return self._hash

    def __repr__(self) -> str:
        inner = ", ".join(f"{corridor}: {volume}" for corridor, volume in self.canonical_items())
        return f"Traffic({{{inner}}})"


@dataclass(frozen=True)
class Venue:
    name: str
    capacity: int
    traffic: Traffic = field(default_factory=Traffic)

    def __post_init__(self) -> None:
        if not isinstance(self.traffic, Traffic):
            object.__setattr__(self, "traffic", Traffic(self.traffic))
        if not self.name:
            raise ValueError("venue name must be non-empty")
        if self.capacity <= 0:
            raise ValueError("venue capacity must be > 0")
        for corridor, volume in self.traffic.items():
            if volume > self.capacity:
                raise ValueError(
                    f"traffic {volume} on corridor {corridor} exceeds capacity of venue {self.name!r}"
                )


@dataclass(frozen=True)
class Event:
    """Activity needing a venue; two events with the same name are the same event."""

    name: str
    size: int = field(compare=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("event name must be non-empty")
        if self.size <= 0:
            raise ValueError("event size must be > 0")


class Allocation(Mapping[Event, Venue]):
    """Immutable event-to-venue assignment usable as a set member."""

    __slots__ = ("_assignments", "_hash")

    def __init__(self, assignments: Mapping[Event, Venue] | Iterable[tuple[Event, Venue]] = ()) -> None:
        items = assignments.items() if isinstance(assignments, Mapping) else assignments
        self._assignments: dict[Event, Venue] = dict(items)
        self._hash: int | None = None

    def __getitem__(self, event: Event) -> Venue:
        return self._assignments[event]

    def __iter__(self) -> Iterator[Event]:
        return iter(self._assignments)

    def __len__(self) -> int:
        return len(self._assignments)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Allocation):
            return NotImplemented
        return self._assignments == other._assignments

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(frozenset(self._assignments.items()))
        return self._hash

    def __repr__(self) -> str:
        inner = ", ".join(f"{event.name!r}: {venue.name!r}" for event, venue in self._assignments.items())
        return f"Allocation({{{inner}}})"


@dataclass(frozen=True)
class AllocationFound:
    allocation: Allocation

    @property
    def found(self) -> bool:
        return True


@dataclass(frozen=True)
class NoSolution:
    @property
    def found(self) -> bool:
        return False


AllocationOutcome = Union[AllocationFound, NoSolution]
