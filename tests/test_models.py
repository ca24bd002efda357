from __future__ import annotations

import pytest

from planner.domain.models import (
    Allocation,
    AllocationFound,
    Corridor,
    Event,
    Location,
    NoSolution,
    Traffic,
    Venue,
)


def _corridor(start: str, end: str, capacity: int) -> Corridor:
    return Corridor(Location(start), Location(end), capacity)


def test_corridor_identity_ignores_capacity() -> None:
    assert _corridor("X", "Y", 60) == _corridor("X", "Y", 90)
    assert hash(_corridor("X", "Y", 60)) == hash(_corridor("X", "Y", 90))


def test_corridor_direction_matters() -> None:
    assert _corridor("X", "Y", 60) != _corridor("Y", "X", 60)


def test_corridor_rejects_non_positive_capacity() -> None:
    with pytest.raises(ValueError):
        _corridor("X", "Y", 0)


def test_traffic_equality_is_order_independent() -> None:
    first = Traffic({_corridor("X", "Y", 60): 10, _corridor("Y", "Z", 40): 5})
    second = Traffic({_corridor("Y", "Z", 40): 5, _corridor("X", "Y", 60): 10})

    assert first == second
    assert hash(first) == hash(second)


def test_traffic_distinguishes_declared_corridor_capacity() -> None:
    assert Traffic({_corridor("X", "Y", 60): 10}) != Traffic({_corridor("X", "Y", 70): 10})


def test_traffic_rejects_invalid_volumes() -> None:
    with pytest.raises(ValueError):
        Traffic({_corridor("X", "Y", 60): 0})
    with pytest.raises(ValueError):
        Traffic({_corridor("X", "Y", 60): 61})
    with pytest.raises(ValueError):
        Traffic([(_corridor("X", "Y", 60), 5), (_corridor("X", "Y", 80), 6)])


def test_venue_equality_uses_full_value() -> None:
    traffic = Traffic({_corridor("X", "Y", 60): 10})

    assert Venue("Hall", 100, traffic) == Venue("Hall", 100, Traffic({_corridor("X", "Y", 60): 10}))
    assert Venue("Hall", 100, traffic) != Venue("Hall", 90, traffic)
    assert Venue("Hall", 100, traffic) != Venue("Hall", 100, Traffic())
    assert len({Venue("Hall", 100, traffic), Venue("Hall", 100, traffic)}) == 1


def test_venue_accepts_plain_mapping_as_traffic() -> None:
    corridor = _corridor("X", "Y", 60)
    venue = Venue("Hall", 100, {corridor: 60})

    assert isinstance(venue.traffic, Traffic)
    assert venue == Venue("Hall", 100, Traffic({corridor: 60}))
    assert len({venue}) == 1
    with pytest.raises(ValueError):
        Venue("Hall", 100, {corridor: 0})


def test_venue_invariants() -> None:
    with pytest.raises(ValueError):
        Venue("", 100)
    with pytest.raises(ValueError):
        Venue("Hall", 0)
    with pytest.raises(ValueError):
        Venue("Hall", 20, Traffic({_corridor("X", "Y", 60): 30}))


def test_event_identity_is_name() -> None:
    assert Event("Expo", 10) == Event("Expo", 99)
    with pytest.raises(ValueError):
        Event("", 10)
    with pytest.raises(ValueError):
        Event("Expo", 0)


def test_allocation_is_a_hashable_value() -> None:
    hall = Venue("Hall", 100)
    club = Venue("Club", 30)
    first = Allocation({Event("A", 10): hall, Event("B", 20): club})
    second = Allocation([(Event("B", 20), club), (Event("A", 10), hall)])
    swapped = Allocation({Event("A", 10): club, Event("B", 20): hall})

    assert first == second
    assert len({first, second, swapped}) == 2
    assert first[Event("A", 10)] == hall
    assert len(Allocation()) == 0


def test_outcome_variants() -> None:
    assert AllocationFound(Allocation()).found is True
    assert NoSolution().found is False
    assert NoSolution() == NoSolution()
