from __future__ import annotations

import itertools
import random
from collections import defaultdict

import pytest

from planner.domain.constraints import scale_traffic
from planner.domain.models import Allocation, Corridor, Event, Location, Traffic, Venue


LOCATIONS = ("X", "Y", "Z")


def _brute_force(events, venues, rounding: str = "ceil") -> set[Allocation]:
    """Permutation-and-filter oracle computed without the search engine."""
    capacities: dict[tuple[str, str], int] = {}
    for venue in venues:
        for corridor in venue.traffic:
            current = capacities.get(corridor.key, corridor.capacity)
            capacities[corridor.key] = min(current, corridor.capacity)

    safe: set[Allocation] = set()
    for chosen in itertools.permutations(venues, len(events)):
        pairs = list(zip(events, chosen))
        if any(event.size > venue.capacity for event, venue in pairs):
            continue
        loads: dict[tuple[str, str], int] = defaultdict(int)
        for event, venue in pairs:
            for corridor, volume in venue.traffic.items():
                loads[corridor.key] += scale_traffic(volume, event.size, venue.capacity, rounding)
        if all(load <= capacities[key] for key, load in loads.items()):
            safe.add(Allocation(pairs))
    return safe


def _random_instance(seed: int, max_events: int = 4, max_venues: int = 4):
    rng = random.Random(seed)
    pairs = [(start, end) for start in LOCATIONS for end in LOCATIONS if start != end]

    venues: list[Venue] = []
    for index in range(rng.randint(0, max_venues)):
        capacity = rng.randint(10, 100)
        volumes: dict[Corridor, int] = {}
        for start, end in rng.sample(pairs, rng.randint(0, 3)):
            corridor_capacity = rng.randint(20, 120)
            corridor = Corridor(Location(start), Location(end), corridor_capacity)
            volumes[corridor] = rng.randint(1, min(corridor_capacity, capacity))
        venues.append(Venue(f"V{index}", capacity, Traffic(volumes)))

    events = [
        Event(f"E{index}", rng.randint(5, 100))
        for index in range(rng.randint(0, max_events))
    ]
    return events, venues


@pytest.fixture
def brute_force():
    return _brute_force


@pytest.fixture
def random_instance():
    return _random_instance

