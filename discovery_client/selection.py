"""Endpoint selection: uniform random choice, no affinity or weighting."""

import random
from typing import Sequence

from discovery_client.errors import InvalidArgument
from discovery_client.registry import Endpoint


def select_one(endpoints: Sequence[Endpoint], *, rng: random.Random | None = None) -> Endpoint:
    """Pick one endpoint. Every call is independent of the previous ones."""
    if not endpoints:
        raise InvalidArgument("endpoints must contain at least one endpoint.")
    if len(endpoints) == 1:
        return endpoints[0]
    return (rng or random).choice(endpoints)
