import random
from collections import Counter

import pytest

from discovery_client.errors import InvalidArgument
from discovery_client.registry import Endpoint
from discovery_client.selection import select_one


class _ExplodingRandom(random.Random):
    def choice(self, seq):  # type: ignore[override]
        raise AssertionError("randomness must not be used for a single endpoint")


def _endpoints(count: int) -> list[Endpoint]:
    return [Endpoint(address=f"10.0.0.{index}", port=8080, id=f"svc-{index}") for index in range(count)]


def test_single_endpoint_is_returned_without_randomness() -> None:
    (only,) = _endpoints(1)
    assert select_one([only], rng=_ExplodingRandom()) is only


def test_selection_is_roughly_uniform() -> None:
    endpoints = _endpoints(4)
    rng = random.Random(1234)
    trials = 8000

    counts = Counter(select_one(endpoints, rng=rng).full_address for _ in range(trials))

    assert set(counts) == {endpoint.full_address for endpoint in endpoints}
    expected = trials / len(endpoints)
    for count in counts.values():
        assert abs(count - expected) < expected * 0.1


def test_empty_input_is_rejected() -> None:
    with pytest.raises(InvalidArgument):
        select_one([])
