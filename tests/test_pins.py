"""
Tests for team PIN generation
"""
import random

from assessment_server.core.pins import MAX_ATTEMPTS, generate_pin, generate_unique_pin
from assessment_server.models import Team


class FixedRandom:
    """Returns the same integer every time"""

    def __init__(self, value):
        self.value = value
        self.calls = 0

    def randint(self, a, b):
        self.calls += 1
        return self.value


class SequenceRandom:
    def __init__(self, values):
        self.values = list(values)

    def randint(self, a, b):
        return self.values.pop(0)


def test_generate_pin_format():
    """PINs are 6-digit strings in 100000-999999"""
    rng = random.Random(7)
    for _ in range(500):
        pin = generate_pin(rng)
        assert len(pin) == 6
        assert pin.isdigit()
        assert 100000 <= int(pin) <= 999999


def test_unique_pin_skips_taken_in_group():
    """A PIN held in the same group is retried"""
    teams = [Team(id="t1", name="A", group="g", pin="111111")]
    pin = generate_unique_pin(teams, "g", rng=SequenceRandom([111111, 222222]))
    assert pin == "222222"


def test_unique_pin_allows_reuse_across_groups():
    """PINs are only unique per group"""
    teams = [Team(id="t1", name="A", group="other", pin="111111")]
    assert generate_unique_pin(teams, "g", rng=FixedRandom(111111)) == "111111"


def test_unique_pin_never_collides_in_group():
    """Many PINs in one group stay distinct"""
    rng = random.Random(3)
    teams = []
    for i in range(200):
        pin = generate_unique_pin(teams, "g", rng=rng)
        teams.append(Team(id=str(i), name=f"T{i}", group="g", pin=pin))
    assert len({t.pin for t in teams}) == 200


def test_unique_pin_timestamp_fallback():
    """After MAX_ATTEMPTS collisions the timestamp's last 6 digits are used"""
    teams = [Team(id="t1", name="A", group="default", pin="111111")]
    rng = FixedRandom(111111)
    pin = generate_unique_pin(teams, "", rng=rng, clock=lambda: 1700000123.0)
    assert rng.calls == MAX_ATTEMPTS
    assert pin == "123000"
