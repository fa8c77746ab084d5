"""
Team PIN generation

PINs are 6-digit numeric strings, unique within a group only. The same PIN
may be held by teams in different groups.
"""
import logging
import random
import time
from typing import Callable, Iterable, Optional

from assessment_server.core.groups import normalize_group
from assessment_server.models import Team


logger = logging.getLogger(__name__)

PIN_MIN = 100000
PIN_MAX = 999999
MAX_ATTEMPTS = 100


def generate_pin(rng: Optional[random.Random] = None) -> str:
    """Uniformly random PIN in 100000-999999"""
    rng = rng or random
    return str(rng.randint(PIN_MIN, PIN_MAX))


def generate_unique_pin(
    teams: Iterable[Team],
    group: str,
    rng: Optional[random.Random] = None,
    clock: Callable[[], float] = time.time,
) -> str:
    """
    Generate a PIN not already held by a team in the same group

    After MAX_ATTEMPTS collisions, falls back to the last 6 digits of the
    current millisecond timestamp. That fallback is not checked for
    uniqueness.

    Args:
        teams: Existing teams (all groups)
        group: Target group
        rng: Random source (tests pass a seeded one)
        clock: Time source in seconds

    Returns:
        6-character PIN string
    """
    target = normalize_group(group)
    taken = {t.pin for t in teams if normalize_group(t.group) == target}

    for _ in range(MAX_ATTEMPTS):
        pin = generate_pin(rng)
        if pin not in taken:
            return pin

    pin = str(int(clock() * 1000))[-6:]
    logger.warning(f"PIN space crowded in group {target}; using timestamp fallback {pin}")
    return pin
