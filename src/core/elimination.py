"""
Single elimination helpers shared by the double elimination engine.

Covers shuffling the entrants, pairing a flat list into head-to-head slots and
naming knockout rounds.
"""
import math
import random
from typing import List, Optional, Sequence, Tuple, TypeVar

T = TypeVar('T')


def get_round_name(teams_in_round: int) -> str:
    """Get the name of a round based on number of teams."""
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"


def calculate_rounds(bracket_size: int) -> int:
    """Number of knockout rounds needed to go from bracket_size entrants to one."""
    if bracket_size < 2:
        return 0
    return int(math.log2(bracket_size))


def shuffle_array(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """
    Return a shuffled copy of items (Fisher-Yates). The input is left untouched.

    Pass a seeded random.Random to get a reproducible order.
    """
    if rng is None:
        rng = random.Random()
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randrange(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def pair_consecutive(items: Sequence[T]) -> List[Tuple[T, T]]:
    """
    Pair items as (0, 1), (2, 3), ...

    A trailing odd item has no opponent and is dropped.
    """
    return [(items[i * 2], items[i * 2 + 1]) for i in range(len(items) // 2)]
