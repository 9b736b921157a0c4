"""Card and draw-sequence generation.

Cards are derived from their identity tuple so they can be regenerated at
any time and always come out the same. The draw sequence is the opposite:
it comes from the system entropy source so the draw order cannot be
predicted from anything a player can see.
"""

import hashlib
import random
from typing import Callable, List, Optional

FREE = 0
CENTER = 12
NUMBERS = range(1, 76)
# B: 1-15, I: 16-30, N: 31-45, G: 46-60, O: 61-75
COLUMN_RANGES = [(1, 15), (16, 30), (31, 45), (46, 60), (61, 75)]

_MASK32 = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


def mulberry32(seed: int) -> Callable[[], float]:
    """Small deterministic PRNG returning floats in [0, 1)."""
    state = seed & _MASK32

    def rnd() -> float:
        nonlocal state
        state = (state + 0x6D2B79F5) & _MASK32
        t = _imul(state ^ (state >> 15), state | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / 4294967296

    return rnd


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode('utf-8')).hexdigest()


def card_seed(room_id, round_id, player_id, card_number: int, free_center: bool = True) -> int:
    key = f"{room_id}:{round_id}:{player_id}:card{card_number}:free{1 if free_center else 0}"
    return int(sha256_hex(key)[:8], 16)


def _shuffle(items: List[int], rnd: Callable[[], float]) -> List[int]:
    for i in range(len(items) - 1, 0, -1):
        j = int(rnd() * (i + 1))
        items[i], items[j] = items[j], items[i]
    return items


def _sample_column(low: int, high: int, count: int, rnd: Callable[[], float]) -> List[int]:
    pool = _shuffle(list(range(low, high + 1)), rnd)
    return sorted(pool[:count])


def generate_card(room_id, round_id, player_id, card_number: int, free_center: bool = True) -> List[int]:
    """Build the 25 numbers of a card, row-major, with FREE (0) at the center if enabled.

    Identical inputs always produce the identical card.
    """
    rnd = mulberry32(card_seed(room_id, round_id, player_id, card_number, free_center))
    card = [FREE] * 25
    for col, (low, high) in enumerate(COLUMN_RANGES):
        with_free = free_center and col == 2
        column = _sample_column(low, high, 4 if with_free else 5, rnd)
        if with_free:
            column.insert(2, FREE)
        for row, value in enumerate(column):
            card[row * 5 + col] = value
    return card


def card_hash(numbers: List[int]) -> str:
    return sha256_hex(','.join(str(n) for n in numbers))


def column_for(number: int) -> int:
    if number not in NUMBERS:
        raise ValueError(f"Invalid bingo number: {number}")
    return (number - 1) // 15


def letter_for(number: int) -> str:
    return 'BINGO'[column_for(number)]


def generate_draw_sequence(rng: Optional[random.Random] = None) -> List[int]:
    """Shuffle 1..75 into a fresh draw order (Fisher-Yates).

    Uses ``random.SystemRandom`` unless an explicit generator is supplied.
    """
    rng = rng or random.SystemRandom()
    numbers = list(NUMBERS)
    for i in range(len(numbers) - 1, 0, -1):
        j = rng.randrange(i + 1)
        numbers[i], numbers[j] = numbers[j], numbers[i]
    return numbers
