"""
Wheel Geometry - Positions and circular distances on the physical wheel.
All distances are measured in pockets along WHEEL_ORDER, never by numeric
subtraction of the outcome values.
"""

from config import TOTAL_NUMBERS, WHEEL_ORDER, NUMBER_TO_POSITION, DIRECTION_CW


def index_of(number):
    """Wheel position of a number, or -1 if it is not on the wheel."""
    return NUMBER_TO_POSITION.get(number, -1)


def number_at(position):
    return WHEEL_ORDER[position % TOTAL_NUMBERS]


def circular_distance(from_number, to_number, direction):
    """Pockets travelled from one number to another in the given direction.

    CW counts forward along the wheel order, CCW counts backward.
    Result is always in [0, 36].
    """
    from_idx = index_of(from_number)
    to_idx = index_of(to_number)
    if direction == DIRECTION_CW:
        return (to_idx - from_idx + TOTAL_NUMBERS) % TOTAL_NUMBERS
    return (from_idx - to_idx + TOTAL_NUMBERS) % TOTAL_NUMBERS


def ring_distance(pos_a, pos_b):
    """Shortest pocket count between two wheel positions, either way round."""
    diff = abs(pos_a - pos_b) % TOTAL_NUMBERS
    return min(diff, TOTAL_NUMBERS - diff)
