"""
Observations - One recorded spin: outcome number, spin direction and its
position in the session. Validation happens here, at the boundary, so the
engine can assume well-formed input.
"""

import uuid
from collections import namedtuple

from config import TOTAL_NUMBERS, DIRECTIONS, DIRECTION_CW, DIRECTION_CCW


class InvalidSpinError(ValueError):
    """Raised when a spin number or direction is outside the accepted range."""


class Observation(namedtuple('Observation', ['spin_number', 'number', 'direction', 'id'])):
    __slots__ = ()

    def to_dict(self):
        return {
            'id': self.id,
            'spin_number': self.spin_number,
            'number': self.number,
            'direction': self.direction,
        }

    @classmethod
    def from_dict(cls, data):
        return make_observation(
            data['spin_number'], data['number'], data['direction'],
            observation_id=data.get('id'),
        )


def parse_number(value):
    """Coerce user input to an outcome number in [0, 36]."""
    if isinstance(value, bool):
        raise InvalidSpinError(f'Invalid number {value!r}. Enter 0-36.')
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidSpinError(f'Invalid number {value!r}. Enter 0-36.')
    if isinstance(value, float) and value != number:
        raise InvalidSpinError(f'Invalid number {value!r}. Enter 0-36.')
    if number < 0 or number >= TOTAL_NUMBERS:
        raise InvalidSpinError(f'Invalid number {number}. Enter 0-36.')
    return number


def parse_direction(value):
    """Accept 'CW'/'CCW' in any case; anything else is rejected."""
    if isinstance(value, str):
        direction = value.strip().upper()
        if direction in DIRECTIONS:
            return direction
    raise InvalidSpinError(f'Invalid direction {value!r}. Use CW or CCW.')


def opposite_direction(direction):
    return DIRECTION_CCW if direction == DIRECTION_CW else DIRECTION_CW


def parse_spin_text(raw_text):
    """Parse pasted spin data into (number, direction) pairs.

    Numbers are separated by newlines, commas or spaces. A CW/CCW token
    right after a number sets that spin's direction; spins without one get
    None (the caller alternates). Other tokens are skipped.

    Returns:
        (entries, skipped) where skipped lists the rejected tokens
    """
    entries = []
    skipped = []
    tokens = raw_text.replace(',', ' ').split()
    for token in tokens:
        upper = token.upper()
        if upper in DIRECTIONS:
            if entries and entries[-1][1] is None:
                entries[-1] = (entries[-1][0], upper)
            else:
                skipped.append(token)
            continue
        try:
            entries.append((parse_number(token), None))
        except InvalidSpinError:
            skipped.append(token)
    return entries, skipped


def make_observation(spin_number, number, direction, observation_id=None):
    """Build a validated, immutable Observation."""
    if isinstance(spin_number, bool) or not isinstance(spin_number, int) or spin_number < 1:
        raise InvalidSpinError(f'Invalid spin number {spin_number!r}.')
    return Observation(
        spin_number=spin_number,
        number=parse_number(number),
        direction=parse_direction(direction),
        id=observation_id or uuid.uuid4().hex,
    )


def build_observations(entries, first_spin=1, direction=DIRECTION_CW):
    """Turn (number, direction-or-None) pairs into consecutive Observations.

    A missing direction is the opposite of the previous spin's; `direction`
    is what the first spin gets if it has none. Validates every entry before
    returning, so a bad entry rejects the whole batch.
    """
    observations = []
    for offset, (number, entry_direction) in enumerate(entries):
        if entry_direction is not None:
            direction = parse_direction(entry_direction)
        observations.append(make_observation(first_spin + offset, number, direction))
        direction = opposite_direction(direction)
    return observations
