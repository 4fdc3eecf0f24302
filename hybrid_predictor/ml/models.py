"""
Model Scorers - The four heuristics combined by the hybrid engine.

Each scorer has the same signature:

    scorer(state, history, last, direction) -> np.array of shape (37,)

and returns an UNNORMALIZED, non-negative score per outcome number.
An all-zero vector means "no opinion yet"; the normalizer turns it into
the uniform distribution.

  - average_distance: triangular bump around the pocket reached by the
    mean recent travel distance in the given direction
  - markov_chain:     raw transition counts out of the last number
  - hot_zone:         occurrence counts over the last HOT_ZONE_WINDOW spins
  - momentum:         average_distance amplified by its own accuracy
"""

import math
from collections import Counter, deque

import numpy as np

from config import (
    TOTAL_NUMBERS, DIRECTIONS, MODEL_KEYS, MODEL_NAMES,
    INITIAL_MODEL_WEIGHT, AVG_DIST_WINDOW, AVG_DIST_SPREAD, HOT_ZONE_WINDOW,
)
from hybrid_predictor.ml.wheel import index_of, ring_distance


# ─── Model State ──────────────────────────────────────────────────────

class ModelState:
    """Accuracy and weight bookkeeping shared by every model."""

    def __init__(self, key, weight=INITIAL_MODEL_WEIGHT, accuracy=0.0, hits=0, spins=0):
        self.key = key
        self.name = MODEL_NAMES[key]
        self.weight = weight
        self.accuracy = accuracy
        self.hits = hits
        self.spins = spins

    def to_dict(self):
        return {
            'name': self.name,
            'weight': float(self.weight),
            'accuracy': float(self.accuracy),
            'hits': int(self.hits),
            'spins': int(self.spins),
        }

    @classmethod
    def from_dict(cls, key, data):
        model = cls(
            key,
            weight=float(data.get('weight', INITIAL_MODEL_WEIGHT)),
            accuracy=float(data.get('accuracy', 0.0)),
            hits=int(data.get('hits', 0)),
            spins=int(data.get('spins', 0)),
        )
        model._validate()
        model._load_extra(data)
        return model

    def _validate(self):
        if not 0.0 <= self.weight <= 1.0:
            raise ValueError(f'{self.key}: weight {self.weight} outside [0, 1]')
        if self.spins < 0 or not 0 <= self.hits <= self.spins:
            raise ValueError(f'{self.key}: {self.hits} hits over {self.spins} spins')
        if not 0.0 <= self.accuracy <= 1.0:
            raise ValueError(f'{self.key}: accuracy {self.accuracy} outside [0, 1]')

    def _load_extra(self, data):
        pass


class AverageDistanceState(ModelState):
    """Keeps the last AVG_DIST_WINDOW travel distances per direction."""

    def __init__(self, key='average_distance', **kwargs):
        super().__init__(key, **kwargs)
        self.distances = {d: deque(maxlen=AVG_DIST_WINDOW) for d in DIRECTIONS}

    def to_dict(self):
        data = super().to_dict()
        data['distances'] = {d: list(self.distances[d]) for d in DIRECTIONS}
        return data

    def _load_extra(self, data):
        stored = data.get('distances', {})
        if not isinstance(stored, dict):
            raise ValueError('distances must be a mapping of direction to list')
        for d in DIRECTIONS:
            values = [int(x) for x in stored.get(d, [])]
            if any(x < 0 or x >= TOTAL_NUMBERS for x in values):
                raise ValueError(f'{d} distances must be in [0, {TOTAL_NUMBERS - 1}]')
            # maxlen keeps only the newest entries if the stored list is too long
            self.distances[d] = deque(values, maxlen=AVG_DIST_WINDOW)


class MarkovChainState(ModelState):
    """First-order transition counts: matrix[prev][next]."""

    def __init__(self, key='markov_chain', **kwargs):
        super().__init__(key, **kwargs)
        self.transition_matrix = np.zeros((TOTAL_NUMBERS, TOTAL_NUMBERS), dtype=np.int64)

    def to_dict(self):
        data = super().to_dict()
        data['transition_matrix'] = self.transition_matrix.tolist()
        return data

    def _load_extra(self, data):
        if 'transition_matrix' not in data:
            return
        matrix = np.asarray(data['transition_matrix'], dtype=np.int64)
        if matrix.shape != (TOTAL_NUMBERS, TOTAL_NUMBERS):
            raise ValueError(f'transition matrix must be {TOTAL_NUMBERS}x{TOTAL_NUMBERS}, '
                             f'got {matrix.shape}')
        if (matrix < 0).any():
            raise ValueError('transition matrix has negative counts')
        self.transition_matrix = matrix


# Hot zone and momentum carry no state beyond the shared bookkeeping.
MODEL_STATE_CLASSES = {
    'average_distance': AverageDistanceState,
    'markov_chain': MarkovChainState,
    'hot_zone': ModelState,
    'momentum': ModelState,
}


# ─── Scorers ──────────────────────────────────────────────────────────

def _distance_bump(model, last, direction):
    scores = np.zeros(TOTAL_NUMBERS)
    if last is None:
        return scores

    window = model.distances[direction]
    if not window:
        return scores

    # Half-up rounding; distances are never negative
    mean_distance = int(math.floor(sum(window) / len(window) + 0.5))
    anchor_pos = (index_of(last.number) + mean_distance) % TOTAL_NUMBERS

    for num in range(TOTAL_NUMBERS):
        scores[num] = max(0, AVG_DIST_SPREAD - ring_distance(index_of(num), anchor_pos))
    return scores


def score_average_distance(state, history, last, direction):
    return _distance_bump(state.average_distance, last, direction)


def score_markov_chain(state, history, last, direction):
    if last is None:
        return np.zeros(TOTAL_NUMBERS)
    return state.markov_chain.transition_matrix[last.number].astype(float)


def score_hot_zone(state, history, last, direction):
    scores = np.zeros(TOTAL_NUMBERS)
    counts = Counter(obs.number for obs in history[-HOT_ZONE_WINDOW:])
    for num, count in counts.items():
        scores[num] = count
    return scores


def score_momentum(state, history, last, direction):
    avg_scores = score_average_distance(state, history, last, direction)
    return avg_scores * (1.0 + state.average_distance.accuracy)


SCORERS = {
    'average_distance': score_average_distance,
    'markov_chain': score_markov_chain,
    'hot_zone': score_hot_zone,
    'momentum': score_momentum,
}


def score_all(state, history, direction):
    """Raw score vector of every model, keyed by model key in MODEL_KEYS order."""
    history = list(history)
    last = history[-1] if history else None
    return {key: SCORERS[key](state, history, last, direction) for key in MODEL_KEYS}
