"""
Hybrid Engine - Combines the four model scorers into one distribution and
adapts each model's weight to its own hit record.

Every public operation is a pure function of its arguments:
  - predict() never touches the state it is given
  - record_observation() deep-copies the prior state and returns the copy

so one engine can serve any number of independent sessions.

Per-spin flow (the caller drives it):
  1. state = record_observation(state, history, new_obs)
  2. history.append(new_obs)
  3. prediction = predict(state, history, next_direction)
"""

import copy

import numpy as np

from config import (
    TOTAL_NUMBERS, MODEL_KEYS, LEARNING_RATE, TOP_PREDICTIONS_COUNT,
)
from hybrid_predictor.ml.models import MODEL_STATE_CLASSES, score_all
from hybrid_predictor.ml.wheel import circular_distance


# ─── Engine State ─────────────────────────────────────────────────────

class EngineState:
    """Aggregate of all model states. Treat as a value: copy before changing."""

    def __init__(self, models=None):
        if models is None:
            models = {key: MODEL_STATE_CLASSES[key](key) for key in MODEL_KEYS}
        self.models = models

    @property
    def average_distance(self):
        return self.models['average_distance']

    @property
    def markov_chain(self):
        return self.models['markov_chain']

    def weights(self):
        return {key: self.models[key].weight for key in MODEL_KEYS}

    def copy(self):
        return copy.deepcopy(self)

    def to_dict(self):
        return {key: self.models[key].to_dict() for key in MODEL_KEYS}

    @classmethod
    def from_dict(cls, data):
        """Restore from to_dict() output. Raises ValueError on malformed data."""
        if not isinstance(data, dict):
            raise ValueError('engine state must be a mapping')
        models = {}
        for key in MODEL_KEYS:
            model_data = data.get(key, {})
            if not isinstance(model_data, dict):
                raise ValueError(f'model state for {key} must be a mapping')
            models[key] = MODEL_STATE_CLASSES[key].from_dict(key, model_data)
        weight_sum = sum(models[key].weight for key in MODEL_KEYS)
        if abs(weight_sum - 1.0) > 1e-6:
            raise ValueError(f'model weights sum to {weight_sum}, expected 1')
        return cls(models)


def create_initial_state():
    """Default state: equal weights, no hits, empty windows, zero matrix."""
    return EngineState()


# ─── Normalizer & Combiner ────────────────────────────────────────────

def normalize(scores):
    """Scale a non-negative score vector to sum to 1; all-zero → uniform."""
    scores = np.asarray(scores, dtype=float)
    total = scores.sum()
    if total == 0:
        return np.full(TOTAL_NUMBERS, 1.0 / TOTAL_NUMBERS)
    return scores / total


def top_k(probabilities, k=TOP_PREDICTIONS_COUNT):
    """Highest-probability numbers; ties go to the lower number."""
    order = np.argsort(-np.asarray(probabilities, dtype=float), kind='stable')
    return [int(n) for n in order[:k]]


def combine(raw_scores, weights):
    """Weighted sum of the normalized model vectors, normalized again."""
    combined = np.zeros(TOTAL_NUMBERS)
    for key in MODEL_KEYS:
        combined += normalize(raw_scores[key]) * weights[key]
    return normalize(combined)


def predict(state, history, next_direction):
    """Probability of every number on the next spin plus the top-12 set.

    Returns:
        dict with 'probabilities' (37 floats summing to 1) and
        'top12' (12 distinct numbers, most probable first)
    """
    raw_scores = score_all(state, history, next_direction)
    probs = combine(raw_scores, state.weights())
    return {
        'probabilities': [float(p) for p in probs],
        'top12': top_k(probs),
    }


# ─── Adaptive Weight Updater ──────────────────────────────────────────

def evaluate_models(state, history, observation):
    """Which models had the observed number as their single top pick.

    Uses the state and history as they were BEFORE the observation.
    argmax takes the first maximum, so an all-zero vector picks 0.
    """
    raw_scores = score_all(state, history, observation.direction)
    return {
        key: int(np.argmax(raw_scores[key])) == observation.number
        for key in MODEL_KEYS
    }


def _update_weights(state, hits):
    total_accuracy = 0.0
    for key in MODEL_KEYS:
        model = state.models[key]
        model.spins += 1
        if hits.get(key):
            model.hits += 1
        model.accuracy = model.hits / model.spins if model.spins > 0 else 0.0
        total_accuracy += model.accuracy

    # Nobody has ever hit: leave weights where they are
    if total_accuracy > 0:
        for key in MODEL_KEYS:
            model = state.models[key]
            target_weight = model.accuracy / total_accuracy
            model.weight = model.weight * (1 - LEARNING_RATE) + target_weight * LEARNING_RATE

    weight_sum = sum(state.models[key].weight for key in MODEL_KEYS)
    if weight_sum > 0:
        for key in MODEL_KEYS:
            state.models[key].weight /= weight_sum
    return state


def apply_round(state, hits):
    """Score one round of hits/misses and move weights toward accuracy share.

    Args:
        state: EngineState (not modified)
        hits: dict model key → bool

    Returns:
        new EngineState
    """
    return _update_weights(state.copy(), hits)


def record_observation(state, prior_history, new_observation):
    """Learn from one newly revealed spin.

    Args:
        state: EngineState before the spin (not modified)
        prior_history: observations recorded so far, excluding new_observation
        new_observation: the spin just revealed

    Returns:
        new EngineState. Does not predict; call predict() afterwards.
    """
    prior_history = list(prior_history)
    updated = state.copy()
    last = prior_history[-1] if prior_history else None

    if last is not None:
        distance = circular_distance(last.number, new_observation.number,
                                     new_observation.direction)
        # deque(maxlen) drops the oldest distance once the window is full
        updated.average_distance.distances[new_observation.direction].append(distance)
        updated.markov_chain.transition_matrix[last.number, new_observation.number] += 1

    hits = evaluate_models(state, prior_history, new_observation)
    return _update_weights(updated, hits)


def replay(observations, state=None):
    """Fold record_observation over a sequence of spins."""
    if state is None:
        state = create_initial_state()
    history = []
    for obs in observations:
        state = record_observation(state, history, obs)
        history.append(obs)
    return state


def run_test(observations):
    """Walk-forward test: predict each spin before learning from it.

    The prediction for a spin uses that spin's recorded direction.

    Returns:
        dict with hybrid top-12 hit counts and the final per-model status
    """
    observations = list(observations)
    state = create_initial_state()
    history = []
    top12_hits = 0
    details = []

    for obs in observations:
        prediction = predict(state, history, obs.direction)
        hit = obs.number in prediction['top12']
        if hit:
            top12_hits += 1
        details.append({
            'spin': obs.spin_number,
            'actual': obs.number,
            'direction': obs.direction,
            'predicted_top12': prediction['top12'],
            'hit': hit,
        })
        state = record_observation(state, history, obs)
        history.append(obs)

    total = len(observations)
    return {
        'total_spins': total,
        'top12_hits': top12_hits,
        'top12_accuracy': round(top12_hits / total * 100, 1) if total else 0.0,
        'expected_random': round(TOP_PREDICTIONS_COUNT / TOTAL_NUMBERS * 100, 1),
        'models': get_model_status(state),
        'details': details[-20:],
        'state': state,
    }


def get_model_status(state):
    """Per-model weight and accuracy for dashboards and reports."""
    return [
        {
            'key': key,
            'name': state.models[key].name,
            'weight': round(float(state.models[key].weight), 4),
            'accuracy': round(float(state.models[key].accuracy), 4),
            'hits': int(state.models[key].hits),
            'spins': int(state.models[key].spins),
        }
        for key in MODEL_KEYS
    ]
