"""
Game Session - Owns the spin history, the published prediction and the
running hybrid accuracy, and drives the engine once per recorded spin.

One GameSession per app (no module-level instance), so independent
sessions can coexist, e.g. one per test.
"""

import threading

from config import DIRECTION_CW, TOP_PREDICTIONS_COUNT, TOTAL_NUMBERS, get_number_color
from hybrid_predictor.ml.engine import (
    create_initial_state, predict, record_observation, replay, get_model_status,
)
from hybrid_predictor.ml.observation import (
    Observation, build_observations, make_observation, parse_direction, parse_number,
    opposite_direction,
)
from hybrid_predictor.session.state_store import StateStore


def _accuracy_entry(entry):
    """Validate one saved accuracy-history entry."""
    if not isinstance(entry, dict):
        raise ValueError(f'accuracy entry must be a mapping, got {entry!r}')
    for key in ('spin', 'accuracy', 'hits'):
        value = entry.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f'accuracy entry {key} must be numeric, got {value!r}')
    return {
        'spin': int(entry['spin']),
        'accuracy': float(entry['accuracy']),
        'hits': int(entry['hits']),
    }


class GameSession:
    def __init__(self, store=None):
        self.store = store if store is not None else StateStore()
        self.engine_state = create_initial_state()
        self.spins = []
        self.last_prediction = []
        self.accuracy_history = []
        self._lock = threading.Lock()

    # ─── Lifecycle ──────────────────────────────────────────────────────

    def load(self):
        """Restore from the store. Falls back to a fresh state on any failure."""
        with self._lock:
            saved = self.store.load()
            if saved is None:
                self._reset_memory()
                return False

            game_state, engine_state = saved
            try:
                spins = [Observation.from_dict(s) for s in game_state.get('spins', [])]
                last_prediction = [parse_number(n) for n in game_state.get('last_prediction', [])]
                accuracy_history = [
                    _accuracy_entry(e) for e in game_state.get('accuracy_history', [])
                ]
                if [s.spin_number for s in spins] != list(range(1, len(spins) + 1)):
                    raise ValueError('spin numbers must run 1..N in order')
                if len(accuracy_history) != len(spins):
                    raise ValueError(f'{len(accuracy_history)} accuracy entries for {len(spins)} spins')
            except (KeyError, TypeError, ValueError) as e:
                print(f"[Session] Saved game state is invalid ({e}), starting fresh")
                self._reset_memory()
                return False

            self.engine_state = engine_state
            self.spins = spins
            self.last_prediction = last_prediction
            self.accuracy_history = accuracy_history
            print(f"[Session] Restored session: {len(self.spins)} spins")
            return True

    def reset(self):
        """Forget everything, including the stored state."""
        with self._lock:
            self.store.clear()
            self._reset_memory()
        print("[RESET] Session cleared — fresh state")

    def _reset_memory(self):
        self.engine_state = create_initial_state()
        self.spins = []
        self.last_prediction = []
        self.accuracy_history = []

    def game_state(self):
        return {
            'spins': [s.to_dict() for s in self.spins],
            'last_prediction': list(self.last_prediction),
            'accuracy_history': [dict(entry) for entry in self.accuracy_history],
        }

    def save(self):
        return self.store.save(self.game_state(), self.engine_state)

    # ─── Spins ──────────────────────────────────────────────────────────

    @property
    def next_direction(self):
        """Dashboard alternates direction every spin, starting clockwise."""
        if not self.spins:
            return DIRECTION_CW
        return opposite_direction(self.spins[-1].direction)

    @property
    def hybrid_accuracy(self):
        if not self.accuracy_history:
            return 0.0
        return self.accuracy_history[-1]['accuracy']

    def _record(self, observation):
        self.engine_state = record_observation(self.engine_state, self.spins, observation)

        # Score the prediction that was on display before this spin
        hit = observation.number in self.last_prediction
        previous_hits = self.accuracy_history[-1]['hits'] if self.accuracy_history else 0
        hits = previous_hits + (1 if hit else 0)
        total = observation.spin_number
        self.accuracy_history.append({
            'spin': total,
            'accuracy': hits / total * 100,
            'hits': hits,
        })

        self.spins.append(observation)
        next_prediction = predict(self.engine_state, self.spins,
                                  opposite_direction(observation.direction))
        self.last_prediction = next_prediction['top12']
        return hit, next_prediction

    def record_spin(self, number, direction=None):
        """Record one spin, learn from it and publish the next prediction.

        Args:
            number: outcome 0-36 (int or numeric string)
            direction: 'CW' / 'CCW'; defaults to the alternating next direction

        Raises:
            InvalidSpinError: number or direction out of range
        """
        with self._lock:
            if direction is None:
                direction = self.next_direction
            observation = make_observation(len(self.spins) + 1, number, direction)
            hit, next_prediction = self._record(observation)
            result = {
                'spin': observation.to_dict(),
                'color': get_number_color(observation.number),
                'hit': hit,
                'next_direction': self.next_direction,
                'next_prediction': next_prediction,
                'hybrid_accuracy': round(self.hybrid_accuracy, 2),
                'model_status': get_model_status(self.engine_state),
                'saved': self.save(),
            }

        print(f"[Session] Spin #{observation.spin_number}: {observation.number} "
              f"{observation.direction} ({'HIT' if hit else 'miss'})")
        return result

    def import_spins(self, entries):
        """Record a batch of (number, direction) pairs in order.

        A direction of None alternates from the previous spin. The whole
        batch is validated before anything is recorded.
        """
        with self._lock:
            observations = build_observations(
                entries, first_spin=len(self.spins) + 1, direction=self.next_direction
            )
            hits = 0
            for observation in observations:
                hit, _ = self._record(observation)
                hits += 1 if hit else 0
            result = {
                'imported': len(observations),
                'hits': hits,
                'total_spins': len(self.spins),
                'saved': self.save() if observations else False,
            }

        print(f"[Session] Imported {len(observations)} spins ({hits} hybrid hits)")
        return result

    def undo_last(self):
        """Remove the last spin and rebuild engine state without it.

        Returns:
            the removed Observation, or None if there was nothing to undo
        """
        with self._lock:
            if not self.spins:
                return None

            removed = self.spins.pop()
            self.accuracy_history = self.accuracy_history[:len(self.spins)]
            # The engine is deterministic, so a replay reproduces the prior state
            self.engine_state = replay(self.spins)
            if self.spins:
                self.last_prediction = predict(
                    self.engine_state, self.spins, self.next_direction
                )['top12']
            else:
                self.last_prediction = []
            self.save()

        print(f"[Session] Undid spin #{removed.spin_number} ({removed.number})")
        return removed

    # ─── Views ──────────────────────────────────────────────────────────

    def current_prediction(self, direction=None):
        direction = parse_direction(direction) if direction is not None else self.next_direction
        prediction = predict(self.engine_state, self.spins, direction)
        prediction['direction'] = direction
        return prediction

    def get_status(self):
        return {
            'total_spins': len(self.spins),
            'next_direction': self.next_direction,
            'last_prediction': list(self.last_prediction),
            'hybrid_accuracy': round(self.hybrid_accuracy, 2),
            'expected_random': round(TOP_PREDICTIONS_COUNT / TOTAL_NUMBERS * 100, 1),
            'model_status': get_model_status(self.engine_state),
            'last_numbers': [s.number for s in self.spins[-10:]],
            'accuracy_history': [dict(entry) for entry in self.accuracy_history[-50:]],
        }
