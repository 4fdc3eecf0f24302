"""
Unit Tests for StateStore and GameSession
"""
import pytest
import sys
import os
import json
import threading

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from config import STATE_VERSION, MODEL_KEYS, TOP_PREDICTIONS_COUNT
from hybrid_predictor.ml.engine import create_initial_state, replay
from hybrid_predictor.ml.observation import InvalidSpinError, make_observation
from hybrid_predictor.session.state_store import StateStore
from hybrid_predictor.session.session_manager import GameSession


@pytest.fixture
def store(tmp_path):
    return StateStore(str(tmp_path / 'data' / 'engine_state.json'))


@pytest.fixture
def session(store):
    return GameSession(store)


# ═══════════════════════════════════════════════════════════════
# StateStore Tests
# ═══════════════════════════════════════════════════════════════

class TestStateStore:
    def test_load_missing_returns_none(self, store):
        assert store.load() is None

    def test_save_creates_directory_and_file(self, store):
        assert store.save({'spins': []}, create_initial_state())
        assert store.exists()
        assert not os.path.exists(store.path + '.tmp')

    def test_round_trip(self, store):
        spins = [make_observation(i + 1, n, 'CW') for i, n in enumerate([3, 30, 3])]
        engine_state = replay(spins)
        game_state = {'spins': [s.to_dict() for s in spins], 'last_prediction': [1, 2]}
        store.save(game_state, engine_state)

        loaded_game, loaded_engine = store.load()
        assert loaded_game == game_state
        assert loaded_engine.to_dict() == engine_state.to_dict()

    def test_file_layout(self, store):
        store.save({'spins': []}, create_initial_state())
        with open(store.path) as f:
            payload = json.load(f)
        assert payload['version'] == STATE_VERSION
        assert set(payload['engine_state']) == set(MODEL_KEYS)

    def test_unknown_version_ignored(self, store):
        store.save({'spins': []}, create_initial_state())
        with open(store.path) as f:
            payload = json.load(f)
        payload['version'] = 99
        with open(store.path, 'w') as f:
            json.dump(payload, f)
        assert store.load() is None

    def test_corrupt_file_removed(self, store):
        os.makedirs(os.path.dirname(store.path), exist_ok=True)
        with open(store.path, 'w') as f:
            f.write('{not json')
        assert store.load() is None
        assert not store.exists()

    def test_bad_engine_state_removed(self, store):
        os.makedirs(os.path.dirname(store.path), exist_ok=True)
        with open(store.path, 'w') as f:
            json.dump({'version': STATE_VERSION, 'game_state': {},
                       'engine_state': {'markov_chain': {'transition_matrix': [[1]]}}}, f)
        assert store.load() is None
        assert not store.exists()

    def test_clear(self, store):
        assert store.clear() is False
        store.save({'spins': []}, create_initial_state())
        assert store.clear() is True
        assert store.load() is None

    def test_save_failure_returns_false(self, tmp_path):
        blocker = tmp_path / 'blocker'
        blocker.write_text('file, not a directory')
        store = StateStore(str(blocker / 'engine_state.json'))
        assert store.save({'spins': []}, create_initial_state()) is False


# ═══════════════════════════════════════════════════════════════
# GameSession Tests
# ═══════════════════════════════════════════════════════════════

class TestGameSession:
    def test_init_defaults(self, session):
        assert session.spins == []
        assert session.last_prediction == []
        assert session.accuracy_history == []
        assert session.hybrid_accuracy == 0.0
        assert session.next_direction == 'CW'

    def test_record_spin(self, session):
        result = session.record_spin(17, 'CW')
        assert result['spin']['spin_number'] == 1
        assert result['spin']['number'] == 17
        assert result['color'] == 'black'
        assert result['hit'] is False
        assert result['next_direction'] == 'CCW'
        assert len(result['next_prediction']['top12']) == TOP_PREDICTIONS_COUNT
        assert session.last_prediction == result['next_prediction']['top12']
        assert result['saved'] is True
        assert [m['spins'] for m in result['model_status']] == [1, 1, 1, 1]

    def test_direction_alternates_by_default(self, session):
        session.record_spin(17)
        session.record_spin(4)
        session.record_spin('9')
        assert [s.direction for s in session.spins] == ['CW', 'CCW', 'CW']
        assert [s.spin_number for s in session.spins] == [1, 2, 3]

    def test_explicit_direction_wins(self, session):
        session.record_spin(17, 'ccw')
        assert session.spins[-1].direction == 'CCW'
        assert session.next_direction == 'CW'

    def test_hybrid_accuracy_tracks_published_prediction(self, session):
        session.record_spin(17, 'CW')
        target = session.last_prediction[0]
        result = session.record_spin(target, 'CCW')
        assert result['hit'] is True
        assert session.accuracy_history[-1] == {'spin': 2, 'accuracy': 50.0, 'hits': 1}
        assert result['hybrid_accuracy'] == 50.0

    def test_miss_keeps_hit_count(self, session):
        session.record_spin(17, 'CW')
        miss = next(n for n in range(37) if n not in session.last_prediction)
        session.record_spin(miss, 'CCW')
        assert session.accuracy_history[-1]['hits'] == 0
        assert session.hybrid_accuracy == 0.0

    def test_invalid_spin_rejected(self, session):
        with pytest.raises(InvalidSpinError):
            session.record_spin(37, 'CW')
        with pytest.raises(InvalidSpinError):
            session.record_spin(5, 'sideways')
        assert session.spins == []

    def test_engine_matches_replay(self, session):
        for n in [3, 26, 0, 32, 15]:
            session.record_spin(n)
        assert session.engine_state.to_dict() == replay(session.spins).to_dict()

    def test_reload_from_store(self, session, store):
        for n in [3, 26, 0, 32, 15]:
            session.record_spin(n)

        restored = GameSession(store)
        assert restored.load() is True
        assert restored.spins == session.spins
        assert restored.last_prediction == session.last_prediction
        assert restored.accuracy_history == session.accuracy_history
        assert restored.engine_state.to_dict() == session.engine_state.to_dict()
        assert restored.current_prediction() == session.current_prediction()

    def test_load_without_store_falls_back(self, session):
        assert session.load() is False
        assert session.engine_state.to_dict() == create_initial_state().to_dict()

    def test_load_invalid_game_state_falls_back(self, session, store):
        store.save({'spins': [{'spin_number': 1, 'number': 99, 'direction': 'CW'}]},
                   create_initial_state())
        assert session.load() is False
        assert session.spins == []

    @pytest.mark.parametrize('history', [
        [5],
        [{'spin': 1, 'accuracy': 'high', 'hits': 0}],
        [{'spin': 1, 'hits': 0}],
        [],
    ])
    def test_load_invalid_accuracy_history_falls_back(self, session, store, history):
        session.record_spin(17, 'CW')
        with open(store.path) as f:
            payload = json.load(f)
        payload['game_state']['accuracy_history'] = history
        with open(store.path, 'w') as f:
            json.dump(payload, f)

        restored = GameSession(store)
        assert restored.load() is False
        assert restored.spins == []
        assert restored.get_status()['hybrid_accuracy'] == 0.0

    def test_load_out_of_order_spins_falls_back(self, session, store):
        session.record_spin(17, 'CW')
        session.record_spin(4, 'CCW')
        with open(store.path) as f:
            payload = json.load(f)
        payload['game_state']['spins'][1]['spin_number'] = 5
        with open(store.path, 'w') as f:
            json.dump(payload, f)

        restored = GameSession(store)
        assert restored.load() is False
        assert restored.spins == []

    def test_undo_last(self, session):
        session.record_spin(3, 'CW')
        session.record_spin(26, 'CCW')
        before = session.engine_state.to_dict()
        prediction_before = list(session.last_prediction)
        session.record_spin(0, 'CW')

        removed = session.undo_last()
        assert removed.number == 0
        assert len(session.spins) == 2
        assert len(session.accuracy_history) == 2
        assert session.engine_state.to_dict() == before
        assert session.last_prediction == prediction_before

    def test_undo_to_empty(self, session):
        session.record_spin(3, 'CW')
        session.undo_last()
        assert session.spins == []
        assert session.last_prediction == []
        assert session.undo_last() is None

    def test_import_spins(self, session):
        result = session.import_spins([(17, None), (4, None), (17, 'CCW'), (9, None)])
        assert result['imported'] == 4
        assert result['total_spins'] == 4
        assert [s.direction for s in session.spins] == ['CW', 'CCW', 'CCW', 'CW']
        assert session.engine_state.to_dict() == replay(session.spins).to_dict()
        assert len(session.accuracy_history) == 4

    def test_import_is_all_or_nothing(self, session):
        with pytest.raises(InvalidSpinError):
            session.import_spins([(17, None), (40, None)])
        assert session.spins == []

    def test_reset(self, session, store):
        session.record_spin(17, 'CW')
        session.reset()
        assert session.spins == []
        assert session.engine_state.to_dict() == create_initial_state().to_dict()
        assert not store.exists()

    def test_current_prediction(self, session):
        prediction = session.current_prediction()
        assert prediction['direction'] == 'CW'
        assert prediction['top12'] == list(range(12))
        with pytest.raises(InvalidSpinError):
            session.current_prediction('up')

    def test_get_status_structure(self, session):
        session.record_spin(17, 'CW')
        status = session.get_status()
        for key in ['total_spins', 'next_direction', 'last_prediction', 'hybrid_accuracy',
                    'expected_random', 'model_status', 'last_numbers', 'accuracy_history']:
            assert key in status
        assert status['last_numbers'] == [17]
        assert json.dumps(status)

    def test_sessions_are_independent(self, tmp_path):
        a = GameSession(StateStore(str(tmp_path / 'a.json')))
        b = GameSession(StateStore(str(tmp_path / 'b.json')))
        a.record_spin(5, 'CW')
        a.record_spin(5, 'CCW')
        assert b.spins == []
        assert b.engine_state.models['hot_zone'].hits == 0
        assert a.engine_state.models['hot_zone'].hits == 1

    def test_reply_describes_its_own_spin(self, tmp_path):
        class ContendedStore(StateStore):
            """Starts a second record_spin while the first one is saving."""
            session = None
            competitor = None

            def save(self, game_state, engine_state):
                if self.competitor is None:
                    self.competitor = threading.Thread(
                        target=self.session.record_spin, args=(4, 'CCW'))
                    self.competitor.start()
                    # Blocked on the session lock until the first record returns
                    self.competitor.join(timeout=0.2)
                return super().save(game_state, engine_state)

        store = ContendedStore(str(tmp_path / 'engine_state.json'))
        session = GameSession(store)
        store.session = session

        result = session.record_spin(17, 'CW')
        store.competitor.join()

        assert result['spin']['number'] == 17
        assert result['next_direction'] == 'CCW'
        assert [m['spins'] for m in result['model_status']] == [1, 1, 1, 1]
        assert [s.number for s in session.spins] == [17, 4]
