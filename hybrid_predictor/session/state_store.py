"""
State Store - Persists the game state and engine state together as one
JSON document, written atomically (temp file + os.replace).

The engine never depends on this: if saving fails the session keeps
running in memory, and a failed load means "start fresh".
"""

import json
import os

from config import ENGINE_STATE_PATH, STATE_VERSION
from hybrid_predictor.ml.engine import EngineState


class StateStore:
    def __init__(self, path=ENGINE_STATE_PATH):
        self.path = path

    def exists(self):
        return os.path.exists(self.path)

    def save(self, game_state, engine_state):
        """Write both states as a single unit. Returns True on success."""
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            payload = {
                'version': STATE_VERSION,
                'game_state': game_state,
                'engine_state': engine_state.to_dict(),
            }

            tmp_path = self.path + '.tmp'
            with open(tmp_path, 'w') as f:
                json.dump(payload, f)
            os.replace(tmp_path, self.path)

            print(f"[State] Saved state ({len(game_state.get('spins', []))} spins)")
            return True
        except (OSError, TypeError, ValueError) as e:
            print(f"[State] Failed to save: {e}")
            return False

    def load(self):
        """Most recently saved unit.

        Returns:
            (game_state dict, EngineState) or None if nothing usable is stored
        """
        if not os.path.exists(self.path):
            print("[State] No saved state found")
            return None

        try:
            with open(self.path, 'r') as f:
                payload = json.load(f)

            if not isinstance(payload, dict) or payload.get('version') != STATE_VERSION:
                version = payload.get('version') if isinstance(payload, dict) else None
                print(f"[State] Unknown state version {version}, ignoring")
                return None

            game_state = payload['game_state']
            if not isinstance(game_state, dict):
                raise ValueError('game_state must be a mapping')
            engine_state = EngineState.from_dict(payload['engine_state'])

            print(f"[State] Loaded saved state: {len(game_state.get('spins', []))} spins")
            return game_state, engine_state

        except (OSError, ValueError, KeyError, TypeError) as e:
            print(f"[State] Failed to load: {e}")
            try:
                os.remove(self.path)
                print("[State] Removed corrupt state file")
            except OSError:
                pass
            return None

    def clear(self):
        """Delete the stored unit. Returns True if a file was removed."""
        removed = False
        for path in (self.path, self.path + '.tmp'):
            try:
                os.remove(path)
                removed = removed or path == self.path
            except FileNotFoundError:
                continue
            except OSError as e:
                print(f"[State] Failed to clear {path}: {e}")
        if removed:
            print("[RESET] Cleared saved state")
        return removed
