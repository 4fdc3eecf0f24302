"""
Configuration constants for the Hybrid Roulette Predictor.
Single source of truth for all tunable parameters.
"""

import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# ─── European Roulette Wheel Layout ──────────────────────────────────
# Physical wheel order (clockwise from 0)
WHEEL_ORDER = [
    0, 32, 15, 19, 4, 21, 2, 25, 17, 34, 6, 27, 13, 36,
    11, 30, 8, 23, 10, 5, 24, 16, 33, 1, 20, 14, 31, 9,
    22, 18, 29, 7, 28, 12, 35, 3, 26
]

TOTAL_NUMBERS = 37  # 0-36

# Number to wheel position mapping
NUMBER_TO_POSITION = {num: idx for idx, num in enumerate(WHEEL_ORDER)}

# Number properties (presentation only — the engine never reads colors)
RED_NUMBERS = {1, 3, 5, 7, 9, 12, 14, 16, 18, 19, 21, 23, 25, 27, 30, 32, 34, 36}
BLACK_NUMBERS = {2, 4, 6, 8, 10, 11, 13, 15, 17, 20, 22, 24, 26, 28, 29, 31, 33, 35}

# ─── Spin Direction ──────────────────────────────────────────────────
# CW is the forward sense, CCW the reverse.
DIRECTION_CW = 'CW'
DIRECTION_CCW = 'CCW'
DIRECTIONS = (DIRECTION_CW, DIRECTION_CCW)

# ─── Model Registry ──────────────────────────────────────────────────
# Iteration order is fixed: combiner and updater loop over MODEL_KEYS.
MODEL_KEYS = ('average_distance', 'markov_chain', 'hot_zone', 'momentum')
MODEL_NAMES = {
    'average_distance': 'Average Distance',
    'markov_chain': 'Markov Chain',
    'hot_zone': 'Hot Zone',
    'momentum': 'Momentum',
}
INITIAL_MODEL_WEIGHT = 1.0 / len(MODEL_KEYS)   # 0.25 each

# ─── Model Hyperparameters ───────────────────────────────────────────
AVG_DIST_WINDOW = 20                # Distances kept per direction (FIFO)
AVG_DIST_SPREAD = 5                 # Bump height at the anchor, decays 1 per pocket
HOT_ZONE_WINDOW = 50                # Trailing spins counted by the hot zone model

# ─── Adaptive Weights ────────────────────────────────────────────────
LEARNING_RATE = 0.1                 # Alpha: weight ← weight×(1−α) + target×α

# ─── Prediction Output ───────────────────────────────────────────────
TOP_PREDICTIONS_COUNT = 12          # Size of the published predicted set

# ─── File Paths ───────────────────────────────────────────────────────
DATA_DIR = os.path.join(BASE_DIR, 'data')
ENGINE_STATE_PATH = os.path.join(DATA_DIR, 'engine_state.json')
STATE_VERSION = 1

# ─── Server Settings ─────────────────────────────────────────────────
HOST = '0.0.0.0'
PORT = 5050
DEBUG = False
SECRET_KEY = 'hybrid-roulette-predictor'
SOCKETIO_ASYNC_MODE = 'eventlet'


# ─── Color Mapping for UI ────────────────────────────────────────────
def get_number_color(number):
    if number in RED_NUMBERS:
        return 'red'
    elif number in BLACK_NUMBERS:
        return 'black'
    return 'green'
