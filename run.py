#!/usr/bin/env python3
"""
Hybrid Roulette Predictor - Entry Point
Start the Flask + SocketIO server.
"""

import os
import sys

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import HOST, PORT, DEBUG, DATA_DIR, ENGINE_STATE_PATH

os.makedirs(DATA_DIR, exist_ok=True)

from hybrid_predictor import create_app, socketio

app = create_app(state_path=ENGINE_STATE_PATH)

if __name__ == '__main__':
    print("=" * 60)
    print("  Hybrid Roulette Predictor v1.0")
    print("=" * 60)
    print(f"  Server:    http://localhost:{PORT}")
    print(f"  State:     {ENGINE_STATE_PATH}")
    print(f"  Debug:     {DEBUG}")
    print("=" * 60)
    print()

    socketio.run(app, host=HOST, port=PORT, debug=DEBUG, use_reloader=False)
