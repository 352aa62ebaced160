#!/usr/bin/env python3
"""
config.py
=========
Application-wide configuration constants.

Values can be overridden via ``GREENWAVE_*`` environment variables (see
:mod:`main`).  This module is a thin, import-safe leaf and never imports
from other project packages.
"""

# ── Simulation defaults ──────────────────────────────────────────────────────
DEFAULT_TICK_RATE_HZ: float = 20.0
DEFAULT_VOLUME_PERIOD_S: float = 2.0
DEFAULT_RANDOM_SEED: int = 0          # 0 → unseeded

# ── V2X bus defaults ─────────────────────────────────────────────────────────
DEFAULT_DROP_RATE: float = 0.0
DEFAULT_LATENCY_MS: int = 0

# ── External services ────────────────────────────────────────────────────────
OSRM_URL: str = "http://127.0.0.1:5000"
OVERPASS_URL: str = "https://overpass-api.de/api/interpreter"
HTTP_USER_AGENT: str = "greenwave/0.1 (signal preemption simulator)"
HTTP_TIMEOUT_S: int = 25

# ── Gateway ──────────────────────────────────────────────────────────────────
API_HOST: str = "127.0.0.1"
API_PORT: int = 8000

# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL: str = "INFO"
LOG_FILE: str = "greenwave.log"
SCAN_DEBUG_LOG_FILE: str = "scan_debug.log"
