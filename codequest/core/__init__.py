"""
Core utilities shared across the CodeQuest session core.

This package hosts:
- configuration helpers (env vars, storage paths, simulated latency)
- credential hashing/verification
- logging setup

Services and repositories depend on these primitives instead of reading the
environment or configuring handlers themselves.
"""
