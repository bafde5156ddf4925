"""
Persistence adapters.

Backends (memory, JSON file, SQL) implement the key-value contract in
``base``; ``account_store`` maps accounts onto it. Services depend on
``AccountStore`` rather than touching a backend directly.
"""
