# src/dbsweep/cli/constants.py
"""Stable exit codes for the dbsweep CLI (safe to rely on in schedulers)."""

EXIT_SUCCESS = 0
EXIT_SWEEP_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_RUNTIME_ERROR = 3
EXIT_FATAL_DISPATCH = 4
