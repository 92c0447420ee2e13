"""
Centralized configuration for the threaded matrix multiplication tool.
Single source of truth for defaults shared by the CLI, loader and executors.
"""

# Default file names (used when the CLI gets fewer than three paths)
DEFAULT_MATRIX_A = "a.txt"
DEFAULT_MATRIX_B = "b.txt"
DEFAULT_MATRIX_C = "c.out"

# Element range: signed 32-bit integers
INT32_MIN = -2**31
INT32_MAX = 2**31 - 1

# Longest accepted element token, not counting the sign
MAX_DIGITS = 10

# Upper bound on threads in one executor pool
DEFAULT_MAX_WORKERS = 256

LOG_FORMAT = '%(levelname)s: %(message)s'
