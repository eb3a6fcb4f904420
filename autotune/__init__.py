"""
autotune - strategy parameter optimization and continuous Set evaluation.
"""

__version__ = "1.0.0"
