"""
utils/ - Shared Helpers
=======================
Logging setup and identifier generation.
"""
