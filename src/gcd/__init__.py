"""
gcd - Fuzzy navigation to indexed git repositories.
"""

__version__ = "0.2.0"
