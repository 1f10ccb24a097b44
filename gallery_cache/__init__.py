"""
Gallery Cache

Two-tier (memory + Redis) response and data cache for the gallery API.
"""

__version__ = "1.0.0"
