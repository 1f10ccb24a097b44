"""
Infrastructure Layer

Cache tiers, background maintenance and monitoring.
"""
