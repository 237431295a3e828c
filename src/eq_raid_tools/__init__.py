"""
EQ Raid Tools - Python package for EverQuest raid attendance and loot tracking

This package parses EverQuest client logs into raid attendance and loot
records, detects raid sessions automatically, tails live logs and hands the
results to the guild's raid server.
"""

__version__ = '0.2.0'
