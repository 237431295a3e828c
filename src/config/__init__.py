"""
EQ Raid Tools - Configuration System

Quick Usage:
    from config import Config

    config = Config(profile='my_guild')
    value = config.get('eq.timezone')

See profiles/default.json.example for the recognized keys.
"""

from config.config import Config

__all__ = ['Config']
