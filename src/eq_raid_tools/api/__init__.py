"""
Raid Server API

Client for the guild bot's HTTP endpoint that stores parsed raid sessions.
"""

from .client import RaidServerClient

__all__ = ['RaidServerClient']
