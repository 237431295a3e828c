"""
Raid Server API Client

This module provides a client for the guild bot's raid endpoint, which stores
raid sessions parsed locally from EverQuest logs.

Endpoints:
    GET  /raid?date=YYYY-MM-DD   look up an existing raid for a date
    POST /raid                   save a new raid
    POST /raid/merge?id=<raidId> merge attendance and loot into an existing raid
"""

import requests
import logging
from typing import Dict, Any, Optional

from ..base import RaidTool
from ..log.models import RaidSession

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "http://localhost:3001"
DEFAULT_TIMEOUT = 30

SUBMITTED_BY_LOCAL_SCRIPT = 'local-script'


class RaidServerClient(RaidTool):
    """Client for submitting parsed raid sessions to the raid server."""

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the raid server client.

        Args:
            config: Optional configuration dictionary.
        """
        super().__init__(config)
        self._setup_client()

    def _setup_client(self) -> None:
        """Set up the client from configuration values."""
        self.base_url = str(self.get_config('raid_server.url', DEFAULT_SERVER_URL)).rstrip('/')
        self.api_key = self.get_config('raid_server.api_key', '')
        self.ssl_verify = self.get_config('raid_server.ssl_verify', True)
        self.timeout = self.get_config('raid_server.timeout', DEFAULT_TIMEOUT)

        if not self.api_key:
            logger.warning("No raid server API key provided. API calls will fail.")

        self.headers = {"x-api-key": self.api_key}
        logger.debug(f"Raid server: {self.base_url}")

    def make_request(self, endpoint: str, method: str = 'GET',
                     params: Optional[Dict[str, Any]] = None,
                     data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Make a request to the raid server.

        Args:
            endpoint: API endpoint path, e.g. "/raid".
            method: HTTP method to use.
            params: Query parameters.
            data: JSON request body.

        Returns:
            API response as a dictionary.

        Raises:
            requests.RequestException: If the request fails.
        """
        url = f"{self.base_url}{endpoint}"

        try:
            response = requests.request(
                method=method,
                url=url,
                headers=self.headers,
                params=params,
                json=data,
                verify=self.ssl_verify,
                timeout=self.timeout
            )

            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error(f"API request failed: {e}")
            if hasattr(e, 'response') and e.response is not None:
                logger.error(f"Response: {e.response.text}")
            raise

    def find_raid_by_date(self, date: str) -> Optional[Dict[str, Any]]:
        """
        Look up the raid stored for a date.

        Args:
            date: UTC date in YYYY-MM-DD format.

        Returns:
            The raid row, or None if the server has no raid for that date.
        """
        response = self.make_request("/raid", params={'date': date})
        return response.get('raid')

    def create_raid(self, session: RaidSession, name: Optional[str] = None,
                    character: Optional[str] = None,
                    submitted_by: str = SUBMITTED_BY_LOCAL_SCRIPT) -> int:
        """
        Save a session as a new raid.

        Args:
            session: The parsed raid session.
            name: Raid name; defaults to the session's suggested name.
            character: Log owner's character name.
            submitted_by: Origin tag stored with the raid.

        Returns:
            The new raid ID.
        """
        session_data = session.to_dict()
        payload = {
            'raid': {
                'name': name or session.default_name,
                'zone': ', '.join(session.zones),
                'startTime': session_data['firstSeen'],
                'endTime': session_data['lastSeen'],
                'characterName': character or None,
                'submittedBy': submitted_by,
            },
            'attendance': session_data['attendance'],
            'loot': session_data['loot'],
        }
        response = self.make_request("/raid", method='POST', data=payload)
        raid_id = response.get('raidId')
        logger.info(f"Saved raid #{raid_id} ({payload['raid']['name']})")
        return raid_id

    def merge_into_raid(self, raid_id: int, session: RaidSession) -> Dict[str, Any]:
        """
        Merge a session's attendance and loot into an existing raid.

        Returns:
            Server response, including the number of new loot rows ("newLoot").
        """
        session_data = session.to_dict()
        payload = {
            'attendance': session_data['attendance'],
            'loot': session_data['loot'],
        }
        response = self.make_request("/raid/merge", method='POST', params={'id': raid_id}, data=payload)
        logger.info(f"Merged into raid #{raid_id}: {response.get('newLoot', 0)} new loot rows")
        return response

    def submit_session(self, session: RaidSession, name: Optional[str] = None,
                       character: Optional[str] = None,
                       submitted_by: str = SUBMITTED_BY_LOCAL_SCRIPT) -> Dict[str, Any]:
        """
        Submit a session, merging into the raid already stored for its date if any.

        Returns:
            {"action": "created" | "merged", "raidId": ..., "newLoot": ... (merge only)}
        """
        existing = self.find_raid_by_date(session.date)
        if existing:
            result = self.merge_into_raid(existing['id'], session)
            return {'action': 'merged', 'raidId': existing['id'], 'newLoot': result.get('newLoot', 0)}

        raid_id = self.create_raid(session, name=name, character=character, submitted_by=submitted_by)
        return {'action': 'created', 'raidId': raid_id}

    def run(self) -> Dict[str, Any]:
        """
        Minimal implementation of the abstract run method.

        Returns:
            The configured server URL and whether an API key is set.
        """
        return {'server': self.base_url, 'has_api_key': bool(self.api_key)}
