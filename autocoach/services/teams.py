"""
Team services: reconciling a user's Yahoo teams with their Firestore
settings and updating those settings.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from ..api.yahoo_client import YahooFantasyClient
from ..data.models import ClientTeam, FirestoreTeam, InfoTeam, merge_teams
from ..data.storage import FirestoreStorage, get_storage
from ..errors import get_error_message
from ..utils import now_ms


logger = logging.getLogger(__name__)


def get_user_teams(uid: str, yahoo_client: Optional[YahooFantasyClient] = None,
                   storage: Optional[FirestoreStorage] = None) -> List[ClientTeam]:
    """Get the user's teams from Yahoo merged with their Firestore settings.

    Teams new on Yahoo are added to Firestore and teams Yahoo no longer has
    are removed. A failed sync is logged and the teams already in Firestore
    are still returned.

    Raises:
        RuntimeError: Yahoo returned no teams.
    """
    yahoo_client = yahoo_client or YahooFantasyClient(uid)
    storage = storage or get_storage()

    with ThreadPoolExecutor(max_workers=2) as executor:
        yahoo_future = executor.submit(yahoo_client.fetch_teams)
        firestore_future = executor.submit(storage.fetch_teams, uid)
        yahoo_teams: List[InfoTeam] = yahoo_future.result()
        firestore_teams: List[FirestoreTeam] = firestore_future.result()

    if not yahoo_teams:
        raise RuntimeError("No teams were returned from Yahoo. Please try again later.")

    yahoo_by_key = {team.team_key: team for team in yahoo_teams}
    firestore_keys = {team.team_key for team in firestore_teams}

    existing_teams: List[ClientTeam] = [
        merge_teams(yahoo_by_key[team.team_key], team)
        for team in firestore_teams
        if team.team_key in yahoo_by_key
    ]

    new_teams: List[ClientTeam] = []
    try:
        missing_teams = [team for team in yahoo_teams if team.team_key not in firestore_keys]
        extra_teams = [team for team in firestore_teams if team.team_key not in yahoo_by_key]
        new_teams = storage.sync_teams(missing_teams, extra_teams, uid)
    except Exception as e:
        logger.error(f"Error syncing teams in Firestore for user {uid}: {get_error_message(e)}")

    return existing_teams + new_teams


def get_user_teams_partial(uid: str, storage: Optional[FirestoreStorage] = None) -> List[FirestoreTeam]:
    """The user's Firestore teams, without calling Yahoo."""
    storage = storage or get_storage()
    return storage.fetch_teams(uid)


def update_team_lineup_setting(uid: str, team_key: str, value: bool,
                               storage: Optional[FirestoreStorage] = None) -> bool:
    storage = storage or get_storage()
    return storage.update_team(uid, team_key, {"is_setting_lineups": value})


def update_team_lineup_paused(uid: str, team_key: str, value: bool,
                              storage: Optional[FirestoreStorage] = None) -> bool:
    """Pause lineup setting from now, or resume it."""
    storage = storage or get_storage()
    return storage.update_team(uid, team_key, {"lineup_paused_at": now_ms() if value else -1})
