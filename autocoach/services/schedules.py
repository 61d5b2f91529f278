"""
Today's game schedule for all leagues.
"""

import logging
from typing import Dict, List, Optional

from ..api.schedule_sources import get_game_times_with_fallback
from ..data.models import League, Schedule
from ..data.storage import FirestoreStorage, get_storage
from ..utils import pacific_date_string


logger = logging.getLogger(__name__)


def get_schedule(uid: str, storage: Optional[FirestoreStorage] = None) -> Schedule:
    """Today's game start times, loading them from the schedule APIs if not stored yet."""
    storage = storage or get_storage()
    today = pacific_date_string()

    stored = storage.get_schedule()
    if stored and stored.get("date") == today:
        return Schedule(date=stored["date"], games=stored["games"])

    logger.info(f"No games in database for {today}, fetching from internet (user {uid})")
    return Schedule(date=today, games=get_todays_games(today, storage))


def get_todays_games(date: str, storage: Optional[FirestoreStorage] = None) -> Dict[str, List[int]]:
    """Fetch every league's game times for a date and store them as today's schedule."""
    storage = storage or get_storage()
    games: Dict[str, List[int]] = {}
    for league in League:
        games[league.value] = get_game_times_with_fallback(league.value, date)

    storage.store_schedule(date, games)
    return games
