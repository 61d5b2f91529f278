"""
Game start times from public sports schedule APIs.
Yahoo's Graphite API is the primary source and Sportsnet the fallback.
"""

import logging
from datetime import datetime
from typing import List, Optional

import requests
from pydantic import ValidationError

from ..config.settings import get_config
from .schemas import (
    SportsnetGamesResponse,
    YahooLeagueGameIdsByDateResponse,
)

logger = logging.getLogger(__name__)

GRAPHITE_URL = "https://graphite.sports.yahoo.com/v1/query/shangrila"
SPORTSNET_URL = "https://stats-api.sportsnet.ca/ticker"

GRAPHITE_PARAMS = {
    "lang": "en-US",
    "region": "US",
    "tz": "America/Edmonton",
    "ysp_platform": "next-app-sports",
}


class ScheduleSourceError(Exception):
    """A schedule API could not provide games."""


def _get_json(url: str, params: Optional[dict] = None):
    timeout = get_config().yahoo_api.request_timeout_seconds
    try:
        response = requests.get(url, params=params, timeout=timeout)
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as e:
        raise ScheduleSourceError(f"Error fetching {url}: {e}") from e


def get_game_times_yahoo(league: str, date: str) -> List[int]:
    """Start times (epoch ms) of a league's games on a date, from Yahoo."""
    params = dict(GRAPHITE_PARAMS, leagues=league, dates=date, season=date.split("-")[0])
    data = _get_json(f"{GRAPHITE_URL}/leagueGameIdsByDate", params)
    try:
        response = YahooLeagueGameIdsByDateResponse.model_validate(data)
    except ValidationError as e:
        raise ScheduleSourceError(f"Unexpected Yahoo games response for {league}: {e}") from e

    try:
        game_times = [
            _parse_iso_ms(game.startTime)
            for league_data in response.data.leagues
            for game in league_data.games
        ]
    except ValueError as e:
        raise ScheduleSourceError(f"Invalid game start time for {league}: {e}") from e

    return list(dict.fromkeys(game_times))


def get_game_times_sportsnet(league: str) -> List[int]:
    """Start times (epoch ms) of a league's games today, from Sportsnet."""
    data = _get_json(SPORTSNET_URL, {"league": league})
    try:
        response = SportsnetGamesResponse.model_validate(data)
    except ValidationError as e:
        raise ScheduleSourceError(f"Unexpected Sportsnet games response for {league}: {e}") from e

    game_times = [game.details.timestamp * 1000 for game in response.data.games]
    return list(dict.fromkeys(game_times))


def get_game_times_with_fallback(league: str, date: str) -> List[int]:
    """Game times from Yahoo, then Sportsnet; empty if both fail."""
    try:
        return get_game_times_yahoo(league, date)
    except ScheduleSourceError as e:
        logger.error(f"Error fetching games from Yahoo API: {e}")

    logger.info(f"Trying to get {league} games from Sportsnet API")
    try:
        return get_game_times_sportsnet(league)
    except ScheduleSourceError as e:
        logger.error(f"Error fetching games from Sportsnet API: {e}")
        return []


def _parse_iso_ms(value: str) -> int:
    return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp() * 1000)
