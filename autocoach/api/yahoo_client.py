"""
Yahoo Fantasy Sports API client for AutoCoach.
Fetches teams, rosters and available players for a user and posts their
transactions and lineup changes.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Dict, Optional, Any, Iterable

import requests
from yahoo_fantasy_api.yhandler import YHandler

from ..config.settings import get_config
from ..data.models import (
    InfoTeam,
    LineupChanges,
    Player,
    PlayerOwnership,
    PlayerTransaction,
    TeamRoster,
    TransactionType,
    default_ranks,
)
from ..errors import (
    ApiRateLimitError,
    AuthorizationError,
    HttpError,
    YahooMaintenanceError,
)
from .auth_manager import YahooAuthManager
from .schemas import TeamStandingsSchema

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS_CODES = (429, 999)
AUTH_ERROR_STATUS_CODES = (401, 403)
YAHOO_MAINTENANCE_INDICATOR = "site is currently in read-only mode"

GAME_CODES = "nfl,nhl,nba,mlb"

PLAYER_OUT = "percent_started,percent_owned,ranks,opponent,starting_status"
PLAYER_RANKS = (
    "ranks=last30days,last14days,next7days,season_remaining,"
    "last4weeks,projected_week,next4weeks"
)

# Yahoo rank types mapped to the rank periods used for scoring
RANK_TYPES = {
    "last30days": "last30Days",
    "last14days": "last14Days",
    "next7days": "next7Days",
    "season_remaining": "restOfSeason",
    "last4weeks": "last4Weeks",
    "projected_week": "projectedWeek",
    "next4weeks": "next4Weeks",
}


def check_yahoo_response(response: requests.Response, uid: Optional[str] = None) -> None:
    """Raise the matching AutoCoach error for a failed Yahoo response."""
    # requests treats 999 as ok; Yahoo uses it for rate limiting
    if 200 <= response.status_code < 300:
        return

    body = response.text or ""
    if YAHOO_MAINTENANCE_INDICATOR in body:
        logger.warning(f"Yahoo API in maintenance/read-only mode for user {uid}: {response.url}")
        raise YahooMaintenanceError(
            f"Yahoo API is in read-only/maintenance mode (HTTP {response.status_code})"
        )

    if response.status_code in RATE_LIMIT_STATUS_CODES:
        retry_after = response.headers.get("Retry-After")
        logger.warning(
            f"Yahoo API rate limit detected for user {uid}: {response.status_code} "
            f"(Retry-After: {retry_after})"
        )
        raise ApiRateLimitError(
            f"Yahoo API rate limit exceeded (HTTP {response.status_code})",
            response.status_code,
            int(retry_after) if retry_after and retry_after.isdigit() else None,
        )

    if response.status_code in AUTH_ERROR_STATUS_CODES:
        logger.warning(f"Yahoo API auth error for user {uid}: {response.status_code}")
        raise AuthorizationError(
            f"Yahoo API authentication failed (HTTP {response.status_code})",
            response.status_code,
            uid,
        )

    logger.error(f"Yahoo API HTTP error for user {uid}: {response.status_code} - {body[:500]}")
    raise HttpError(
        f"HTTP {response.status_code}: {response.reason}",
        status=response.status_code,
        data=body,
    )


class TimeoutSession(requests.Session):
    """requests session that applies a default timeout to every request."""

    def __init__(self, timeout: float):
        super().__init__()
        self.timeout = timeout

    def request(self, method, url, **kwargs):
        if kwargs.get('timeout') is None:
            kwargs['timeout'] = self.timeout
        return super().request(method, url, **kwargs)


class YahooSession:
    """Token-backed session object in the shape yahoo_fantasy_api expects."""

    def __init__(self, access_token: str, uid: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.token = access_token
        if timeout is None:
            timeout = get_config().yahoo_api.request_timeout_seconds
        self.session = TimeoutSession(timeout)
        self.session.headers.update({
            'Authorization': f'Bearer {self.token}',
            'User-Agent': 'AutoCoach/1.0',
        })
        self.session.hooks['response'].append(
            lambda response, *args, **kwargs: check_yahoo_response(response, uid)
        )


class YahooFantasyClient:
    """Yahoo Fantasy Sports API client for one AutoCoach user."""

    def __init__(self, uid: str, auth_manager: Optional[YahooAuthManager] = None):
        self.uid = uid
        self.config = get_config()
        self.auth_manager = auth_manager or YahooAuthManager()
        self._handler: Optional[YHandler] = None

    @property
    def handler(self) -> YHandler:
        if self._handler is None:
            access_token = self.auth_manager.get_access_token(self.uid)
            self._handler = YHandler(YahooSession(access_token, self.uid))
        return self._handler

    # ------------------------------------------------------------------ reads

    def fetch_teams(self) -> List[InfoTeam]:
        """Get all of the user's teams in currently available games."""
        uri = (
            f"users;use_login=1/games;is_available=1;game_codes={GAME_CODES}"
            f"/leagues;out=settings/teams;out=standings"
        )
        content = self.handler.get(uri)

        teams = []
        for game, league in self._iter_user_leagues(content):
            try:
                teams.append(self._build_info_team(game, league))
            except (KeyError, IndexError, TypeError, ValueError) as e:
                logger.error(f"Error parsing Yahoo team for user {self.uid}: {e}")
                continue

        logger.info(f"Retrieved {len(teams)} teams from Yahoo for user {self.uid}")
        return teams

    def fetch_rosters(self, team_keys: List[str], date: Optional[str] = None) -> List[TeamRoster]:
        """Get the rosters of the given teams for a date (YYYY-MM-DD)."""
        if not team_keys:
            return []

        league_keys = ",".join(key.split(".t")[0] for key in team_keys)
        date_param = f";date={date}" if date else ""
        uri = (
            f"users;use_login=1/games;is_available=1/leagues;league_keys={league_keys};"
            f"out=settings/teams/roster{date_param}/players;out={PLAYER_OUT};{PLAYER_RANKS}"
        )
        content = self.handler.get(uri)

        rosters = []
        for game, league in self._iter_user_leagues(content):
            try:
                rosters.append(self._build_roster(game, league))
            except (KeyError, IndexError, TypeError, ValueError) as e:
                logger.error(f"Error parsing Yahoo roster for user {self.uid}: {e}")
                continue

        rosters = [r for r in rosters if r.team_key in team_keys]
        logger.info(f"Retrieved {len(rosters)} rosters from Yahoo for user {self.uid}")
        return rosters

    def fetch_top_available_players(
        self,
        team_keys: List[str],
        availability_status: str = "A",
        sort: str = "sort=R_PO",
    ) -> Dict[str, List[Player]]:
        """Get the top available players in each team's league, keyed by team."""
        if not team_keys:
            return {}

        league_to_team = {key.split(".t")[0]: key for key in team_keys}
        uri = (
            f"users;use_login=1/games/leagues;league_keys={','.join(league_to_team)}"
            f"/players;status={availability_status};{sort};"
            f"out={PLAYER_OUT},ownership;{PLAYER_RANKS}"
        )
        content = self.handler.get(uri)

        result: Dict[str, List[Player]] = {}
        for _, league in self._iter_user_leagues(content):
            league_key = league[0].get("league_key")
            team_key = league_to_team.get(league_key)
            if not team_key:
                continue
            players_json = _flatten(league[1:]).get("players", {})
            result[team_key] = build_players(players_json)

        return result

    # ----------------------------------------------------------------- writes

    def post_transaction(self, transaction: PlayerTransaction) -> None:
        """Post a single add, drop or add/drop transaction."""
        xml_payload = build_transaction_xml(transaction)
        logger.debug(f"Generated transaction XML:\n{xml_payload}")
        self.handler.post_transactions(transaction.league_key, xml_payload)
        logger.info(f"Posted transaction for team {transaction.team_key}: {transaction.description}")

    def put_lineup_changes(self, lineup_changes: LineupChanges) -> None:
        """Move players to new roster positions."""
        xml_payload = build_roster_xml(lineup_changes)
        logger.debug(f"Generated roster XML:\n{xml_payload}")
        self.handler.put_roster(lineup_changes.team_key, xml_payload)
        logger.info(f"Updated lineup for team {lineup_changes.team_key}")

    # ---------------------------------------------------------------- parsing

    @staticmethod
    def _iter_user_leagues(content: Dict[str, Any]) -> Iterable:
        """Yield (game details, league list) pairs from a users collection response."""
        user = content["fantasy_content"]["users"]["0"]["user"]
        games = user[1].get("games", {}) if len(user) > 1 else {}
        for game_key, game_data in games.items():
            if game_key == "count" or not isinstance(game_data, dict):
                continue
            game = game_data["game"]
            if len(game) < 2:
                continue
            leagues = game[1].get("leagues", {})
            for league_key, league_data in leagues.items():
                if league_key == "count" or not isinstance(league_data, dict):
                    continue
                yield game[0], league_data["league"]

    def _build_info_team(self, game: Dict[str, Any], league: List[Any]) -> InfoTeam:
        league_details = league[0]
        extended = _flatten(league[1:])
        settings = _flatten(extended.get("settings", []))
        team_parts = extended["teams"]["0"]["team"]
        team_info = _flatten(team_parts[0])
        requested = _flatten(team_parts[1:])

        standings = TeamStandingsSchema.model_validate(
            {"team_standings": requested.get("team_standings") or {}}
        ).team_standings
        outcome_totals = getattr(standings, "outcome_totals", None)

        return InfoTeam(
            team_key=team_info["team_key"],
            game_code=game["code"],
            start_date=_date_to_ms(league_details["start_date"]),
            end_date=_date_to_ms(league_details["end_date"], end_of_day=True),
            weekly_deadline=league_details.get("weekly_deadline", ""),
            roster_positions=get_position_counts(settings.get("roster_positions", [])),
            num_teams=int(league_details["num_teams"]),
            edit_key=str(league_details.get("edit_key", "")),
            faab_balance=_to_int(team_info.get("faab_balance"), -1),
            current_weekly_adds=_to_int(team_info.get("roster_adds", {}).get("value"), 0),
            current_season_adds=_to_int(team_info.get("number_of_moves"), 0),
            scoring_type=league_details.get("scoring_type", ""),
            team_name=team_info.get("name", ""),
            league_name=league_details.get("name", ""),
            max_weekly_adds=_to_int(settings.get("max_weekly_adds"), -1),
            max_season_adds=_to_int(settings.get("max_adds"), -1),
            waiver_rule=settings.get("waiver_rule", ""),
            max_games_played=_to_int(settings.get("max_games_played"), -1),
            max_innings_pitched=_to_int(settings.get("max_innings_pitched"), -1),
            game_name=game.get("name", ""),
            game_season=str(game.get("season", "")),
            game_is_over=bool(_to_int(game.get("is_game_over"), 0)),
            team_url=team_info.get("url", ""),
            team_logo=_team_logo(team_info),
            rank=standings.rank,
            points_for=getattr(standings, "points_for", None),
            points_against=getattr(standings, "points_against", None),
            points_back=getattr(standings, "points_back", None),
            outcome_totals=outcome_totals,
        )

    def _build_roster(self, game: Dict[str, Any], league: List[Any]) -> TeamRoster:
        league_details = league[0]
        extended = _flatten(league[1:])
        settings = _flatten(extended.get("settings", []))
        team_parts = extended["teams"]["0"]["team"]
        team_info = _flatten(team_parts[0])
        roster = _flatten(team_parts[1:]).get("roster", {})

        players_json = roster.get("0", {}).get("players", {})
        coverage_type = roster.get("coverage_type", "date")

        return TeamRoster(
            team_key=team_info["team_key"],
            game_code=game["code"],
            num_teams=int(league_details["num_teams"]),
            roster_positions=get_position_counts(settings.get("roster_positions", [])),
            players=build_players(players_json),
            team_name=team_info.get("name", ""),
            league_name=league_details.get("name", ""),
            waiver_rule=settings.get("waiver_rule", ""),
            faab_balance=_to_int(team_info.get("faab_balance"), -1),
            coverage_type=coverage_type,
            coverage_period=str(roster.get(coverage_type, "")),
        )


def build_players(players_json: Dict[str, Any]) -> List[Player]:
    """Build players from a Yahoo players collection."""
    players = []
    for key, player_data in players_json.items():
        if key == "count" or not isinstance(player_data, dict):
            continue
        try:
            players.append(build_player(player_data["player"]))
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Error parsing player data: {e}")
            continue
    return players


def build_player(player_parts: List[Any]) -> Player:
    """Build a player from Yahoo's [info, *requested] player tuple."""
    info = _flatten(player_parts[0])
    extras = _flatten(player_parts[1:])

    selected = _flatten(extras.get("selected_position", []))
    percent_owned = _flatten(extras.get("percent_owned", []))
    percent_started = _flatten(extras.get("percent_started", []))
    starting_status = _flatten(extras.get("starting_status", []))

    ranks = default_ranks()
    for rank in extras.get("player_ranks", []):
        rank_data = rank.get("player_rank", {}) if isinstance(rank, dict) else {}
        period = RANK_TYPES.get(str(rank_data.get("rank_type", "")).lower())
        if period:
            ranks[period] = _to_float(rank_data.get("rank_value"), -1)

    ownership = None
    ownership_data = extras.get("ownership")
    if isinstance(ownership_data, dict) and ownership_data.get("ownership_type"):
        ownership = PlayerOwnership(
            ownership_type=ownership_data["ownership_type"],
            waiver_date=ownership_data.get("waiver_date"),
        )

    return Player(
        player_key=info["player_key"],
        player_name=info.get("name", {}).get("full", ""),
        eligible_positions=[
            p["position"] for p in info.get("eligible_positions", []) if "position" in p
        ],
        display_positions=[
            p for p in str(info.get("display_position", "")).split(",") if p
        ],
        selected_position=selected.get("position"),
        is_editable=bool(_to_int(extras.get("is_editable"), 0)),
        is_playing=bool(extras.get("opponent")) and extras.get("opponent") != "Bye",
        injury_status=info.get("status_full") or info.get("status") or "Healthy",
        percent_started=_to_float(percent_started.get("value"), 0),
        percent_owned=_to_float(percent_owned.get("value"), 0),
        percent_owned_delta=_to_float(percent_owned.get("delta"), 0),
        is_starting=starting_status.get("is_starting", "N/A"),
        is_undroppable=bool(_to_int(info.get("is_undroppable"), 0)),
        ranks=ranks,
        ownership=ownership,
    )


def get_position_counts(roster_positions: List[Dict[str, Any]]) -> Dict[str, int]:
    """Number of roster slots for each position in a league."""
    result = {}
    for item in roster_positions:
        position = item["roster_position"]
        result[position["position"]] = _to_int(position.get("count"), 0)
    return result


def build_transaction_xml(transaction: PlayerTransaction) -> str:
    """Build the XML payload for Yahoo's league transactions endpoint."""
    player_types = {p.transaction_type for p in transaction.players}
    if TransactionType.ADD in player_types and TransactionType.DROP in player_types:
        transaction_type = TransactionType.ADD_DROP
    elif len(transaction.players) == 1:
        transaction_type = transaction.players[0].transaction_type
    else:
        raise ValueError(f"Invalid transaction for team {transaction.team_key}: {transaction.description}")

    xml_parts = ["<?xml version='1.0'?>", '<fantasy_content>', '  <transaction>']
    xml_parts.append(f'    <type>{transaction_type.value}</type>')
    if transaction.is_faab_required:
        xml_parts.append('    <faab_bid>0</faab_bid>')

    player_indent = '      ' if transaction_type == TransactionType.ADD_DROP else '    '
    if transaction_type == TransactionType.ADD_DROP:
        xml_parts.append('    <players>')

    for t_player in transaction.players:
        is_add = t_player.transaction_type == TransactionType.ADD
        team_tag = 'destination_team_key' if is_add else 'source_team_key'
        xml_parts.append(f'{player_indent}<player>')
        xml_parts.append(f'{player_indent}  <player_key>{t_player.player_key}</player_key>')
        xml_parts.append(f'{player_indent}  <transaction_data>')
        xml_parts.append(f'{player_indent}    <type>{t_player.transaction_type.value}</type>')
        xml_parts.append(f'{player_indent}    <{team_tag}>{transaction.team_key}</{team_tag}>')
        xml_parts.append(f'{player_indent}  </transaction_data>')
        xml_parts.append(f'{player_indent}</player>')

    if transaction_type == TransactionType.ADD_DROP:
        xml_parts.append('    </players>')

    xml_parts.append('  </transaction>')
    xml_parts.append('</fantasy_content>')
    return '\n'.join(xml_parts)


def build_roster_xml(lineup_changes: LineupChanges) -> str:
    """Build the XML payload for Yahoo's team roster endpoint."""
    coverage_type = lineup_changes.coverage_type
    xml_parts = ["<?xml version='1.0'?>", '<fantasy_content>', '  <roster>']
    xml_parts.append(f'    <coverage_type>{coverage_type}</coverage_type>')
    xml_parts.append(f'    <{coverage_type}>{lineup_changes.coverage_period}</{coverage_type}>')
    xml_parts.append('    <players>')
    for player_key, position in lineup_changes.new_player_positions.items():
        xml_parts.append('      <player>')
        xml_parts.append(f'        <player_key>{player_key}</player_key>')
        xml_parts.append(f'        <position>{position}</position>')
        xml_parts.append('      </player>')
    xml_parts.append('    </players>')
    xml_parts.append('  </roster>')
    xml_parts.append('</fantasy_content>')
    return '\n'.join(xml_parts)


def _flatten(items: Any) -> Dict[str, Any]:
    """Merge Yahoo's lists of single-key objects into one dict."""
    if isinstance(items, dict):
        return dict(items)
    result: Dict[str, Any] = {}
    for item in items or []:
        if isinstance(item, dict):
            result.update(item)
        elif isinstance(item, list):
            result.update(_flatten(item))
    return result


def _team_logo(team_info: Dict[str, Any]) -> str:
    logos = team_info.get("team_logos") or []
    if not logos:
        return ""
    return logos[0].get("team_logo", {}).get("url", "")


def _date_to_ms(value: str, end_of_day: bool = False) -> int:
    """Convert a Yahoo YYYY-MM-DD date to epoch milliseconds (UTC)."""
    date = datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    if end_of_day:
        date += timedelta(days=1)
    return int(date.timestamp() * 1000) - (1 if end_of_day else 0)


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
