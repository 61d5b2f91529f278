"""
Runtime schemas for data crossing AutoCoach's boundaries: Yahoo and
Sportsnet responses, and HTTP request/response bodies.
"""

from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


LeagueCode = Literal["mlb", "nba", "nfl", "nhl"]


# ---------------------------------------------------------------------------
# Yahoo Fantasy API
# ---------------------------------------------------------------------------

class TeamStandings(BaseModel):
    """Standings block of a Yahoo team. Unknown fields are kept as-is."""
    model_config = ConfigDict(extra="allow")

    # Yahoo omits rank before the season starts
    rank: Union[int, float, str, None] = None


class TeamStandingsSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    team_standings: TeamStandings


# ---------------------------------------------------------------------------
# Game schedules
# ---------------------------------------------------------------------------

class SportsnetTeam(BaseModel):
    id: int
    name: str
    short_name: str
    city: str


class SportsnetGameDetails(BaseModel):
    timestamp: int
    status: str


class SportsnetGame(BaseModel):
    details: SportsnetGameDetails
    visiting_team: SportsnetTeam
    home_team: SportsnetTeam


class SportsnetGamesData(BaseModel):
    games: List[SportsnetGame]


class SportsnetGamesResponse(BaseModel):
    """Sportsnet ticker, used as a fallback for game start times."""
    data: SportsnetGamesData


class YahooGraphiteGame(BaseModel):
    gameId: str
    startTime: str
    status: str


class YahooGraphiteLeague(BaseModel):
    games: List[YahooGraphiteGame]


class YahooGraphiteLeaguesData(BaseModel):
    leagues: List[YahooGraphiteLeague]


class YahooLeagueGameIdsByDateResponse(BaseModel):
    """Yahoo Graphite leagueGameIdsByDate endpoint."""
    data: YahooGraphiteLeaguesData


class YahooScoreboardGame(BaseModel):
    awayTeamId: str
    homeTeamId: str
    startTime: str
    gameStatus: str


class YahooScoreboardGamesData(BaseModel):
    games: List[YahooScoreboardGame]


class YahooScoreboardGameResponse(BaseModel):
    """Yahoo Graphite scoreboardGame endpoint."""
    data: YahooScoreboardGamesData


class YahooGameStatus(BaseModel):
    type: str  # "status.type.postponed"
    description: str  # "Postponed"
    display_name: str  # "Ppd"


class YahooTeamIds(BaseModel):
    away_team_id: Optional[str] = None
    home_team_id: Optional[str] = None
    global_away_team_id: Optional[str] = None
    global_home_team_id: Optional[str] = None


class YahooGameDetails(BaseModel):
    game_status: YahooGameStatus
    start_time: str  # eg. "Wed, 20 Mar 2024 10:05:00 +0000"
    team_ids: List[YahooTeamIds]


class YahooGame(BaseModel):
    game: YahooGameDetails


class YahooGamesList(BaseModel):
    games: List[YahooGame] = Field(alias="0")


class YahooGamesLeague(BaseModel):
    games: YahooGamesList


class YahooGamesResponse(BaseModel):
    """Deprecated: legacy api-secure.sports.yahoo.com games endpoint.

    Use YahooLeagueGameIdsByDateResponse instead.
    """
    league: YahooGamesLeague


# ---------------------------------------------------------------------------
# HTTP bodies
# ---------------------------------------------------------------------------

class ScheduleSchema(BaseModel):
    date: str
    games: Dict[LeagueCode, List[int]]


class BooleanValueSchema(BaseModel):
    value: bool


class PlayerRanksSchema(BaseModel):
    last30Days: float
    last14Days: float
    next7Days: float
    restOfSeason: float
    last4Weeks: float
    projectedWeek: float
    next4Weeks: float


class PlayerOwnershipSchema(BaseModel):
    ownership_type: Literal["waivers", "freeagents"]
    waiver_date: Optional[str] = None


class PlayerSchema(BaseModel):
    player_key: str
    player_name: str
    eligible_positions: List[str]
    display_positions: List[str]
    selected_position: Optional[str]
    is_editable: bool
    is_playing: bool
    injury_status: str
    percent_started: float
    percent_owned: float
    percent_owned_delta: float
    start_score: float
    ownership_score: float
    is_starting: Union[str, int]
    is_undroppable: bool
    ranks: PlayerRanksSchema
    ownership: Optional[PlayerOwnershipSchema] = None


class TPlayerSchema(BaseModel):
    playerKey: str
    transactionType: Literal["add", "drop", "add/drop"]
    isInactiveList: bool
    player: PlayerSchema
    isFromWaivers: Optional[bool] = None


class PlayerTransactionSchema(BaseModel):
    teamName: str
    leagueName: str
    teamKey: str
    sameDayTransactions: bool
    description: str
    reason: Optional[str]
    isFaabRequired: Optional[bool] = None
    players: List[TPlayerSchema]


class LineupChangesSchema(BaseModel):
    teamKey: str
    coverageType: str
    coveragePeriod: str
    newPlayerPositions: Dict[str, str]


class TransactionsDataSchema(BaseModel):
    dropPlayerTransactions: Optional[List[List[PlayerTransactionSchema]]]
    lineupChanges: Optional[List[LineupChangesSchema]]
    addSwapTransactions: Optional[List[List[PlayerTransactionSchema]]]


class WeeklyTransactionsTaskSchema(BaseModel):
    """Body of a weekly transactions task."""
    uid: str
    teams: List[dict]


class FeedbackSchema(BaseModel):
    """Feedback a user sends from the app."""
    userEmail: str
    feedbackType: str
    title: str
    message: str
