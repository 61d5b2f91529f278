"""
Player evaluation for AutoCoach.
Scores how valuable a player is to roster based on ownership, rank and
positional scarcity in the league.
"""

import logging
from typing import Callable, Dict, List, Optional

from ..data.models import Player


logger = logging.getLogger(__name__)

# Offset to apply to each position based on its scarcity in a league
LeagueSpecificScarcityOffsets = Dict[str, float]

OWNERSHIP_FACTOR = 0.5
OWNERSHIP_DELTA_ADJUSTMENT_BOUND = 4
UNRANKED = -1

RANK_WEIGHTS: Dict[str, float] = {
    # NHL, MLB, NBA - totals 100
    "last30Days": 40,
    "last14Days": 30,
    "next7Days": 10,
    "restOfSeason": 20,
    # NFL - totals 100
    "last4Weeks": 40,
    "projectedWeek": 35,
    "next4Weeks": 25,
}


def ownership_score_function_factory(
    num_players_in_league: int,
    positional_scarcity_offsets: Optional[LeagueSpecificScarcityOffsets] = None,
) -> Callable[[Player], float]:
    """Return a function that scores how rosterable a player is.

    Scores are intended to fall between 0 and 120, but extreme inputs are not
    clamped.

    Args:
        num_players_in_league: Number of rostered players across the league.
        positional_scarcity_offsets: Offset to subtract for each position.
    """
    if num_players_in_league <= 0:
        raise ValueError(f"num_players_in_league must be positive, got {num_players_in_league}")

    def score(player: Player) -> float:
        positional_scarcity_offset = calculate_positional_scarcity_offset(
            player, positional_scarcity_offsets
        )
        ownership_score = player.percent_owned - positional_scarcity_offset
        rank_score = calculate_rank_score(num_players_in_league, player)
        ownership_delta_adjustment = calculate_ownership_delta(player)

        return (
            ownership_score * OWNERSHIP_FACTOR
            + rank_score * (1 - OWNERSHIP_FACTOR)
            + ownership_delta_adjustment
        )

    return score


def calculate_positional_scarcity_offset(
    player: Player,
    positional_scarcity_offsets: Optional[LeagueSpecificScarcityOffsets],
) -> float:
    """Smallest offset among the player's eligible positions, or 0."""
    if not positional_scarcity_offsets:
        return 0

    eligible_offsets = [
        positional_scarcity_offsets[position]
        for position in player.eligible_positions
        if positional_scarcity_offsets.get(position) is not None
    ]
    return min(eligible_offsets) if eligible_offsets else 0


def calculate_ownership_delta(player: Player) -> float:
    return min(player.percent_owned_delta, OWNERSHIP_DELTA_ADJUSTMENT_BOUND)


def calculate_rank_score(num_players_in_league: int, player: Player) -> float:
    """Weighted rank score; each period contributes at most weight / 5 before scaling."""
    score_out_of_twenty = 0.0
    for rank_type, rank in player.ranks.items():
        weight = RANK_WEIGHTS.get(rank_type)
        if rank == UNRANKED or weight is None:
            continue
        if rank == 0:
            # A zero rank would be an infinite ratio, so it takes the cap
            score_out_of_twenty += weight / 5
            continue
        score_out_of_twenty += min(num_players_in_league / rank, weight / 5)

    return 5 * score_out_of_twenty


def score_players(
    players: List[Player],
    num_players_in_league: int,
    positional_scarcity_offsets: Optional[LeagueSpecificScarcityOffsets] = None,
) -> List[Player]:
    """Set ownership_score on each player and return them best first."""
    score = ownership_score_function_factory(num_players_in_league, positional_scarcity_offsets)
    for player in players:
        player.ownership_score = score(player)
    return sorted(players, key=lambda p: p.ownership_score, reverse=True)
