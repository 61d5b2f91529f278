"""
Positional scarcity offsets for a team's league.
"""

import logging
from typing import Dict

from ..data.storage import ScarcityOffsetsCollection
from .player_evaluator import LeagueSpecificScarcityOffsets


logger = logging.getLogger(__name__)


def get_scarcity_offsets_for_team(
    game_code: str,
    roster_positions: Dict[str, int],
    offsets_collection: ScarcityOffsetsCollection,
) -> LeagueSpecificScarcityOffsets:
    """Offsets for each position in a team's league.

    Stored offsets are a list per position, indexed by how many slots a
    league has for that position. A league with more slots than the list
    covers uses the last offset.
    """
    league_offsets = offsets_collection.get(game_code) or {}
    result: LeagueSpecificScarcityOffsets = {}
    for position, count in roster_positions.items():
        offsets = league_offsets.get(position)
        if not offsets or count <= 0:
            continue
        result[position] = offsets[min(count, len(offsets)) - 1]

    logger.debug(f"Scarcity offsets for {game_code} roster {roster_positions}: {result}")
    return result
