"""
Transaction suggestions for AutoCoach.
Decides which players each team should drop, add or swap based on
ownership scores and the team's transaction settings.
"""

import logging
from typing import List, Dict, Optional, Set, Tuple
from dataclasses import dataclass, field

from ..data.models import (
    Player,
    PlayerTransaction,
    TeamRoster,
    TPlayer,
    TransactionType,
    TransactionsData,
)
from ..data.storage import ScarcityOffsetsCollection
from .player_evaluator import score_players
from .positional_scarcity import get_scarcity_offsets_for_team


logger = logging.getLogger(__name__)

# A free agent must beat a rostered player by this much to be worth a swap
SWAP_SCORE_MARGIN = 10

# A rostered player scoring below this share of the best free agent is dead weight
DROP_SCORE_RATIO = 0.5

# Leagues that roster by date allow adds to play the same day
SAME_DAY_COVERAGE_TYPES = ("date",)


@dataclass
class TeamTransactions:
    """Suggested transactions for one team."""
    drops: List[PlayerTransaction] = field(default_factory=list)
    add_swaps: List[PlayerTransaction] = field(default_factory=list)


class TransactionBuilder:
    """Builds drop, add and add/drop suggestions for teams."""

    def __init__(self, scarcity_offsets: Optional[ScarcityOffsetsCollection] = None):
        self.scarcity_offsets = scarcity_offsets or {}

    def build_transactions(self, rosters: List[TeamRoster],
                           top_available_players: Dict[str, List[Player]]) -> TransactionsData:
        """Suggest transactions for every roster that allows them."""
        drop_groups: List[List[PlayerTransaction]] = []
        add_swap_groups: List[List[PlayerTransaction]] = []

        for roster in rosters:
            if not roster.allows("allow_transactions"):
                logger.debug(f"Transactions disabled for team {roster.team_key}")
                continue

            candidates = top_available_players.get(roster.team_key, [])
            team_transactions = self.build_team_transactions(roster, candidates)
            if team_transactions.drops:
                drop_groups.append(team_transactions.drops)
            if team_transactions.add_swaps:
                add_swap_groups.append(team_transactions.add_swaps)

        logger.info(
            f"Built transactions for {len(rosters)} teams: "
            f"{sum(len(g) for g in drop_groups)} drops, "
            f"{sum(len(g) for g in add_swap_groups)} adds/swaps"
        )
        return TransactionsData(
            drop_player_transactions=drop_groups or None,
            lineup_changes=None,
            add_swap_transactions=add_swap_groups or None,
        )

    def build_team_transactions(self, roster: TeamRoster,
                                candidates: List[Player]) -> TeamTransactions:
        """Suggest transactions for a single team."""
        offsets = get_scarcity_offsets_for_team(
            roster.game_code, roster.roster_positions, self.scarcity_offsets
        )
        num_players = roster.num_players_in_league
        if num_players <= 0:
            logger.warning(f"Team {roster.team_key} has no active roster positions")
            return TeamTransactions()

        score_players(roster.players, num_players, offsets)
        free_agents = score_players(self._eligible_free_agents(roster, candidates), num_players, offsets)
        droppable = sorted(
            [p for p in roster.active_players if not p.is_undroppable],
            key=lambda p: p.ownership_score,
        )

        result = TeamTransactions()
        used: Set[str] = set()

        # Drop players while the active roster is over the limit
        over_limit = max(0, -roster.open_roster_spots)
        if over_limit and roster.allows("allow_dropping"):
            for player in droppable[:over_limit]:
                result.drops.append(self._drop_transaction(
                    roster, player, f"{roster.team_name} is over the active roster limit."
                ))
                used.add(player.player_key)

        # Adds fill open roster spots, counting spots freed by drops
        open_spots = roster.open_roster_spots + len(result.drops)
        if open_spots > 0 and roster.allows("allow_adding"):
            for player in free_agents[:open_spots]:
                result.add_swaps.append(self._add_transaction(roster, player))
                used.add(player.player_key)

        remaining_agents = [p for p in free_agents if p.player_key not in used]
        remaining_droppable = [p for p in droppable if p.player_key not in used]

        if roster.allows("allow_add_drops"):
            for add_player, drop_player in self._find_swaps(remaining_agents, remaining_droppable):
                result.add_swaps.append(self._swap_transaction(roster, add_player, drop_player))
                used.update((add_player.player_key, drop_player.player_key))
        elif roster.allows("allow_dropping") and remaining_agents:
            best_score = remaining_agents[0].ownership_score
            for player in remaining_droppable:
                if player.ownership_score >= best_score * DROP_SCORE_RATIO:
                    break
                result.drops.append(self._drop_transaction(
                    roster, player,
                    f"{player.player_name} scores far below the best available player, "
                    f"{remaining_agents[0].player_name}.",
                ))

        return result

    def _eligible_free_agents(self, roster: TeamRoster, candidates: List[Player]) -> List[Player]:
        rostered = {p.player_key for p in roster.players}
        allow_waivers = roster.allows("allow_waiver_adds")
        return [
            p for p in candidates
            if p.player_key not in rostered and (allow_waivers or not p.is_on_waivers)
        ]

    @staticmethod
    def _find_swaps(free_agents: List[Player], droppable: List[Player]) -> List[Tuple[Player, Player]]:
        """Pair the best free agents with the weakest droppable players."""
        swaps = []
        for add_player, drop_player in zip(free_agents, droppable):
            if add_player.ownership_score - drop_player.ownership_score < SWAP_SCORE_MARGIN:
                break
            swaps.append((add_player, drop_player))
        return swaps

    def _transaction(self, roster: TeamRoster, description: str, reason: Optional[str],
                     players: List[TPlayer]) -> PlayerTransaction:
        waiver_add = any(p.is_from_waivers for p in players)
        return PlayerTransaction(
            team_name=roster.team_name,
            league_name=roster.league_name,
            team_key=roster.team_key,
            same_day_transactions=roster.coverage_type in SAME_DAY_COVERAGE_TYPES,
            description=description,
            reason=reason,
            players=players,
            is_faab_required=roster.waiver_rule == "faab" and waiver_add,
        )

    def _drop_transaction(self, roster: TeamRoster, player: Player, reason: str) -> PlayerTransaction:
        return self._transaction(
            roster,
            f"Drop {_describe(player)}",
            reason,
            [_t_player(player, TransactionType.DROP)],
        )

    def _add_transaction(self, roster: TeamRoster, player: Player) -> PlayerTransaction:
        source = "waivers" if player.is_on_waivers else "free agency"
        return self._transaction(
            roster,
            f"Add {_describe(player)} from {source}",
            f"There is an open roster spot and {player.player_name} is the best available player.",
            [_t_player(player, TransactionType.ADD)],
        )

    def _swap_transaction(self, roster: TeamRoster, add_player: Player,
                          drop_player: Player) -> PlayerTransaction:
        return self._transaction(
            roster,
            f"Add {_describe(add_player)}, drop {_describe(drop_player)}",
            (
                f"{add_player.player_name} ({add_player.ownership_score:.1f}) outscores "
                f"{drop_player.player_name} ({drop_player.ownership_score:.1f})."
            ),
            [_t_player(add_player, TransactionType.ADD), _t_player(drop_player, TransactionType.DROP)],
        )


def _describe(player: Player) -> str:
    positions = ", ".join(player.display_positions or player.eligible_positions)
    return f"{player.player_name} ({positions})" if positions else player.player_name


def _t_player(player: Player, transaction_type: TransactionType) -> TPlayer:
    return TPlayer(
        player_key=player.player_key,
        transaction_type=transaction_type,
        is_inactive_list=player.is_inactive_list,
        player=player,
        is_from_waivers=player.is_on_waivers if transaction_type == TransactionType.ADD else None,
    )
