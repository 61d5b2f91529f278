"""
Transaction services: suggesting transactions for a user's teams and
posting the ones they select.
"""

import logging
from typing import List, Optional

from ..analysis.transaction_builder import TransactionBuilder
from ..api.yahoo_client import YahooFantasyClient
from ..data.models import (
    FirestoreTeam,
    PostTransactionsResult,
    TeamRoster,
    TransactionResults,
    TransactionsData,
)
from ..data.storage import FirestoreStorage, get_storage
from ..errors import ApiRateLimitError, AuthorizationError, get_error_message
from ..utils import now_ms, pacific_date_string


logger = logging.getLogger(__name__)


def enrich_rosters_with_settings(rosters: List[TeamRoster],
                                 firestore_teams: List[FirestoreTeam]) -> List[TeamRoster]:
    """Attach each roster's Firestore settings, dropping rosters without any."""
    settings_by_key = {team.team_key: team for team in firestore_teams}
    enriched = []
    for roster in rosters:
        settings = settings_by_key.get(roster.team_key)
        if settings is None:
            logger.warning(f"No Firestore settings for team {roster.team_key}")
            continue
        roster.settings = settings
        enriched.append(roster)
    return enriched


def get_transactions(uid: str, yahoo_client: Optional[YahooFantasyClient] = None,
                     storage: Optional[FirestoreStorage] = None) -> TransactionsData:
    """Suggest transactions for all of the user's started teams that allow them."""
    storage = storage or get_storage()
    current_time = now_ms()
    teams = [
        team for team in storage.get_active_teams_for_user(uid)
        if team.start_date <= current_time
    ]
    if not teams:
        logger.info(f"No teams with transactions enabled for user {uid}")
        return TransactionsData()

    yahoo_client = yahoo_client or YahooFantasyClient(uid)
    team_keys = [team.team_key for team in teams]

    top_available_players = yahoo_client.fetch_top_available_players(team_keys)
    rosters = yahoo_client.fetch_rosters(team_keys, pacific_date_string())
    rosters = enrich_rosters_with_settings(rosters, teams)

    builder = TransactionBuilder(storage.get_positional_scarcity_offsets())
    return builder.build_transactions(rosters, top_available_players)


def post_transactions(transactions_data: TransactionsData, uid: str,
                      yahoo_client: Optional[YahooFantasyClient] = None) -> PostTransactionsResult:
    """Post every transaction and lineup change, collecting failures.

    Rate limit and authorization errors stop processing and are raised.
    """
    yahoo_client = yahoo_client or YahooFantasyClient(uid)
    results = TransactionResults()

    for transaction in transactions_data.all_player_transactions():
        try:
            yahoo_client.post_transaction(transaction)
            results.posted_transactions.append(transaction)
        except (ApiRateLimitError, AuthorizationError):
            raise
        except Exception as e:
            logger.error(f"Error posting transaction for user {uid}: {transaction.description}: {e}")
            results.failed_reasons.append(
                f"{transaction.team_name}: {transaction.description}. {get_error_message(e)}"
            )

    for lineup_changes in transactions_data.lineup_changes or []:
        try:
            yahoo_client.put_lineup_changes(lineup_changes)
        except (ApiRateLimitError, AuthorizationError):
            raise
        except Exception as e:
            logger.error(f"Error updating lineup for team {lineup_changes.team_key}: {e}")
            results.failed_reasons.append(
                f"Lineup changes for {lineup_changes.team_key}. {get_error_message(e)}"
            )

    success = not results.failed_reasons
    logger.info(
        f"Posted {len(results.posted_transactions)} transactions for user {uid}, "
        f"{len(results.failed_reasons)} failed"
    )
    return PostTransactionsResult(success=success, transaction_results=results)


def get_transaction_suggestions(uid: str) -> TransactionsData:
    return get_transactions(uid)


def process_selected_transactions(transactions_data: TransactionsData, uid: str) -> PostTransactionsResult:
    return post_transactions(transactions_data, uid)
