"""
Weekly league transactions.

Leagues with a weekly roster deadline only accept transactions that take
effect the following week. The day before each deadline, every user with
such a team gets a task that builds and posts transactions for teams with
automated processing, and emails suggestions for the rest.
"""

import logging
from typing import List, Dict, Optional, Any, Union

from firebase_admin import functions

from ..analysis.transaction_builder import TransactionBuilder
from ..api.yahoo_client import YahooFantasyClient
from ..config.settings import get_config
from ..data.models import FirestoreTeam, Player
from ..data.storage import FirestoreStorage, get_firebase_app, get_storage
from ..errors import ApiRateLimitError, AuthorizationError, WeeklyTransactionsError
from ..utils import now_ms, tomorrow_pacific_date_string
from .email import send_potential_transaction_email
from .transactions import enrich_rosters_with_settings, post_transactions


logger = logging.getLogger(__name__)

WEEKLY_TRANSACTIONS_QUEUE = "weekly-transactions-queue"

# Errors the caller handles itself, e.g. by retrying later
PASSTHROUGH_ERRORS = (ApiRateLimitError, AuthorizationError)


def schedule_weekly_league_transactions(storage: Optional[FirestoreStorage] = None,
                                        queue=None) -> int:
    """Enqueue a weekly transactions task for each user with a deadline tomorrow.

    Returns:
        The number of users a task was enqueued for.
    """
    storage = storage or get_storage()

    try:
        teams = storage.get_tomorrows_active_weekly_teams()
    except Exception as e:
        raise WeeklyTransactionsError("Failed to fetch weekly teams from Firestore", error=e) from e

    active_users = map_users_to_active_teams(teams)
    if not active_users:
        logger.info("No users to process weekly transactions for")
        return 0

    try:
        enqueue_users_teams(active_users, queue or _task_queue())
    except Exception as e:
        raise WeeklyTransactionsError("Failed to enqueue weekly transactions", error=e) from e

    logger.info(f"Successfully enqueued weekly transaction tasks for {len(active_users)} users")
    return len(active_users)


def map_users_to_active_teams(teams: List[FirestoreTeam]) -> Dict[str, List[FirestoreTeam]]:
    """Group teams by user, leaving out teams whose season has not started."""
    # Firestore cannot filter on both start_date and end_date in one query
    current_time = now_ms()
    result: Dict[str, List[FirestoreTeam]] = {}
    for team in teams:
        if team.start_date <= current_time:
            result.setdefault(team.uid, []).append(team)
    return result


def enqueue_users_teams(active_users: Dict[str, List[FirestoreTeam]], queue) -> None:
    tasks_config = get_config().tasks
    options = functions.TaskOptions(
        dispatch_deadline_seconds=tasks_config.dispatch_deadline_seconds,
        uri=tasks_config.target_uri or None,
    )
    for uid, teams in active_users.items():
        queue.enqueue({"uid": uid, "teams": [team.to_dict() for team in teams]}, options)
        logger.debug(f"Enqueued weekly transactions for user {uid} ({len(teams)} teams)")


def _task_queue():
    queue_name = get_config().tasks.queue_path or WEEKLY_TRANSACTIONS_QUEUE
    return functions.task_queue(queue_name, app=get_firebase_app())


def perform_weekly_league_transactions(
    uid: str,
    teams: Optional[List[Union[FirestoreTeam, Dict[str, Any]]]],
    yahoo_client: Optional[YahooFantasyClient] = None,
    storage: Optional[FirestoreStorage] = None,
) -> None:
    """Build and post, or suggest, next week's transactions for a user's teams.

    Raises:
        WeeklyTransactionsError: Missing input or a failed step.
        ApiRateLimitError: Yahoo rate limited the user.
        AuthorizationError: Yahoo rejected the user's credentials.
    """
    if not uid:
        raise WeeklyTransactionsError("No uid provided")

    if not isinstance(teams, list):
        raise WeeklyTransactionsError("No teams provided", uid=uid)

    if not teams:
        logger.info(f"No weekly teams for user {uid}")
        return

    try:
        firestore_teams = [
            team if isinstance(team, FirestoreTeam) else FirestoreTeam.from_dict(team)
            for team in teams
        ]
    except (TypeError, ValueError) as e:
        raise WeeklyTransactionsError("Invalid teams provided", uid=uid, error=e) from e

    yahoo_client = yahoo_client or YahooFantasyClient(uid)
    storage = storage or get_storage()
    team_keys = [team.team_key for team in firestore_teams]

    try:
        top_available_players = yahoo_client.fetch_top_available_players(team_keys)
    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        raise WeeklyTransactionsError("Failed to get top available players", uid=uid, error=e) from e

    try:
        process_tomorrows_transactions(
            firestore_teams, uid, top_available_players, yahoo_client, storage
        )
    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        raise WeeklyTransactionsError(
            "Failed to process tomorrow's transactions", uid=uid, error=e
        ) from e


def process_tomorrows_transactions(firestore_teams: List[FirestoreTeam], uid: str,
                                   top_available_players: Dict[str, List[Player]],
                                   yahoo_client: YahooFantasyClient,
                                   storage: FirestoreStorage) -> None:
    """Fetch tomorrow's rosters and handle automatic and manual teams."""
    team_keys = [team.team_key for team in firestore_teams]
    rosters = yahoo_client.fetch_rosters(team_keys, tomorrow_pacific_date_string())
    rosters = enrich_rosters_with_settings(rosters, firestore_teams)

    builder = TransactionBuilder(storage.get_positional_scarcity_offsets())

    automatic = [r for r in rosters if r.allows("automated_transaction_processing")]
    manual = [r for r in rosters if not r.allows("automated_transaction_processing")]

    if automatic:
        transactions = builder.build_transactions(automatic, top_available_players)
        result = post_transactions(transactions, uid, yahoo_client)
        if not result.success:
            logger.warning(
                f"Some weekly transactions failed for user {uid}: "
                f"{result.transaction_results.failed_reasons}"
            )

    if manual:
        suggestions = builder.build_transactions(manual, top_available_players).all_player_transactions()
        for transaction in suggestions:
            logger.info(
                f"Suggested weekly transaction for user {uid}, team {transaction.team_key}: "
                f"{transaction.description}"
            )
        if suggestions:
            # Automatic teams are already posted, so a failed email must not fail the task
            try:
                if not send_potential_transaction_email(suggestions, uid):
                    logger.warning(f"Could not email weekly transaction suggestions to user {uid}")
            except Exception as e:
                logger.error(f"Failed to email weekly transaction suggestions to user {uid}: {e}")
