"""
Main application entry point for AutoCoach.
Serves the HTTP API and runs the weekly transaction jobs from the command line.
"""

import argparse
import json
import logging
import logging.handlers
import sys
import time

import schedule

from .config.settings import get_config
from .errors import WeeklyTransactionsError
from .services.teams import get_user_teams
from .services.transactions import get_transaction_suggestions
from .services.weekly_transactions import schedule_weekly_league_transactions


logger = logging.getLogger(__name__)


def setup_logging():
    """Setup logging configuration."""
    log_config = get_config().logging

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_config.level.upper()))

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # File handler with rotation
    file_handler = logging.handlers.RotatingFileHandler(
        log_config.file,
        maxBytes=log_config.max_size_mb * 1024 * 1024,
        backupCount=log_config.backup_count
    )
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)


def run_schedule_weekly() -> bool:
    """Enqueue weekly transaction tasks; False if scheduling failed."""
    try:
        schedule_weekly_league_transactions()
        return True
    except WeeklyTransactionsError as e:
        logger.error(f"{e.message}: {e.error}")
        return False


def run_scheduler():
    """Schedule weekly transactions every day and run until interrupted."""
    run_at = get_config().weekly_transactions_run_at
    schedule.every().day.at(run_at).do(run_schedule_weekly)
    logger.info(f"Weekly transactions scheduled daily at {run_at}")

    while True:
        schedule.run_pending()
        time.sleep(60)  # Check every minute


def serve():
    from .web.app import create_app

    api_config = get_config().api
    app = create_app()
    logger.info(f"Starting AutoCoach API on {api_config.host}:{api_config.port}")
    app.run(host=api_config.host, port=api_config.port)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="AutoCoach fantasy sports backend")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Run the HTTP API")
    sync_parser = subparsers.add_parser("sync-teams", help="Sync a user's Yahoo teams to Firestore")
    sync_parser.add_argument("--uid", required=True, help="Firebase user id")
    suggest_parser = subparsers.add_parser("suggest", help="Print transaction suggestions for a user")
    suggest_parser.add_argument("--uid", required=True, help="Firebase user id")
    subparsers.add_parser("schedule-weekly", help="Enqueue tomorrow's weekly transaction tasks")
    subparsers.add_parser("run-scheduler", help="Run schedule-weekly every day")

    args = parser.parse_args()
    setup_logging()

    try:
        if args.command == "serve":
            serve()
        elif args.command == "sync-teams":
            teams = get_user_teams(args.uid)
            print(json.dumps(teams, indent=2, default=str))
        elif args.command == "suggest":
            suggestions = get_transaction_suggestions(args.uid)
            print(json.dumps(suggestions.to_dict(), indent=2, default=str))
        elif args.command == "schedule-weekly":
            sys.exit(0 if run_schedule_weekly() else 1)
        elif args.command == "run-scheduler":
            run_scheduler()

    except KeyboardInterrupt:
        print("\nAutoCoach stopped by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
