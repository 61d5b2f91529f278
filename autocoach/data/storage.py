"""
Data storage and persistence for AutoCoach.
Reads and writes user tokens, team settings, schedules and positional
scarcity offsets in Firestore.
"""

import logging
from typing import List, Dict, Optional, Any

import firebase_admin
from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from ..config.settings import get_config
from ..data.models import (
    ClientTeam,
    FirestoreTeam,
    InfoTeam,
    merge_teams,
    yahoo_to_firestore,
)
from ..utils import current_pacific_num_day, now_ms


logger = logging.getLogger(__name__)

# Offsets per position, indexed by the number of roster slots for it
ScarcityOffsetsCollection = Dict[str, Dict[str, List[float]]]


def get_firebase_app():
    """Return the default Firebase app, initializing it once."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        project_id = get_config().firebase.project_id
        options = {"projectId": project_id} if project_id else None
        return firebase_admin.initialize_app(options=options)


def get_firestore_client():
    return firestore.client(get_firebase_app())


class FirestoreStorage:
    """Manages AutoCoach data persisted in Firestore."""

    def __init__(self, db=None):
        self.db = db if db is not None else get_firestore_client()

    def _teams(self, uid: str):
        return self.db.collection(f"users/{uid}/teams")

    # ----------------------------------------------------------------- users

    def load_user(self, uid: str) -> Optional[Dict[str, Any]]:
        """Return the user document, or None if it does not exist."""
        snapshot = self.db.collection("users").document(uid).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict()

    def update_user(self, uid: str, data: Dict[str, Any]) -> None:
        self.db.collection("users").document(uid).update(data)

    def flag_refresh_token(self, uid: str) -> None:
        """Mark the user's refresh token as revoked."""
        try:
            self.update_user(uid, {"refreshToken": "-1"})
        except Exception as e:
            logger.error(f"Error setting refresh token to sentinel value for user {uid}: {e}")

    # ----------------------------------------------------------------- teams

    def fetch_teams(self, uid: str) -> List[FirestoreTeam]:
        """Fetch all of the user's teams that have not ended."""
        try:
            query = self._teams(uid).where(filter=FieldFilter("end_date", ">=", now_ms()))
            return [FirestoreTeam.from_dict(doc.to_dict()) for doc in query.stream()]
        except Exception as e:
            logger.error(f"Error fetching teams from Firestore for user {uid}: {e}")
            raise RuntimeError(f"Error fetching teams from Firebase. User: {uid}") from e

    def sync_teams(self, missing_teams: List[InfoTeam], extra_teams: List[FirestoreTeam],
                   uid: str) -> List[ClientTeam]:
        """Insert teams that are new on Yahoo and delete teams Yahoo no longer has.

        Returns:
            The inserted teams, merged with their new Firestore settings.
        """
        result: List[ClientTeam] = []
        batch = self.db.batch()
        current_time = now_ms()

        for m_team in missing_teams:
            if m_team.end_date < current_time:
                continue
            firestore_team = yahoo_to_firestore(m_team, uid)
            batch.set(self._teams(uid).document(str(m_team.team_key)), firestore_team.to_dict())
            result.append(merge_teams(m_team, firestore_team))

        for e_team in extra_teams:
            batch.delete(self._teams(uid).document(str(e_team.team_key)))

        try:
            batch.commit()
        except Exception as e:
            logger.error(
                f"Error syncing teams in Firestore for user {uid} "
                f"({len(missing_teams)} missing, {len(extra_teams)} extra): {e}"
            )
            raise RuntimeError("Error syncing teams in Firebase.") from e

        logger.info(f"Synced teams for user {uid}: {len(result)} added, {len(extra_teams)} removed")
        return result

    def update_team(self, uid: str, team_key: str, data: Dict[str, Any]) -> bool:
        """Update fields on one of the user's teams."""
        try:
            self._teams(uid).document(team_key).update(data)
            logger.info(f"Updated team {team_key} for user {uid}")
            return True
        except Exception as e:
            logger.error(f"Error updating team {team_key} for user {uid}: {e}")
            return False

    def get_active_teams_for_user(self, uid: str) -> List[FirestoreTeam]:
        """Teams that are setting lineups and allow transactions."""
        query = (
            self._teams(uid)
            .where(filter=FieldFilter("is_setting_lineups", "==", True))
            .where(filter=FieldFilter("allow_transactions", "==", True))
            .where(filter=FieldFilter("end_date", ">=", now_ms()))
        )
        return [FirestoreTeam.from_dict(doc.to_dict()) for doc in query.stream()]

    def get_tomorrows_active_weekly_teams(self) -> List[FirestoreTeam]:
        """Teams across all users whose weekly deadline is tomorrow."""
        tomorrow = str((current_pacific_num_day() + 1) % 7)
        query = (
            self.db.collection_group("teams")
            .where(filter=FieldFilter("is_setting_lineups", "==", True))
            .where(filter=FieldFilter("allow_transactions", "==", True))
            .where(filter=FieldFilter("end_date", ">=", now_ms()))
            .where(filter=FieldFilter("weekly_deadline", "==", tomorrow))
        )
        teams = []
        for doc in query.stream():
            data = doc.to_dict()
            data["team_key"] = doc.id
            teams.append(FirestoreTeam.from_dict(data))
        return teams

    def disable_lineup_setting_for_user(self, uid: str) -> None:
        """Stop setting lineups for all of a user's teams."""
        try:
            query = self._teams(uid).where(filter=FieldFilter("is_setting_lineups", "==", True))
            docs = list(query.stream())
            if not docs:
                logger.info(f"No teams with lineup setting enabled for user {uid}")
                return

            batch = self.db.batch()
            for doc in docs:
                batch.update(doc.reference, {"is_setting_lineups": False})
            batch.commit()
            logger.info(f"Disabled lineup setting for {len(docs)} teams of user {uid}")
        except Exception as e:
            logger.error(f"Error disabling lineup setting for user {uid}: {e}")

    # -------------------------------------------------------------- schedule

    def get_schedule(self) -> Optional[Dict[str, Any]]:
        """Return the stored schedule document for today, if any."""
        snapshot = self.db.collection("schedule").document("today").get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict()

    def store_schedule(self, date: str, games: Dict[str, List[int]]) -> None:
        self.db.collection("schedule").document("today").set({"date": date, "games": games})

    # ------------------------------------------------- positional scarcity

    def get_positional_scarcity_offsets(self) -> ScarcityOffsetsCollection:
        """All leagues' positional scarcity offsets; empty if unavailable."""
        try:
            offsets: ScarcityOffsetsCollection = {}
            for doc in self.db.collection("positionalScarcityOffsets").stream():
                offsets[doc.id] = doc.to_dict()
            return offsets
        except Exception as e:
            logger.error(f"Error getting scarcity offsets from Firestore: {e}")
            return {}


_storage: Optional[FirestoreStorage] = None


def get_storage() -> FirestoreStorage:
    """Get the shared storage instance, creating it on first use."""
    global _storage
    if _storage is None:
        _storage = FirestoreStorage()
    return _storage
