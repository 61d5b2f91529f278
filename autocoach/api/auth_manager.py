"""
OAuth token management for the Yahoo Fantasy Sports API.
Loads each user's tokens from Firestore and refreshes them when expired.
"""

import base64
import logging
import time
from typing import Optional, Dict, Any

import requests

from ..config.settings import get_config
from ..data.storage import FirestoreStorage, get_storage
from ..errors import RevokedRefreshTokenError


logger = logging.getLogger(__name__)

TOKEN_URL = "https://api.login.yahoo.com/oauth2/get_token"

# Refresh tokens this close to expiry to allow for request latency
EXPIRY_BUFFER_MS = 10_000

REVOKED_REFRESH_TOKEN = "-1"


class YahooAuthManager:
    """Provides valid Yahoo access tokens for AutoCoach users."""

    def __init__(self, storage: Optional[FirestoreStorage] = None):
        self.config = get_config()
        self.storage = storage or get_storage()

    def get_access_token(self, uid: str) -> str:
        """Return a valid access token for the user, refreshing if necessary."""
        user = self.storage.load_user(uid)
        if not user:
            raise RuntimeError(f"No access token found for user {uid}")

        if user.get("refreshToken") == REVOKED_REFRESH_TOKEN:
            self.storage.disable_lineup_setting_for_user(uid)
            raise RevokedRefreshTokenError(
                f"User {uid} has revoked access. Stopping all actions for this user."
            )

        if user.get("tokenExpirationTime", 0) >= time.time() * 1000 + EXPIRY_BUFFER_MS:
            return user["accessToken"]

        token = self._refresh_token(uid, user.get("refreshToken", ""))
        try:
            self.storage.update_user(uid, token)
        except Exception as e:
            logger.error(f"Error storing token in Firestore for user {uid}: {e}")
        return token["accessToken"]

    def _refresh_token(self, uid: str, refresh_token: str) -> Dict[str, Any]:
        """Exchange the refresh token for a new access token."""
        yahoo_config = self.config.yahoo_api
        auth_header = base64.b64encode(
            f"{yahoo_config.client_id}:{yahoo_config.client_secret}".encode('utf-8')
        ).decode('utf-8')

        headers = {
            'Authorization': f'Basic {auth_header}',
            'Content-Type': 'application/x-www-form-urlencoded',
        }
        token_data = {
            'redirect_uri': yahoo_config.redirect_uri,
            'grant_type': 'refresh_token',
            'refresh_token': refresh_token,
        }

        try:
            response = requests.post(
                TOKEN_URL,
                data=token_data,
                headers=headers,
                timeout=yahoo_config.request_timeout_seconds,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.error(f"Could not refresh access token for user {uid}: {e}")
            error = self._parse_token_error(e.response)
            if (error.get("error") == "invalid_grant"
                    and error.get("error_description") == "Invalid refresh token"):
                self.storage.flag_refresh_token(uid)
                self.storage.disable_lineup_setting_for_user(uid)
            raise RuntimeError(
                f"Could not refresh access token for user: {uid} : "
                f"{error.get('error')} {error.get('error_description')}"
            ) from e
        except requests.RequestException as e:
            logger.error(f"Could not refresh access token for user {uid}: {e}")
            raise RuntimeError(f"Could not refresh access token for user: {uid} : {e}") from e

        token_response = response.json()
        token = {
            "accessToken": token_response["access_token"],
            "tokenExpirationTime": int(time.time() * 1000) + token_response["expires_in"] * 1000,
        }
        if "refresh_token" in token_response:
            token["refreshToken"] = token_response["refresh_token"]
        return token

    @staticmethod
    def _parse_token_error(response: Optional[requests.Response]) -> Dict[str, Any]:
        if response is None:
            return {}
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
