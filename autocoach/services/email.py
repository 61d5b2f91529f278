"""
Email for AutoCoach users and support, sent through SendGrid templates.
"""

import logging
from typing import Any, Dict, List, Optional

from firebase_admin import auth as firebase_auth
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import From, Mail, ReplyTo

from ..api.schemas import FeedbackSchema
from ..config.settings import get_config
from ..data.models import PlayerTransaction
from ..data.storage import get_firebase_app


logger = logging.getLogger(__name__)

SUPPORT_SENDER_NAME = "Fantasy AutoCoach"
FEEDBACK_SENDER_NAME = "Fantasy AutoCoach User Feedback"
UNKNOWN_EMAIL = "Unknown Email"


def get_sendgrid_client() -> SendGridAPIClient:
    return SendGridAPIClient(get_config().email.sendgrid_api_key)


def get_user_record(uid: str):
    """Look up a user in Firebase Auth."""
    return firebase_auth.get_user(uid, app=get_firebase_app())


def _template_mail(to_email: str, from_email: From, template_id: str,
                   template_data: Dict[str, Any]) -> Mail:
    message = Mail(from_email=from_email, to_emails=to_email)
    message.template_id = template_id
    message.dynamic_template_data = template_data
    return message


def send_feedback_email(user_email: str, feedback_type: str, title: str, message: str,
                        client: Optional[SendGridAPIClient] = None) -> bool:
    """Send a user's feedback to the support inbox, replying to the user.

    Raises:
        RuntimeError: SendGrid did not accept the email.
    """
    email_config = get_config().email
    mail = _template_mail(
        email_config.support_address,
        From(email_config.feedback_from_address, FEEDBACK_SENDER_NAME),
        email_config.feedback_template_id,
        {"feedbackType": feedback_type, "title": title, "message": message},
    )
    mail.reply_to = ReplyTo(user_email)

    try:
        (client or get_sendgrid_client()).send(mail)
    except Exception as e:
        logger.error(f"Feedback email from {user_email} ({feedback_type}) failed to send: {e}")
        raise RuntimeError(f"Failed to send feedback email {e}") from e

    logger.info(f"Feedback email sent from {user_email} ({feedback_type})")
    return True


def send_user_email(uid: str, subject: str, body: List[str], button_text: str = "",
                    button_url: str = "", client: Optional[SendGridAPIClient] = None) -> bool:
    """Email a user through the general user template.

    Returns:
        False if SendGrid did not accept the email.
    """
    user = get_user_record(uid)
    if not user or not user.email:
        raise RuntimeError(f"Not a valid user: {uid}")

    email_config = get_config().email
    mail = _template_mail(
        user.email,
        From(email_config.support_address, SUPPORT_SENDER_NAME),
        email_config.user_template_id,
        {
            "displayName": user.display_name,
            "body": body,
            "subject": subject,
            "buttonText": button_text,
            "buttonUrl": button_url,
        },
    )

    try:
        (client or get_sendgrid_client()).send(mail)
    except Exception as e:
        logger.error(f"User email '{subject}' to user {uid} failed to send: {e}")
        return False

    logger.info(f"User email '{subject}' sent to user {uid}")
    return True


def send_user_feedback_email(feedback: FeedbackSchema, uid: str,
                             client: Optional[SendGridAPIClient] = None) -> bool:
    """Forward feedback from the app, replying to the user's account email."""
    user = get_user_record(uid)
    user_email = user.email or feedback.userEmail or UNKNOWN_EMAIL
    return send_feedback_email(
        user_email, feedback.feedbackType, feedback.title, feedback.message, client
    )


def send_potential_transaction_email(transactions: List[PlayerTransaction], uid: str,
                                     client: Optional[SendGridAPIClient] = None) -> bool:
    """Email a user the transactions suggested for teams they manage themselves."""
    if not transactions:
        return False

    body = ["The following transactions are recommended for your teams:"]
    team_keys: List[str] = []
    for transaction in transactions:
        if transaction.team_key not in team_keys:
            team_keys.append(transaction.team_key)
    for team_key in team_keys:
        team_transactions = [t for t in transactions if t.team_key == team_key]
        first = team_transactions[0]
        body.append(f"<strong>{first.team_name} ({first.league_name}):</strong>")
        body.extend(f"- {t.description}" for t in team_transactions)

    return send_user_email(
        uid,
        "Recommended Transactions",
        body,
        "View Transactions",
        f"{get_config().email.app_url}/transactions",
        client,
    )
