# tour_admin/auth.py
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from tour_admin.exceptions import AuthError

logger = logging.getLogger(__name__)


@dataclass
class AdminSession:
    email: str
    user_id: str = ''


class AdminAuth:
    """Session gate: a signed-in identity only counts if it is on the allow-list.

    Works against a Supabase (GoTrue) auth client.
    """

    def __init__(self, auth_client, admin_emails: Iterable[str]):
        self.auth_client = auth_client
        self.admin_emails = {email.strip().lower() for email in admin_emails if email and email.strip()}

    def is_admin(self, email: Optional[str]) -> bool:
        return bool(email) and email.strip().lower() in self.admin_emails

    def sign_in(self, email: str, password: str) -> AdminSession:
        """Sign in and check the allow-list.

        Raises:
            AuthError: bad credentials, backend failure, or a non-admin identity
        """
        if not email or not password:
            raise AuthError("Email and password are required")

        try:
            response = self.auth_client.sign_in_with_password({'email': email, 'password': password})
        except Exception as e:
            raise AuthError(f"Sign-in failed: {str(e)}") from e

        user = getattr(response, 'user', None)
        user_email = getattr(user, 'email', None)

        if not self.is_admin(user_email):
            logger.warning(f"Rejected sign-in for non-admin identity {user_email or email}")
            self.sign_out()
            raise AuthError("This account is not allowed to access the admin console", code='not_admin')

        logger.info(f"Admin signed in: {user_email}")
        return AdminSession(email=user_email, user_id=str(getattr(user, 'id', '') or ''))

    def current_session(self) -> Optional[AdminSession]:
        """The signed-in admin, or None when nobody (or a non-admin) is signed in."""
        try:
            response = self.auth_client.get_user()
        except Exception as e:
            logger.warning(f"Current-session lookup failed: {str(e)}")
            return None

        user = getattr(response, 'user', None) if response else None
        user_email = getattr(user, 'email', None)
        if not self.is_admin(user_email):
            return None

        return AdminSession(email=user_email, user_id=str(getattr(user, 'id', '') or ''))

    def sign_out(self):
        try:
            self.auth_client.sign_out()
        except Exception as e:
            logger.warning(f"Sign-out failed: {str(e)}")
