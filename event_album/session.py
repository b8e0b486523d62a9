import logging

from event_album.errors import AuthenticationRequired
from event_album.keys import sanitize_owner_folder

logger = logging.getLogger(__name__)

DEFAULT_ROLE = 'user'


class UserSession:
    """
    Identity of the signed-in user, passed explicitly into every upload,
    listing and delete call.

    The owner identity is the email when present, otherwise the display
    name. It is resolved once and does not change for the lifetime of
    the session object.
    """

    def __init__(self, email=None, name=None, role=None):
        self.email = (email or '').strip() or None
        self.name = (name or '').strip() or None
        self.role = (role or '').strip() or DEFAULT_ROLE

    @classmethod
    def from_mapping(cls, data):
        """
        Build a session from a login-session style mapping
        (``user_email`` / ``user_name`` / ``user_type`` keys).
        """
        data = data or {}
        return cls(
            email=data.get('user_email'),
            name=data.get('user_name'),
            role=data.get('user_type')
        )

    @property
    def is_authenticated(self):
        return bool(self.email or self.name)

    @property
    def owner_identity(self):
        if not self.is_authenticated:
            logger.warning("[SECURITY] No user identity available - operation: resolve_owner_identity")
            raise AuthenticationRequired()
        return self.email or self.name

    @property
    def owner_folder(self):
        return sanitize_owner_folder(self.owner_identity)

    def __repr__(self):
        return f"UserSession(email={self.email!r}, name={self.name!r}, role={self.role!r})"


def require_owner(session, operation):
    """Owner identity of ``session``; AuthenticationRequired when there is no session or no identity."""
    if session is None:
        logger.warning(f"[SECURITY] Request without a session - operation: {operation}")
        raise AuthenticationRequired("User not authenticated")
    return session.owner_identity
