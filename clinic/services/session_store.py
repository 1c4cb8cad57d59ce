# clinic/services/session_store.py
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from .. import models

logger = logging.getLogger(__name__)


@dataclass
class ClientMeta:
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class SessionStore:
    """
    Login sessions backed by the ``login_sessions`` table.

    Sessions have a fixed expiry set at creation and are never extended.
    Lookups treat expired, logged-out and unknown ids identically.
    """

    def __init__(self, db: Session, ttl: timedelta = timedelta(hours=24),
                 clock: Callable[[], datetime] = models.utcnow):
        self.db = db
        self.ttl = ttl
        self.clock = clock

    def create_session(self, principal, variant: models.PrincipalVariant,
                       role: models.UserRole, client_meta: Optional[ClientMeta] = None) -> models.LoginSession:
        meta = client_meta or ClientMeta()
        now = self.clock()
        session = models.LoginSession(
            id=secrets.token_urlsafe(32),
            principal_id=principal.id,
            principal_variant=models.PrincipalVariant(variant),
            email=principal.email,
            role=models.UserRole(role),
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
            login_time=now,
            is_active=True,
            expires_at=now + self.ttl,
        )
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)
        logger.debug(f"Created session for {session.principal_variant.value} id={principal.id}")
        return session

    def find_active(self, session_id: Optional[str]) -> Optional[models.LoginSession]:
        if not session_id:
            return None
        return (
            self.db.query(models.LoginSession)
            .filter(
                models.LoginSession.id == session_id,
                models.LoginSession.is_active.is_(True),
                models.LoginSession.expires_at > self.clock(),
            )
            .first()
        )

    def get(self, session_id: Optional[str]) -> Optional[models.LoginSession]:
        """Any session row by id, regardless of state."""
        if not session_id:
            return None
        return self.db.get(models.LoginSession, session_id)

    def deactivate(self, session_id: Optional[str]) -> bool:
        """Log a session out. Returns False when there was nothing active to close."""
        if not session_id:
            return False
        updated = (
            self.db.query(models.LoginSession)
            .filter(
                models.LoginSession.id == session_id,
                models.LoginSession.is_active.is_(True),
            )
            .update(
                {"is_active": False, "logout_time": self.clock()},
                synchronize_session=False,
            )
        )
        self.db.commit()
        return bool(updated)

    def list_for_principal(self, variant: models.PrincipalVariant, principal_id: int) -> List[models.LoginSession]:
        return (
            self.db.query(models.LoginSession)
            .filter(
                models.LoginSession.principal_variant == models.PrincipalVariant(variant),
                models.LoginSession.principal_id == principal_id,
                models.LoginSession.is_active.is_(True),
                models.LoginSession.expires_at > self.clock(),
            )
            .order_by(models.LoginSession.login_time.desc())
            .all()
        )

    def deactivate_all_for_principal(self, variant: models.PrincipalVariant, principal_id: int) -> int:
        updated = (
            self.db.query(models.LoginSession)
            .filter(
                models.LoginSession.principal_variant == models.PrincipalVariant(variant),
                models.LoginSession.principal_id == principal_id,
                models.LoginSession.is_active.is_(True),
            )
            .update(
                {"is_active": False, "logout_time": self.clock()},
                synchronize_session=False,
            )
        )
        self.db.commit()
        return updated

    def purge_expired(self) -> int:
        """Physically delete sessions past their expiry, active or not."""
        deleted = (
            self.db.query(models.LoginSession)
            .filter(models.LoginSession.expires_at <= self.clock())
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted:
            logger.info(f"Purged {deleted} expired login sessions")
        return deleted
