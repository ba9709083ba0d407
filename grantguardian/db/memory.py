import copy
import logging
import secrets
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from passlib.context import CryptContext

from grantguardian.core.config import settings
from grantguardian.core.errors import BackendError
from grantguardian.db.backend import Backend, Row, TABLES, ORGANIZATIONS, USER_PROFILES, GRANTS
from grantguardian.schemas.auth import AuthSession, AuthUser

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryBackend(Backend):
    """
    Process-local stand-in for the hosted backend, used for local development
    and tests. Mirrors the hosted service's error messages for the cases the
    application surfaces to users.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._users: Dict[str, Dict[str, Any]] = {}
        self._tokens: Dict[str, str] = {}
        self._refresh_tokens: Dict[str, str] = {}
        self._tables: Dict[str, Dict[str, Row]] = {name: {} for name in TABLES}
        # Password-reset emails that would have been sent
        self.outbox: List[Dict[str, str]] = []

    # Identity

    def sign_up(self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> Optional[AuthSession]:
        email = email.strip().lower()
        with self._lock:
            if self._find_user_by_email(email):
                raise BackendError("User already registered")
            self._check_password(password)
            user_id = str(uuid.uuid4())
            self._users[user_id] = {
                "id": user_id,
                "email": email,
                "password_hash": pwd_context.hash(password),
                "user_metadata": dict(metadata or {}),
            }
            logger.info(f"Identity created: {user_id}")
            return self._issue_session(user_id)

    def sign_in(self, email: str, password: str) -> AuthSession:
        email = email.strip().lower()
        with self._lock:
            user = self._find_user_by_email(email)
            if not user or not pwd_context.verify(password, user["password_hash"]):
                raise BackendError("Invalid login credentials")
            return self._issue_session(user["id"])

    def sign_out(self, session: AuthSession) -> None:
        with self._lock:
            self._tokens.pop(session.access_token, None)
            self._refresh_tokens.pop(session.refresh_token, None)

    def get_user(self, access_token: str) -> Optional[AuthUser]:
        with self._lock:
            user_id = self._tokens.get(access_token)
            if user_id is None or user_id not in self._users:
                return None
            return self._to_auth_user(self._users[user_id])

    def refresh_session(self, refresh_token: str) -> Optional[AuthSession]:
        # Refresh tokens are single use
        with self._lock:
            user_id = self._refresh_tokens.pop(refresh_token, None)
            if user_id is None or user_id not in self._users:
                return None
            return self._issue_session(user_id)

    def update_user(self, session: AuthSession, email: Optional[str] = None, password: Optional[str] = None) -> AuthUser:
        with self._lock:
            user = self._require_user(session)
            if email is not None:
                email = email.strip().lower()
                other = self._find_user_by_email(email)
                if other and other["id"] != user["id"]:
                    raise BackendError("A user with this email address has already been registered")
            if password is not None:
                self._check_password(password)
            if email is not None:
                user["email"] = email
            if password is not None:
                user["password_hash"] = pwd_context.hash(password)
            return self._to_auth_user(user)

    def send_password_reset(self, email: str, redirect_to: str) -> None:
        # Sent whether or not the address is registered
        self.outbox.append({"email": email.strip().lower(), "redirect_to": redirect_to})

    # Tables

    def select(self, session, table, filters=None, order_by=None, desc=False) -> List[Row]:
        with self._lock:
            self._require_user(session)
            rows = [
                row for row in self._table(table).values()
                if all(row.get(key) == value for key, value in (filters or {}).items())
            ]
            if order_by:
                rows = sorted(rows, key=lambda r: (r.get(order_by) is not None, r.get(order_by) or ""), reverse=desc)
            return copy.deepcopy(rows)

    def insert(self, session: AuthSession, table: str, row: Row) -> Row:
        with self._lock:
            self._require_user(session)
            return copy.deepcopy(self._insert(table, row))

    def update(self, session: AuthSession, table: str, row_id: str, values: Row) -> Optional[Row]:
        with self._lock:
            self._require_user(session)
            existing = self._table(table).get(row_id)
            if existing is None:
                return None
            existing.update({k: v for k, v in values.items() if k != "id"})
            return copy.deepcopy(existing)

    def delete(self, session: AuthSession, table: str, row_id: str) -> None:
        with self._lock:
            self._require_user(session)
            self._table(table).pop(row_id, None)

    def list_organizations(self, session: AuthSession) -> List[Row]:
        with self._lock:
            self._require_user(session)
            rows = sorted(self._tables[ORGANIZATIONS].values(), key=lambda r: r["name"])
            return [{"id": row["id"], "name": row["name"]} for row in rows]

    def create_organization_with_admin(self, session: AuthSession, organization: Row, profile: Row) -> Tuple[Row, Row]:
        with self._lock:
            self._require_user(session)
            org_row = self._insert(ORGANIZATIONS, organization)
            try:
                profile_row = self._insert(USER_PROFILES, dict(profile, id=session.user.id, organization_id=org_row["id"]))
            except BackendError:
                del self._tables[ORGANIZATIONS][org_row["id"]]
                raise
            return copy.deepcopy(org_row), copy.deepcopy(profile_row)

    def join_organization(self, session: AuthSession, organization_id: str, invite_code: str,
                          profile: Row) -> Optional[Tuple[Row, Row]]:
        with self._lock:
            self._require_user(session)
            org_row = self._tables[ORGANIZATIONS].get(organization_id)
            if org_row is None or org_row["invite_code"] != invite_code:
                return None
            profile_row = self._insert(USER_PROFILES, dict(
                profile, id=session.user.id, organization_id=organization_id, role="staff",
            ))
            return copy.deepcopy(org_row), copy.deepcopy(profile_row)

    def rows(self, table: str) -> List[Row]:
        """All rows of a table, bypassing sessions. For inspection in tests and debugging."""
        with self._lock:
            return copy.deepcopy(list(self._table(table).values()))

    # Internals

    def _table(self, table: str) -> Dict[str, Row]:
        if table not in self._tables:
            raise BackendError(f'relation "public.{table}" does not exist')
        return self._tables[table]

    def _insert(self, table: str, row: Row) -> Row:
        rows = self._table(table)
        new_row = dict(row)
        new_row.setdefault("id", str(uuid.uuid4()))
        new_row.setdefault("created_at", _now())
        if table == GRANTS:
            new_row.setdefault("updated_at", new_row["created_at"])
        if new_row["id"] in rows:
            raise BackendError(f'duplicate key value violates unique constraint "{table}_pkey"')
        rows[new_row["id"]] = new_row
        return new_row

    def _require_user(self, session: AuthSession) -> Dict[str, Any]:
        user_id = self._tokens.get(session.access_token)
        if user_id is None or user_id not in self._users:
            raise BackendError("Invalid JWT: session is missing or expired")
        return self._users[user_id]

    def _find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return next((u for u in self._users.values() if u["email"] == email), None)

    def _check_password(self, password: str) -> None:
        if len(password) < settings.MIN_PASSWORD_LENGTH:
            raise BackendError(f"Password should be at least {settings.MIN_PASSWORD_LENGTH} characters")

    def _issue_session(self, user_id: str) -> AuthSession:
        access_token = secrets.token_urlsafe(32)
        refresh_token = secrets.token_urlsafe(32)
        self._tokens[access_token] = user_id
        self._refresh_tokens[refresh_token] = user_id
        return AuthSession(
            access_token=access_token,
            refresh_token=refresh_token,
            user=self._to_auth_user(self._users[user_id]),
        )

    @staticmethod
    def _to_auth_user(user: Dict[str, Any]) -> AuthUser:
        return AuthUser(id=user["id"], email=user["email"], user_metadata=dict(user["user_metadata"]))
