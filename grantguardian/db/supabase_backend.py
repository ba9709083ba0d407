import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional, Tuple

from postgrest.exceptions import APIError
from supabase import AuthError, Client, ClientOptions, create_client

from grantguardian.core.errors import BackendError
from grantguardian.db.backend import Backend, Row
from grantguardian.schemas.auth import AuthSession, AuthUser

logger = logging.getLogger(__name__)

# Postgres functions in sql/schema.sql
CREATE_ORGANIZATION_RPC = "create_organization_with_admin"
JOIN_ORGANIZATION_RPC = "join_organization"
LIST_ORGANIZATIONS_RPC = "list_organizations"


@contextmanager
def _backend_errors(operation: str):
    try:
        yield
    except APIError as e:
        logger.error(f"Supabase {operation} failed: {e.message}")
        raise BackendError(e.message or str(e))
    except AuthError as e:
        logger.error(f"Supabase {operation} failed: {e.message}")
        raise BackendError(e.message or str(e))


class SupabaseBackend(Backend):
    """
    Backend implemented with the supabase client.

    A fresh client is built per call and authorised with the caller's access
    token, so row-level security policies see the right user and no session
    state is shared between requests.
    """

    def __init__(self, url: str, key: str, client_factory: Callable[..., Client] = create_client):
        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY are required for the supabase backend")
        self.url = url
        self.key = key
        self._client_factory = client_factory

    def _client(self, session: Optional[AuthSession] = None) -> Client:
        # Clients live for one call: no background token refresh, nothing persisted
        options = ClientOptions(auto_refresh_token=False, persist_session=False)
        client = self._client_factory(self.url, self.key, options=options)
        if session is not None:
            client.postgrest.auth(session.access_token)
        return client

    def _authed_client(self, session: AuthSession) -> Client:
        client = self._client(session)
        client.auth.set_session(session.access_token, session.refresh_token)
        return client

    # Identity

    def sign_up(self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> Optional[AuthSession]:
        with _backend_errors("sign_up"):
            response = self._client().auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": metadata or {}},
            })
        return self._to_session(response.session) if response.session else None

    def sign_in(self, email: str, password: str) -> AuthSession:
        with _backend_errors("sign_in"):
            response = self._client().auth.sign_in_with_password({"email": email, "password": password})
        if not response.session:
            raise BackendError("Invalid login credentials")
        return self._to_session(response.session)

    def sign_out(self, session: AuthSession) -> None:
        with _backend_errors("sign_out"):
            self._authed_client(session).auth.sign_out()

    def get_user(self, access_token: str) -> Optional[AuthUser]:
        try:
            response = self._client().auth.get_user(access_token)
        except AuthError as e:
            logger.info(f"Rejected access token: {e.message}")
            return None
        if not response or not response.user:
            return None
        return self._to_user(response.user)

    def refresh_session(self, refresh_token: str) -> Optional[AuthSession]:
        try:
            response = self._client().auth.refresh_session(refresh_token)
        except AuthError as e:
            logger.info(f"Rejected refresh token: {e.message}")
            return None
        return self._to_session(response.session) if response.session else None

    def update_user(self, session: AuthSession, email: Optional[str] = None, password: Optional[str] = None) -> AuthUser:
        attributes: Dict[str, Any] = {}
        if email is not None:
            attributes["email"] = email
        if password is not None:
            attributes["password"] = password
        with _backend_errors("update_user"):
            response = self._authed_client(session).auth.update_user(attributes)
        return self._to_user(response.user)

    def send_password_reset(self, email: str, redirect_to: str) -> None:
        with _backend_errors("reset_password_for_email"):
            self._client().auth.reset_password_for_email(email, {"redirect_to": redirect_to})

    # Tables

    def select(self, session, table, filters=None, order_by=None, desc=False) -> List[Row]:
        with _backend_errors(f"select {table}"):
            query = self._client(session).table(table).select("*")
            for key, value in (filters or {}).items():
                query = query.eq(key, value)
            if order_by:
                query = query.order(order_by, desc=desc)
            response = query.execute()
        return response.data or []

    def insert(self, session: AuthSession, table: str, row: Row) -> Row:
        with _backend_errors(f"insert {table}"):
            response = self._client(session).table(table).insert(row).execute()
        if not response.data:
            raise BackendError(f"Insert into {table} returned no row")
        return response.data[0]

    def update(self, session: AuthSession, table: str, row_id: str, values: Row) -> Optional[Row]:
        with _backend_errors(f"update {table}"):
            response = self._client(session).table(table).update(values).eq("id", row_id).execute()
        return response.data[0] if response.data else None

    def delete(self, session: AuthSession, table: str, row_id: str) -> None:
        with _backend_errors(f"delete {table}"):
            self._client(session).table(table).delete().eq("id", row_id).execute()

    def list_organizations(self, session: AuthSession) -> List[Row]:
        with _backend_errors(LIST_ORGANIZATIONS_RPC):
            response = self._client(session).rpc(LIST_ORGANIZATIONS_RPC, {}).execute()
        return response.data or []

    def create_organization_with_admin(self, session: AuthSession, organization: Row, profile: Row) -> Tuple[Row, Row]:
        params = {
            "org_name": organization["name"],
            "org_invite_code": organization["invite_code"],
            "profile_first_name": profile.get("first_name"),
            "profile_last_name": profile.get("last_name"),
        }
        with _backend_errors(CREATE_ORGANIZATION_RPC):
            response = self._client(session).rpc(CREATE_ORGANIZATION_RPC, params).execute()
        data = response.data or {}
        if not data.get("organization") or not data.get("profile"):
            raise BackendError("Organization could not be created")
        return data["organization"], data["profile"]

    def join_organization(self, session: AuthSession, organization_id: str, invite_code: str,
                          profile: Row) -> Optional[Tuple[Row, Row]]:
        params = {
            "org_id": organization_id,
            "org_invite_code": invite_code,
            "profile_first_name": profile.get("first_name"),
            "profile_last_name": profile.get("last_name"),
        }
        with _backend_errors(JOIN_ORGANIZATION_RPC):
            response = self._client(session).rpc(JOIN_ORGANIZATION_RPC, params).execute()
        data = response.data
        # null from the function means an unknown organization or a wrong code
        if not data:
            return None
        return data["organization"], data["profile"]

    # Conversions

    @staticmethod
    def _to_user(user: Any) -> AuthUser:
        return AuthUser(id=str(user.id), email=user.email or "", user_metadata=user.user_metadata or {})

    def _to_session(self, session: Any) -> AuthSession:
        return AuthSession(
            access_token=session.access_token,
            refresh_token=session.refresh_token or "",
            user=self._to_user(session.user),
        )
