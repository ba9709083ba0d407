from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple
from grantguardian.schemas.auth import AuthSession, AuthUser

# Tables owned by the hosted backend
ORGANIZATIONS = "organizations"
USER_PROFILES = "user_profiles"
GRANTS = "grants"

TABLES = (ORGANIZATIONS, USER_PROFILES, GRANTS)

Row = Dict[str, Any]


class Backend(ABC):
    """
    Data-access boundary to the hosted Postgres-with-auth service.

    Every data call takes the caller's AuthSession explicitly; implementations
    never keep a "current user" of their own. All failures surface as
    BackendError carrying the backend's message.
    """

    # Identity

    @abstractmethod
    def sign_up(self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> Optional[AuthSession]:
        """Returns None when the account needs email confirmation before a session exists."""

    @abstractmethod
    def sign_in(self, email: str, password: str) -> AuthSession:
        pass

    @abstractmethod
    def sign_out(self, session: AuthSession) -> None:
        pass

    @abstractmethod
    def get_user(self, access_token: str) -> Optional[AuthUser]:
        """Resolve a token to its user, or None if the token is not valid."""

    @abstractmethod
    def refresh_session(self, refresh_token: str) -> Optional[AuthSession]:
        """Exchange a refresh token for a new session, or None if it is no longer valid."""

    @abstractmethod
    def update_user(self, session: AuthSession, email: Optional[str] = None, password: Optional[str] = None) -> AuthUser:
        pass

    @abstractmethod
    def send_password_reset(self, email: str, redirect_to: str) -> None:
        pass

    # Tables

    @abstractmethod
    def select(
        self,
        session: AuthSession,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        desc: bool = False,
    ) -> List[Row]:
        pass

    @abstractmethod
    def insert(self, session: AuthSession, table: str, row: Row) -> Row:
        pass

    @abstractmethod
    def update(self, session: AuthSession, table: str, row_id: str, values: Row) -> Optional[Row]:
        """Returns the updated row, or None when no row has that id."""

    @abstractmethod
    def delete(self, session: AuthSession, table: str, row_id: str) -> None:
        pass

    @abstractmethod
    def list_organizations(self, session: AuthSession) -> List[Row]:
        """Id and name of every organization, ordered by name. Invite codes are never returned."""

    @abstractmethod
    def create_organization_with_admin(self, session: AuthSession, organization: Row, profile: Row) -> Tuple[Row, Row]:
        """
        Insert an organization and its founding admin's profile in one
        transaction. Either both rows exist afterwards or neither does.
        """

    @abstractmethod
    def join_organization(self, session: AuthSession, organization_id: str, invite_code: str,
                          profile: Row) -> Optional[Tuple[Row, Row]]:
        """
        Add the caller to an organization as staff when invite_code matches it.
        The code is compared by the backend; returns None for an unknown
        organization or a wrong code.
        """

    def select_one(self, session: AuthSession, table: str, filters: Dict[str, Any]) -> Optional[Row]:
        rows = self.select(session, table, filters)
        return rows[0] if rows else None
