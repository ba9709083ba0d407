import pytest
from grantguardian.core.errors import BackendError
from grantguardian.db.memory import InMemoryBackend, pwd_context
from grantguardian.schemas.auth import AuthSession, AuthUser


@pytest.fixture
def store():
    return InMemoryBackend()


@pytest.fixture
def session(store):
    return store.sign_up("user@example.org", "secret123", {"first_name": "U"})


def test_sign_up_normalizes_email(store):
    session = store.sign_up("  Mixed@Example.ORG ", "secret123")
    assert session.user.email == "mixed@example.org"
    assert store.sign_in("MIXED@example.org", "secret123").user.id == session.user.id


def test_sign_up_rejects_short_password(store):
    with pytest.raises(BackendError) as exc:
        store.sign_up("user@example.org", "abc")
    assert exc.value.message == "Password should be at least 6 characters"


def test_tables_require_a_live_session(store):
    stranger = AuthSession(access_token="forged", user=AuthUser(id="x"))
    with pytest.raises(BackendError):
        store.select(stranger, "grants")


def test_insert_defaults_and_duplicate_key(store, session):
    row = store.insert(session, "grants", {"organization_id": "o1", "grant_name": "G", "funding_agency": "HHS"})
    assert row["id"]
    assert row["created_at"] == row["updated_at"]

    with pytest.raises(BackendError) as exc:
        store.insert(session, "grants", {"id": row["id"], "grant_name": "Again"})
    assert exc.value.message == 'duplicate key value violates unique constraint "grants_pkey"'


def test_unknown_table(store, session):
    with pytest.raises(BackendError):
        store.select(session, "invoices")


def test_select_filters_and_orders(store, session):
    store.insert(session, "organizations", {"name": "Zeta", "invite_code": "Z"})
    store.insert(session, "organizations", {"name": "Alpha", "invite_code": "A"})
    store.insert(session, "organizations", {"name": "Mid", "invite_code": "M"})

    names = [r["name"] for r in store.select(session, "organizations", order_by="name")]
    assert names == ["Alpha", "Mid", "Zeta"]
    names = [r["name"] for r in store.select(session, "organizations", order_by="name", desc=True)]
    assert names == ["Zeta", "Mid", "Alpha"]
    assert store.select_one(session, "organizations", {"invite_code": "M"})["name"] == "Mid"
    assert store.select_one(session, "organizations", {"invite_code": "nope"}) is None


def test_rows_are_copies(store, session):
    row = store.insert(session, "organizations", {"name": "Org", "invite_code": "C"})
    row["name"] = "Changed"
    store.select(session, "organizations")[0]["name"] = "Changed"
    assert store.rows("organizations")[0]["name"] == "Org"


def test_update_missing_row_returns_none(store, session):
    assert store.update(session, "grants", "missing", {"status": "closed"}) is None


def test_create_organization_with_admin(store, session):
    org, profile = store.create_organization_with_admin(
        session,
        {"name": "Org", "invite_code": "ABCD1234"},
        {"id": session.user.id, "role": "admin", "first_name": "U", "last_name": ""},
    )
    assert profile["organization_id"] == org["id"]
    assert store.rows("organizations") == [org]
    assert store.rows("user_profiles") == [profile]


def test_create_organization_rolls_back_on_profile_failure(store, session):
    store.insert(session, "user_profiles", {"id": session.user.id, "organization_id": "o1", "role": "staff"})
    with pytest.raises(BackendError):
        store.create_organization_with_admin(
            session,
            {"name": "Org", "invite_code": "ABCD1234"},
            {"id": session.user.id, "role": "admin"},
        )
    assert store.rows("organizations") == []
    assert len(store.rows("user_profiles")) == 1


def test_update_user_email_conflict(store, session):
    store.sign_up("other@example.org", "secret123")
    with pytest.raises(BackendError):
        store.update_user(session, email="other@example.org")
    assert store.get_user(session.access_token).email == "user@example.org"


def test_password_reset_outbox(store):
    store.send_password_reset("Someone@Example.org", "http://localhost/update-password")
    assert store.outbox == [{"email": "someone@example.org", "redirect_to": "http://localhost/update-password"}]


def test_passwords_are_stored_hashed(store, session):
    stored = store._users[session.user.id]["password_hash"]
    assert "secret123" not in stored
    assert pwd_context.verify("secret123", stored)

    store.update_user(session, password="better-secret")
    assert store.sign_in("user@example.org", "better-secret").user.id == session.user.id
    with pytest.raises(BackendError):
        store.sign_in("user@example.org", "secret123")


def test_refresh_tokens_are_single_use(store, session):
    refreshed = store.refresh_session(session.refresh_token)
    assert refreshed.user.id == session.user.id
    assert refreshed.access_token != session.access_token
    assert store.get_user(refreshed.access_token).id == session.user.id

    assert store.refresh_session(session.refresh_token) is None
    assert store.refresh_session("unknown") is None


def test_sign_out_revokes_both_tokens(store, session):
    store.sign_out(session)
    assert store.get_user(session.access_token) is None
    assert store.refresh_session(session.refresh_token) is None


def test_list_organizations_hides_invite_codes(store, session):
    store.insert(session, "organizations", {"name": "Zeta", "invite_code": "ZZZZ1111"})
    store.insert(session, "organizations", {"name": "Alpha", "invite_code": "AAAA2222"})

    listed = store.list_organizations(session)
    assert [org["name"] for org in listed] == ["Alpha", "Zeta"]
    assert all(set(org) == {"id", "name"} for org in listed)


def test_join_organization_checks_invite_code(store, session):
    org = store.insert(session, "organizations", {"name": "Org", "invite_code": "ABCD1234"})
    profile = {"role": "admin", "first_name": "U", "last_name": ""}

    assert store.join_organization(session, org["id"], "WRONG000", profile) is None
    assert store.join_organization(session, "missing", "ABCD1234", profile) is None
    assert store.rows("user_profiles") == []

    joined_org, joined = store.join_organization(session, org["id"], "ABCD1234", profile)
    assert joined_org["id"] == org["id"]
    # Joining always grants the staff role
    assert joined["role"] == "staff"
    assert joined["id"] == session.user.id
    assert joined["organization_id"] == org["id"]
