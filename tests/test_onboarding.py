from grantguardian.core.onboarding import INVITE_CODE_ALPHABET, generate_invite_code
from grantguardian.core.config import settings


def test_create_organization_makes_caller_admin(admin_client, backend, user_id):
    organizations = backend.rows("organizations")
    profiles = backend.rows("user_profiles")
    assert len(organizations) == 1
    assert len(profiles) == 1

    org = organizations[0]
    profile = profiles[0]
    assert org["name"] == "United Way of Central Texas"
    assert len(org["invite_code"]) == settings.INVITE_CODE_LENGTH
    assert profile["id"] == user_id(admin_client)
    assert profile["organization_id"] == org["id"]
    assert profile["role"] == "admin"
    assert profile["first_name"] == "Ada"
    assert profile["last_name"] == "Admin"

    response = admin_client.get("/dashboard")
    assert response.status_code == 200
    assert "Welcome back, Ada Admin" in response.text


def test_create_organization_requires_name(signed_up, backend):
    client = signed_up("blank@example.org")
    response = client.post("/onboarding/create", data={"name": "   "})
    assert response.status_code == 400
    assert "Organization name is required" in response.text
    assert backend.rows("organizations") == []
    assert backend.rows("user_profiles") == []


def test_join_with_wrong_code(signed_up, organization, backend):
    client = signed_up("joiner@example.org", "Jo", "Joiner")
    response = client.post("/onboarding/join", data={
        "organization_id": organization["id"],
        "invite_code": "WRONG123" if organization["invite_code"] != "WRONG123" else "WRONG124",
    })
    assert response.status_code == 400
    assert "Invalid invite code" in response.text
    assert len(backend.rows("user_profiles")) == 1


def test_join_unknown_organization_looks_like_wrong_code(signed_up, organization):
    client = signed_up("lost@example.org")
    response = client.post("/onboarding/join", data={
        "organization_id": "00000000-0000-0000-0000-000000000000",
        "invite_code": organization["invite_code"],
    })
    assert response.status_code == 400
    assert "Invalid invite code" in response.text


def test_join_requires_both_fields(signed_up, organization):
    client = signed_up("half@example.org")
    response = client.post("/onboarding/join", data={"organization_id": organization["id"]})
    assert response.status_code == 400
    assert "Select your organization and enter its invite code" in response.text


def test_join_with_correct_code_as_staff(make_member, backend, organization, user_id):
    client = make_member("staff@example.org", "Sam", "Staff")
    profile = next(p for p in backend.rows("user_profiles") if p["id"] == user_id(client))
    assert profile["organization_id"] == organization["id"]
    assert profile["role"] == "staff"
    assert profile["first_name"] == "Sam"

    response = client.get("/dashboard")
    assert response.status_code == 200


def test_join_page_lists_organizations(signed_up, organization):
    client = signed_up("browser@example.org")
    response = client.get("/onboarding?mode=join")
    assert response.status_code == 200
    assert organization["name"] in response.text
    # Invite codes are never shown to prospective members
    assert organization["invite_code"] not in response.text


def test_unknown_mode_falls_back_to_choice(signed_up):
    client = signed_up("curious@example.org")
    response = client.get("/onboarding?mode=bogus")
    assert response.status_code == 200


def test_members_skip_onboarding(admin_client):
    response = admin_client.get("/onboarding", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"


def test_second_organization_is_rejected(admin_client, backend):
    response = admin_client.post("/onboarding/create", data={"name": "Another Org"})
    assert response.status_code == 400
    assert "Error creating organization" in response.text
    # The failed attempt leaves no orphaned organization behind
    assert len(backend.rows("organizations")) == 1


def test_generate_invite_code():
    code = generate_invite_code()
    assert len(code) == settings.INVITE_CODE_LENGTH
    assert all(c in INVITE_CODE_ALPHABET for c in code)
    assert len(generate_invite_code(12)) == 12


def test_generate_invite_code_honours_zero_length():
    assert generate_invite_code(0) == ""
