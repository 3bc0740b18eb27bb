"""
End-to-end guard behaviour of the resource routers, backed by in-memory stores.
"""
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from unique_api.auth.permissions import Permission
from unique_api.dependencies import get_role_store

from tests.auth_helpers import (
    API_KEY,
    COOKIE_NAME,
    FakeDatabase,
    FakeRoleStore,
    client_for,
    make_app,
)


def _member(db: FakeDatabase, custom_id: str, *permissions: Permission, **fields):
    user = db.add_user(custom_id, **fields)
    if permissions:
        role = db.add_role(f"{custom_id}-role", Permission.union(permissions))
        db.grant(user, role)
    return user, db.add_session(user)


class _RecordingRoleStore(FakeRoleStore):
    def __init__(self, db: FakeDatabase) -> None:
        super().__init__(db)
        self.lookups: list[str] = []

    async def list_for_user(self, user_id: str):
        self.lookups.append(user_id)
        return await super().list_for_user(user_id)


class _FailingRoleStore(FakeRoleStore):
    async def list_for_user(self, user_id: str):
        raise OperationalError("SELECT roles", {}, Exception("db down"))


def _client_with_failing_roles(db: FakeDatabase, session) -> TestClient:
    app = make_app(db)
    app.dependency_overrides[get_role_store] = lambda: _FailingRoleStore(db)
    return TestClient(app, cookies={COOKIE_NAME: session.id})


# -- authentication ---------------------------------------------------------


def test_requests_without_credentials_are_rejected() -> None:
    response = client_for(FakeDatabase()).get("/users")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_ERROR"


def test_system_principal_has_no_implicit_role_permissions() -> None:
    client = TestClient(make_app(FakeDatabase()), headers={"x-api-key": API_KEY})
    response = client.get("/roles")
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "PERMISSION_DENIED"


# -- users --------------------------------------------------------------------


def test_user_list_downgrades_to_public_projection() -> None:
    db = FakeDatabase()
    _, session = _member(db, "viewer")
    db.add_user("hidden-suspended", is_suspended=True)
    db.add_user("hidden-disabled", is_enable=False)
    db.add_user("hidden-temp", email="tmp_guest@uniproject.jp")

    body = client_for(db, session).get("/users").json()

    assert [user["custom_id"] for user in body["data"]] == ["viewer"]
    assert "external_email" not in body["data"][0]


def test_user_list_is_detailed_with_user_read() -> None:
    db = FakeDatabase()
    _, session = _member(db, "admin", Permission.USER_READ)
    db.add_user("hidden-suspended", is_suspended=True)

    body = client_for(db, session).get("/users").json()

    assert {user["custom_id"] for user in body["data"]} == {"admin", "hidden-suspended"}
    assert all("external_email" in user for user in body["data"])


def test_get_user_hides_non_public_users_without_permission() -> None:
    db = FakeDatabase()
    _, session = _member(db, "viewer")
    suspended = db.add_user("suspended", is_suspended=True)
    visible = db.add_user("visible")
    client = client_for(db, session)

    assert client.get(f"/users/{suspended.id}").status_code == 404
    body = client.get(f"/users/{visible.id}").json()
    assert body["custom_id"] == "visible"
    assert "is_suspended" not in body


def test_get_self_is_detailed_even_when_disabled() -> None:
    db = FakeDatabase()
    user, session = _member(db, "self", is_enable=False)

    body = client_for(db, session).get(f"/users/{user.id}").json()

    assert body["id"] == user.id
    assert body["is_enable"] is False


def test_create_user_requires_user_create() -> None:
    db = FakeDatabase()
    _, plain = _member(db, "plain")
    _, creator = _member(db, "creator", Permission.USER_CREATE)
    payload = {
        "custom_id": "newbie",
        "name": "Newbie",
        "password": "pw",
        "external_email": "newbie@example.com",
        "period": "2024",
    }

    assert client_for(db, plain).post("/users", json=payload).status_code == 403
    assert not any(user.custom_id == "newbie" for user in db.users.values())

    response = client_for(db, creator).post("/users", json=payload)
    assert response.status_code == 201
    assert response.json()["email"] == "2024.newbie@uniproject.jp"
    assert "password_hash" not in response.json()


def test_self_may_edit_profile_fields() -> None:
    db = FakeDatabase()
    user, session = _member(db, "self")

    response = client_for(db, session).patch(f"/users/{user.id}", json={"name": "Renamed"})

    assert response.status_code == 200
    assert db.users[user.id].name == "Renamed"


def test_self_update_needs_no_role_lookup() -> None:
    db = FakeDatabase()
    user, session = _member(db, "self")
    app = make_app(db)
    roles = _RecordingRoleStore(db)
    app.dependency_overrides[get_role_store] = lambda: roles
    client = TestClient(app, cookies={COOKIE_NAME: session.id})

    response = client.patch(f"/users/{user.id}", json={"is_enable": False})

    assert response.status_code == 200
    assert db.users[user.id].is_enable is False
    assert roles.lookups == []


def test_role_store_failure_aborts_user_update() -> None:
    db = FakeDatabase()
    _, editor = _member(db, "editor", Permission.USER_UPDATE)
    target = db.add_user("target", name="Original")
    client = _client_with_failing_roles(db, editor)

    response = client.patch(f"/users/{target.id}", json={"name": "Changed"})

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "STORE_ERROR"
    assert db.users[target.id].name == "Original"
    assert db.commits == 0


def test_updating_another_user_requires_user_update() -> None:
    db = FakeDatabase()
    _, plain = _member(db, "plain")
    _, editor = _member(db, "editor", Permission.USER_UPDATE)
    target = db.add_user("target")

    assert client_for(db, plain).patch(f"/users/{target.id}", json={"name": "x"}).status_code == 403
    response = client_for(db, editor).patch(
        f"/users/{target.id}", json={"is_suspended": True, "suspended_reason": "spam"}
    )
    assert response.status_code == 200
    assert db.users[target.id].is_suspended is True


def test_delete_user_requires_user_delete() -> None:
    db = FakeDatabase()
    _, plain = _member(db, "plain")
    _, remover = _member(db, "remover", Permission.USER_DELETE)
    target = db.add_user("target")

    assert client_for(db, plain).delete(f"/users/{target.id}").status_code == 403
    assert client_for(db, remover).delete(f"/users/{target.id}").status_code == 204
    assert target.id not in db.users


def test_password_change_verifies_current_password_for_self() -> None:
    db = FakeDatabase()
    user, session = _member(db, "self", password="old")
    client = client_for(db, session)

    wrong = client.put(
        f"/users/{user.id}/password",
        json={"current_password": "nope", "new_password": "new"},
    )
    assert wrong.status_code == 400

    ok = client.put(
        f"/users/{user.id}/password",
        json={"current_password": "old", "new_password": "new"},
    )
    assert ok.status_code == 204


def test_password_reset_by_administrator_skips_current_password() -> None:
    db = FakeDatabase()
    _, admin = _member(db, "admin", Permission.USER_UPDATE)
    target = db.add_user("target", password="old")

    response = client_for(db, admin).put(
        f"/users/{target.id}/password", json={"new_password": "fresh"}
    )

    assert response.status_code == 204


def test_user_permissions_report() -> None:
    db = FakeDatabase()
    user, session = _member(db, "self")
    db.grant(user, db.add_role("a", 0b0001))
    db.grant(user, db.add_role("b", 0b0010 | (1 << 31)))
    other = db.add_user("other")
    client = client_for(db, session)

    response = client.get(f"/users/{user.id}/permissions")
    assert response.status_code == 200
    assert response.json() == {
        "permissions_bit": 0b0011 | (1 << 31),
        "permissions_text": ["USER_READ", "USER_CREATE", "PERMISSION_31"],
    }

    assert client.get(f"/users/{other.id}/permissions").status_code == 200
    _, plain = _member(db, "plain")
    assert client_for(db, plain).get(f"/users/{other.id}/permissions").status_code == 403


# -- user roles -----------------------------------------------------------------


def test_role_grant_revoke_scenario_reflects_immediately() -> None:
    db = FakeDatabase()
    _, admin = _member(db, "admin", Permission.PERMISSION_MANAGE)
    target, target_session = _member(db, "target")
    manager = db.add_role("manager", Permission.ROLE_MANAGE)
    admin_client = client_for(db, admin)
    target_client = client_for(db, target_session)

    assert target_client.get("/roles").status_code == 403

    granted = admin_client.put(f"/users/{target.id}/roles/{manager.id}")
    assert granted.status_code == 201
    assert granted.json()["custom_id"] == "manager"
    assert target_client.get("/roles").status_code == 200

    duplicate = admin_client.put(f"/users/{target.id}/roles/{manager.id}")
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == "CONFLICT_ERROR"

    assert admin_client.delete(f"/users/{target.id}/roles/{manager.id}").status_code == 204
    assert target_client.get("/roles").status_code == 403
    assert admin_client.delete(f"/users/{target.id}/roles/{manager.id}").status_code == 404


def test_role_grant_requires_permission_manage() -> None:
    db = FakeDatabase()
    user, session = _member(db, "self")
    role = db.add_role("anything", Permission.ROLE_MANAGE)

    response = client_for(db, session).put(f"/users/{user.id}/roles/{role.id}")

    assert response.status_code == 403
    assert (user.id, role.id) not in db.user_roles


def test_role_store_failure_aborts_role_grant() -> None:
    db = FakeDatabase()
    _, admin = _member(db, "admin", Permission.PERMISSION_MANAGE)
    target = db.add_user("target")
    role = db.add_role("manager", Permission.ROLE_MANAGE)
    client = _client_with_failing_roles(db, admin)

    response = client.put(f"/users/{target.id}/roles/{role.id}")

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "STORE_ERROR"
    assert (target.id, role.id) not in db.user_roles


def test_listing_own_roles_is_allowed() -> None:
    db = FakeDatabase()
    user, session = _member(db, "self", Permission.USER_READ)
    other = db.add_user("other")
    client = client_for(db, session)

    response = client.get(f"/users/{user.id}/roles")
    assert response.status_code == 200
    assert [role["custom_id"] for role in response.json()["data"]] == ["self-role"]
    assert client.get(f"/users/{other.id}/roles").status_code == 403


# -- roles ------------------------------------------------------------------------


def test_role_crud_with_role_manage() -> None:
    db = FakeDatabase()
    _, session = _member(db, "admin", Permission.ROLE_MANAGE)
    client = client_for(db, session)

    created = client.post(
        "/roles",
        json={"custom_id": "auditor", "name": "Auditor", "permission": -(2**31) | 1},
    )
    assert created.status_code == 201
    role_id = created.json()["id"]
    assert created.json()["permission"] == -(2**31) | 1

    report = client.get(f"/roles/{role_id}/permissions").json()
    assert report["permissions_text"] == ["USER_READ", "PERMISSION_31"]

    patched = client.patch(f"/roles/{role_id}", json={"name": "Auditors"})
    assert patched.json()["name"] == "Auditors"
    assert patched.json()["permission"] == -(2**31) | 1

    assert client.delete(f"/roles/{role_id}").status_code == 204
    assert client.get(f"/roles/{role_id}").status_code == 404


def test_role_permission_outside_storage_range_is_rejected() -> None:
    db = FakeDatabase()
    _, session = _member(db, "admin", Permission.ROLE_MANAGE)

    response = client_for(db, session).post(
        "/roles", json={"custom_id": "big", "name": "Big", "permission": 2**32}
    )

    assert response.status_code == 422


# -- sessions -----------------------------------------------------------------------


def test_session_listing_requires_session_manage() -> None:
    db = FakeDatabase()
    _, plain = _member(db, "plain")
    _, manager = _member(db, "manager", Permission.SESSION_MANAGE)

    assert client_for(db, plain).get("/sessions").status_code == 403
    body = client_for(db, manager).get("/sessions").json()
    assert len(body["data"]) == 2


def test_session_detail_includes_user_and_roles() -> None:
    db = FakeDatabase()
    _, manager = _member(db, "manager", Permission.SESSION_MANAGE)
    target, target_session = _member(db, "target", Permission.USER_READ)

    body = client_for(db, manager).get(f"/sessions/{target_session.id}").json()

    assert body["user"]["id"] == target.id
    assert [role["custom_id"] for role in body["roles"]] == ["target-role"]


def test_users_manage_their_own_sessions() -> None:
    db = FakeDatabase()
    user, session = _member(db, "self")
    other_session = db.add_session(user)
    stranger, _ = _member(db, "stranger")
    client = client_for(db, session)

    assert len(client.get(f"/users/{user.id}/sessions").json()["data"]) == 2
    assert client.get(f"/users/{stranger.id}/sessions").status_code == 403
    assert client.delete(f"/users/{user.id}/sessions/{other_session.id}").status_code == 204
    assert other_session.id not in db.sessions


def test_disabled_session_cannot_authenticate() -> None:
    db = FakeDatabase()
    _, session = _member(db, "admin", Permission.USER_READ)
    session.is_enable = False

    assert client_for(db, session).get("/users").status_code == 401


# -- apps -------------------------------------------------------------------------------


def test_creator_becomes_owner_and_sees_secret() -> None:
    db = FakeDatabase()
    user, session = _member(db, "dev")
    client = client_for(db, session)

    created = client.post("/apps", json={"name": "portal"})
    assert created.status_code == 201
    app_id = created.json()["id"]
    assert created.json()["client_secret"]
    assert (user.id, app_id) in db.app_owners

    listed = client.get("/apps").json()["data"]
    assert [app["id"] for app in listed] == [app_id]
    assert "client_secret" not in listed[0]

    assert "client_secret" in client.get(f"/apps/{app_id}").json()


def test_non_owner_never_sees_secret() -> None:
    db = FakeDatabase()
    owner = db.add_user("owner")
    app = db.add_app("portal", owner=owner)
    _, session = _member(db, "viewer")

    body = client_for(db, session).get(f"/apps/{app.id}").json()

    assert body["id"] == app.id
    assert "client_secret" not in body


def test_listing_all_apps_requires_app_read() -> None:
    db = FakeDatabase()
    db.add_app("one")
    db.add_app("two")
    _, plain = _member(db, "plain")
    _, reader = _member(db, "reader", Permission.APP_READ)

    assert client_for(db, plain).get("/apps", params={"all": "true"}).status_code == 403
    body = client_for(db, reader).get("/apps", params={"all": "true"}).json()
    assert len(body["data"]) == 2
    assert all("client_secret" not in app for app in body["data"])


def test_app_update_allows_owner_or_permission() -> None:
    db = FakeDatabase()
    owner, owner_session = _member(db, "owner")
    _, plain = _member(db, "plain")
    _, editor = _member(db, "editor", Permission.APP_UPDATE)
    app = db.add_app("portal", owner=owner)

    assert client_for(db, plain).patch(f"/apps/{app.id}", json={"name": "x"}).status_code == 403
    assert client_for(db, owner_session).patch(f"/apps/{app.id}", json={"name": "mine"}).status_code == 200
    assert client_for(db, editor).put(f"/apps/{app.id}", json={"name": "theirs"}).status_code == 200
    assert db.apps[app.id].name == "theirs"


def test_app_delete_and_secret_rotation_guards() -> None:
    db = FakeDatabase()
    owner, owner_session = _member(db, "owner")
    _, plain = _member(db, "plain")
    _, rotator = _member(db, "rotator", Permission.APP_SECRET_ROTATE)
    app = db.add_app("portal", owner=owner, client_secret="original")

    assert client_for(db, plain).post(f"/apps/{app.id}/secret").status_code == 403
    rotated = client_for(db, rotator).post(f"/apps/{app.id}/secret")
    assert rotated.status_code == 200
    assert rotated.json()["client_secret"] != "original"

    assert client_for(db, plain).delete(f"/apps/{app.id}").status_code == 403
    assert client_for(db, owner_session).delete(f"/apps/{app.id}").status_code == 204
    assert app.id not in db.apps


# -- catalog ---------------------------------------------------------------------------


def test_permission_catalog_lists_named_bits() -> None:
    db = FakeDatabase()
    _, session = _member(db, "plain")

    body = client_for(db, session).get("/permissions").json()

    assert body["data"][0] == {"name": "USER_READ", "bit": 1}
    assert body["data"][-1] == {"name": "MFA_MANAGE", "bit": 1 << 27}
