import pytest

from campushub.database.entities import UserRole, UserStatus


@pytest.fixture
def super_admin(make_user):
    return make_user("Root", role=UserRole.SUPER_ADMIN)


@pytest.fixture
def user_admin(make_user):
    return make_user("Moderator", role=UserRole.USER_ADMIN)


def test_admin_routes_require_admin_role(client, alice):
    res = client.get("/api/admin/users", headers=alice["headers"])
    assert res.status_code == 403
    assert res.json()["message"] == "You do not have permission to access this resource"


def test_list_users_filters_by_status(client, make_user, user_admin):
    make_user("Waiting", status=UserStatus.PENDING)
    make_user("Active")

    everyone = client.get("/api/admin/users", headers=user_admin["headers"]).json()
    assert everyone["pagination"]["total"] == 3

    pending = client.get("/api/admin/users?status=PENDING", headers=user_admin["headers"]).json()
    assert [u["name"] for u in pending["data"]] == ["Waiting"]


def test_approve_pending_account(client, make_user, user_admin):
    waiting = make_user("Waiting", status=UserStatus.PENDING)
    res = client.put(
        f"/api/admin/users/{waiting['id']}/status", headers=user_admin["headers"], json={"status": "ACTIVE"}
    )
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "ACTIVE"
    assert client.get("/api/auth/me", headers=waiting["headers"]).status_code == 200


def test_update_status_validation(client, user_admin):
    res = client.put("/api/admin/users/999/status", headers=user_admin["headers"], json={"status": "ACTIVE"})
    assert res.status_code == 404
    res = client.put(
        f"/api/admin/users/{user_admin['id']}/status", headers=user_admin["headers"], json={"status": "BANNED"}
    )
    assert res.status_code == 400


def test_delete_user_removes_their_conversations(client, store, user_admin, alice, bob):
    cid = store.find_or_create_conversation(alice["id"], bob["id"])["id"]
    store.send_message(cid, alice["id"], "soon gone")

    res = client.delete(f"/api/admin/users/{alice['id']}", headers=user_admin["headers"])
    assert res.status_code == 200
    assert client.get("/api/auth/me", headers=alice["headers"]).status_code == 401

    items, total = store.list_messages(cid, bob["id"])
    assert total == 0


def test_cannot_delete_self(client, super_admin):
    res = client.delete(f"/api/admin/users/{super_admin['id']}", headers=super_admin["headers"])
    assert res.status_code == 400


def test_super_admin_is_never_deleted(client, super_admin, user_admin):
    res = client.delete(f"/api/admin/users/{super_admin['id']}", headers=user_admin["headers"])
    assert res.status_code == 403


def test_only_super_admin_deletes_admins(client, make_user, super_admin, user_admin):
    other_admin = make_user("Analyst", role=UserRole.ANALYTICS_ADMIN)
    assert client.delete(f"/api/admin/users/{other_admin['id']}", headers=user_admin["headers"]).status_code == 403
    assert client.delete(f"/api/admin/users/{other_admin['id']}", headers=super_admin["headers"]).status_code == 200


def test_delete_missing_user(client, super_admin):
    assert client.delete("/api/admin/users/4242", headers=super_admin["headers"]).status_code == 404
