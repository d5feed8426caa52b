# tests/test_users.py
from helpdesk.ticket.models import Ticket
from helpdesk.user.models import Role, User


def _new_user(**overrides):
    payload = {
        "username": "kate",
        "email": "kate@example.com",
        "password": "Kate#2024x",
        "first_name": "Kate",
        "last_name": "Lee",
        "role": "agent",
    }
    payload.update(overrides)
    return payload


def test_admin_creates_user_without_forced_change(client, admin):
    r = client.post("/users/", json=_new_user(), headers=admin[1])
    assert r.status_code == 201
    body = r.json()
    assert body["role"] == "agent"
    assert body["force_password_change"] is False
    assert "password_hash" not in body

    r = client.post("/auth/login", json={"login": "kate", "password": "Kate#2024x"})
    assert r.status_code == 200


def test_create_user_checks_policy_and_uniqueness(client, admin):
    r = client.post("/users/", json=_new_user(password="weakpass"), headers=admin[1])
    assert r.status_code == 400
    assert r.json()["errors"]

    assert client.post("/users/", json=_new_user(), headers=admin[1]).status_code == 201
    r = client.post("/users/", json=_new_user(username="kate2"), headers=admin[1])
    assert r.status_code == 409
    assert r.json()["detail"] == "Email already registered"


def test_non_admin_cannot_create_users(client, agent):
    assert client.post("/users/", json=_new_user(), headers=agent[1]).status_code == 403


def test_full_roster_is_admin_only(client, admin, agent, customer):
    assert client.get("/users/", headers=admin[1]).status_code == 200
    assert client.get("/users/", headers=agent[1]).status_code == 403
    assert client.get("/users/", headers=customer[1]).status_code == 403


def test_role_filtered_list_for_everyone(client, admin, agent, customer):
    r = client.get("/users/?role=agent,admin", headers=customer[1])
    assert r.status_code == 200
    roles = {u["role"] for u in r.json()}
    assert roles <= {"agent", "admin"}
    assert "agent1" in {u["username"] for u in r.json()}

    assert client.get("/users/?role=wizard", headers=agent[1]).status_code == 400


def test_read_self_or_as_admin(client, admin, customer, other_customer):
    alice_id, alice = customer
    assert client.get(f"/users/{alice_id}", headers=alice).status_code == 200
    assert client.get(f"/users/{alice_id}", headers=admin[1]).status_code == 200
    assert client.get(f"/users/{alice_id}", headers=other_customer[1]).status_code == 403
    assert client.get("/users/987654", headers=admin[1]).status_code == 404
    assert client.get("/users/987654", headers=alice).status_code == 403


def test_self_service_profile_update(client, customer):
    user_id, headers = customer
    r = client.put(f"/users/{user_id}", json={"first_name": "Alicia"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["first_name"] == "Alicia"


def test_non_admin_cannot_touch_privileges(client, db, customer):
    user_id, headers = customer
    r = client.put(f"/users/{user_id}", json={"first_name": "Al", "role": "admin"}, headers=headers)
    assert r.status_code == 403
    user = db.get(User, user_id)
    assert user.role == Role.CUSTOMER
    assert user.first_name == "Alice"


def test_admin_changes_role_and_takes_effect_immediately(client, admin, customer):
    user_id, headers = customer
    assert client.get("/users/", headers=headers).status_code == 403

    r = client.put(f"/users/{user_id}", json={"role": "admin"}, headers=admin[1])
    assert r.status_code == 200
    # same token, new role
    assert client.get("/users/", headers=headers).status_code == 200


def test_last_admin_is_protected(client, db, admin):
    admin_id, headers = admin
    bootstrap = db.query(User).filter(User.username == "admin").one()
    assert client.put(f"/users/{bootstrap.id}", json={"is_active": False}, headers=headers).status_code == 200

    r = client.put(f"/users/{admin_id}", json={"role": "agent"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "At least one active admin must exist"


def test_change_password_for_self_only(client, customer, other_customer):
    alice_id, alice = customer
    payload = {"current_password": "Secret#123", "new_password": "Fresh#Pass1"}
    assert client.put(f"/users/{alice_id}/password", json=payload, headers=other_customer[1]).status_code == 403
    assert client.put(f"/users/{alice_id}/password", json=payload, headers=alice).status_code == 200
    assert client.post("/auth/login", json={"login": "alice", "password": "Fresh#Pass1"}).status_code == 200


def test_admin_reset_and_verify_email(client, admin, make_user):
    user_id = make_user("lena", verified=False, force=True)
    r = client.patch(f"/users/{user_id}/reset-password", json={"password": "short"}, headers=admin[1])
    assert r.status_code == 400

    r = client.patch(f"/users/{user_id}/reset-password", json={"password": "plainpassword"}, headers=admin[1])
    assert r.status_code == 200
    login = client.post("/auth/login", json={"login": "lena", "password": "plainpassword"})
    assert login.json()["force_password_change"] is False

    r = client.patch(f"/users/{user_id}/verify-email", json={"email_verified": True}, headers=admin[1])
    assert r.status_code == 200
    assert r.json()["email_verified"] is True


def test_delete_user_keeps_their_tickets(client, db, admin, customer, new_ticket):
    user_id, headers = customer
    ticket = new_ticket(headers)
    client.post("/comments/", data={"ticket_id": ticket["id"], "content": "bye"}, headers=headers)

    r = client.delete(f"/users/{user_id}", headers=admin[1])
    assert r.status_code == 200

    kept = db.get(Ticket, ticket["id"])
    assert kept is not None
    assert kept.customer_id is None
    assert kept.comments[0].user_id is None
    assert client.get(f"/users/{user_id}", headers=admin[1]).status_code == 404


def test_admin_cannot_delete_self(client, admin):
    admin_id, headers = admin
    r = client.delete(f"/users/{admin_id}", headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot delete your own account"
