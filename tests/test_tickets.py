# tests/test_tickets.py
from helpdesk.ticket.models import Ticket
from helpdesk.user.models import Role


def test_create_and_get_ticket(client, customer, new_ticket):
    user_id, headers = customer
    created = new_ticket(headers, subject="T1", description="D1")
    assert created["status"] == "open"
    assert created["priority"] == "low"
    assert created["customer_id"] == user_id
    assert created["customer_username"] == "alice"
    assert created["assigned_to"] is None

    r = client.get(f"/tickets/{created['id']}", headers=headers)
    assert r.status_code == 200
    data = r.json()
    assert data["subject"] == "T1"
    assert data["description"] == "D1"
    assert data["attachments"] == []


def test_ticket_numbers_are_sequential(customer, new_ticket):
    _, headers = customer
    first = new_ticket(headers)
    second = new_ticket(headers)
    assert second["ticket_number"] == first["ticket_number"] + 1


def test_create_validation_errors(client, customer):
    _, headers = customer
    assert client.post("/tickets/", data={"description": "no subject"}, headers=headers).status_code == 422
    r = client.post("/tickets/", data={"subject": "  ", "description": "x"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Subject and description are required"
    r = client.post("/tickets/", data={"subject": "s", "description": "d", "priority": "whenever"}, headers=headers)
    assert r.status_code == 422
    assert r.json()["reason"] == "validation_failed"


def test_customer_lists_only_own_tickets(client, customer, other_customer, agent, new_ticket):
    _, alice = customer
    _, bob = other_customer
    mine = new_ticket(alice, subject="mine")
    theirs = new_ticket(bob, subject="theirs")

    ids = {t["id"] for t in client.get("/tickets/", headers=alice).json()}
    assert ids == {mine["id"]}

    # a customer_id filter cannot widen the scope
    r = client.get(f"/tickets/?customer_id={theirs['customer_id']}", headers=alice)
    assert r.json() == []

    ids = {t["id"] for t in client.get("/tickets/", headers=agent[1]).json()}
    assert ids == {mine["id"], theirs["id"]}


def test_list_is_newest_first_with_comment_count(client, customer, agent, new_ticket):
    _, headers = customer
    older = new_ticket(headers, subject="older")
    newer = new_ticket(headers, subject="newer")
    client.post("/comments/", data={"ticket_id": older["id"], "content": "hi"}, headers=headers)
    client.post(
        "/comments/",
        data={"ticket_id": older["id"], "content": "staff only", "is_internal": "true"},
        headers=agent[1],
    )

    listed = client.get("/tickets/", headers=headers).json()
    assert [t["id"] for t in listed] == [newer["id"], older["id"]]
    assert listed[1]["comment_count"] == 1

    staff_view = {t["id"]: t for t in client.get("/tickets/", headers=agent[1]).json()}
    assert staff_view[older["id"]]["comment_count"] == 2


def test_filter_by_status_open_only(client, customer, agent, new_ticket):
    _, headers = customer
    a = new_ticket(headers, subject="A")
    b = new_ticket(headers, subject="B")

    r = client.put(f"/tickets/{b['id']}", json={"status": "closed"}, headers=agent[1])
    assert r.status_code == 200

    r = client.get("/tickets/?status=open", headers=headers)
    assert r.status_code == 200
    ids = {t["id"] for t in r.json()}
    assert a["id"] in ids
    assert b["id"] not in ids


def test_other_customer_gets_forbidden(client, customer, other_customer, new_ticket):
    ticket = new_ticket(customer[1])
    r = client.get(f"/tickets/{ticket['id']}", headers=other_customer[1])
    assert r.status_code == 403
    assert r.json()["detail"] == "Insufficient permissions"


def test_missing_ticket_is_hidden_from_customers(client, customer, agent):
    r = client.get("/tickets/9999999", headers=customer[1])
    assert r.status_code == 403
    r = client.get("/tickets/9999999", headers=agent[1])
    assert r.status_code == 404
    assert r.json()["detail"] == "Ticket not found"


def test_customer_updates_text_but_not_status(client, customer, new_ticket):
    _, headers = customer
    ticket = new_ticket(headers)

    r = client.put(f"/tickets/{ticket['id']}", json={"subject": "Updated"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["subject"] == "Updated"

    r = client.put(f"/tickets/{ticket['id']}", json={"subject": "Again", "status": "closed"}, headers=headers)
    assert r.status_code == 403
    assert r.json()["detail"] == "Insufficient permissions to update these fields"
    assert client.get(f"/tickets/{ticket['id']}", headers=headers).json()["subject"] == "Updated"


def test_empty_update_is_rejected(client, customer, new_ticket):
    ticket = new_ticket(customer[1])
    r = client.put(f"/tickets/{ticket['id']}", json={}, headers=customer[1])
    assert r.status_code == 400
    assert r.json()["detail"] == "No updates provided"


def test_status_stamps_are_kept_when_reopened(client, customer, agent, new_ticket):
    ticket = new_ticket(customer[1])
    url = f"/tickets/{ticket['id']}"

    resolved = client.put(url, json={"status": "resolved"}, headers=agent[1]).json()
    assert resolved["resolved_at"] is not None
    assert resolved["closed_at"] is None

    closed = client.put(url, json={"status": "closed"}, headers=agent[1]).json()
    assert closed["closed_at"] is not None

    reopened = client.put(url, json={"status": "open"}, headers=agent[1]).json()
    assert reopened["status"] == "open"
    assert reopened["resolved_at"] == resolved["resolved_at"]
    assert reopened["closed_at"] == closed["closed_at"]


def test_assignment_rules_and_notifications(client, outbox, customer, agent, make_user, new_ticket):
    agent_id, agent_headers = agent
    ticket = new_ticket(customer[1])
    url = f"/tickets/{ticket['id']}"

    customer_id = customer[0]
    r = client.put(url, json={"assigned_to": customer_id}, headers=agent_headers)
    assert r.status_code == 400

    outbox.sent.clear()
    r = client.put(url, json={"assigned_to": agent_id, "status": "in_progress"}, headers=agent_headers)
    assert r.status_code == 200
    assert r.json()["assigned_username"] == "agent1"

    subjects = {(m.to, m.subject.split(":")[0]) for m in outbox.sent}
    number = ticket["ticket_number"]
    assert ("alice@example.com", f"Ticket #{number} Status Updated") in subjects
    assert ("agent1@example.com", f"You've been assigned to Ticket #{number}") in subjects


def test_group_must_exist(client, customer, agent, admin, new_ticket):
    ticket = new_ticket(customer[1])
    r = client.put(f"/tickets/{ticket['id']}", json={"group_id": 999}, headers=agent[1])
    assert r.status_code == 400

    group = client.post("/groups/", json={"name": "Tier 1"}, headers=admin[1]).json()
    r = client.put(f"/tickets/{ticket['id']}", json={"group_id": group["id"]}, headers=agent[1])
    assert r.status_code == 200
    assert r.json()["group_name"] == "Tier 1"


def test_new_ticket_notifies_verified_staff(outbox, customer, agent, make_user, new_ticket):
    make_user("unverified_agent", role=Role.AGENT, verified=False)
    outbox.sent.clear()
    ticket = new_ticket(customer[1])
    recipients = {m.to for m in outbox.sent}
    assert "agent1@example.com" in recipients
    assert "admin@ticketforge.local" in recipients
    assert "unverified_agent@example.com" not in recipients
    assert "alice@example.com" not in recipients
    assert all(f"#{ticket['ticket_number']}" in m.subject for m in outbox.sent)


def test_auto_assign_agent_setting(client, admin, agent, customer, new_ticket):
    agent_id, _ = agent
    client.put("/settings/auto_assign_agent", json={"value": str(agent_id)}, headers=admin[1])
    ticket = new_ticket(customer[1])
    assert ticket["assigned_to"] == agent_id


def test_delete_ticket_is_admin_only(client, db, customer, agent, admin, new_ticket):
    ticket = new_ticket(customer[1])
    url = f"/tickets/{ticket['id']}"
    assert client.delete(url, headers=agent[1]).status_code == 403
    assert client.delete(url, headers=customer[1]).status_code == 403

    r = client.delete(url, headers=admin[1])
    assert r.status_code == 200
    assert r.json()["message"] == "Ticket deleted successfully"
    assert client.get(url, headers=admin[1]).status_code == 404
    assert db.get(Ticket, ticket["id"]) is None


def test_ticket_with_attachments(client, settings, customer, new_ticket):
    _, headers = customer
    r = client.post(
        "/tickets/",
        data={"subject": "Screenshot", "description": "see attached", "priority": "high"},
        files=[("attachments", ("shot.png", b"\x89PNG fake", "image/png"))],
        headers=headers,
    )
    assert r.status_code == 201
    body = r.json()
    assert body["priority"] == "high"
    [attachment] = body["attachments"]
    assert attachment["original_filename"] == "shot.png"
    assert attachment["file_size"] == len(b"\x89PNG fake")
    assert "file_path" not in attachment

    download = client.get(f"/attachments/{attachment['id']}", headers=headers)
    assert download.status_code == 200
    assert download.content == b"\x89PNG fake"


def test_rejected_upload_creates_nothing(client, settings, customer):
    _, headers = customer
    r = client.post(
        "/tickets/",
        data={"subject": "Script", "description": "run me"},
        files=[("attachments", ("evil.sh", b"rm -rf /", "text/x-shellscript"))],
        headers=headers,
    )
    assert r.status_code == 400
    assert client.get("/tickets/", headers=headers).json() == []


def test_too_many_attachments(client, settings, customer):
    _, headers = customer
    files = [("attachments", (f"f{i}.png", b"x", "image/png")) for i in range(settings.MAX_ATTACHMENTS + 1)]
    r = client.post("/tickets/", data={"subject": "s", "description": "d"}, files=files, headers=headers)
    assert r.status_code == 400
