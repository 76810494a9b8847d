import re

import pytest

from kardexcare.enums import UserRole
from kardexcare.models import TicketStatusHistory


@pytest.fixture
def zone(factory):
    return factory.zone("South Zone", "S")


@pytest.fixture
def customer(factory, zone):
    return factory.customer(zone)


def test_create_ticket_stamps_number_and_history(client, admin, admin_headers, customer, zone):
    response = client.post("/api/tickets", json={
        "title": "Shuttle stuck at level 4",
        "customer_id": customer.id,
        "priority": "HIGH",
    }, headers=admin_headers)

    assert response.status_code == 201
    body = response.json()
    assert re.match(r"^TKT-\d{8}-0001$", body["ticket_number"])
    assert body["status"] == "OPEN"
    assert body["zone_id"] == zone.id
    assert [(h["previous_status"], h["status"]) for h in body["status_history"]] == [(None, "OPEN")]

    second = client.post("/api/tickets", json={"title": "Second", "customer_id": customer.id},
                         headers=admin_headers).json()
    assert second["ticket_number"].endswith("-0002")


def test_create_ticket_rejects_foreign_asset(client, admin_headers, factory, customer):
    other_asset = factory.asset(factory.customer())
    response = client.post("/api/tickets", json={
        "title": "Wrong asset", "customer_id": customer.id, "asset_id": other_asset.id
    }, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.parametrize("start, target", [
    ("OPEN", "CLOSED"),
    ("CLOSED", "OPEN"),
    ("CANCELLED", "ONSITE_VISIT_IN_PROGRESS"),
    ("SPARE_PARTS_DELIVERED", "PO_NEEDED"),
    ("RESOLVED", "RESOLVED"),
])
def test_any_status_transition_is_allowed(client, factory, admin, admin_headers, customer, db, start, target):
    ticket = factory.ticket(customer, admin, status=start)

    response = client.patch(f"/api/tickets/{ticket.id}/status",
                            json={"status": target, "notes": "moved"}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["status"] == target
    history = db.query(TicketStatusHistory).filter(TicketStatusHistory.ticket_id == ticket.id).all()
    assert [(h.previous_status, h.status, h.changed_by_id, h.notes) for h in history] == [
        (start, target, admin.id, "moved")
    ]


def test_status_side_effects(client, factory, admin, admin_headers, customer):
    ticket = factory.ticket(customer, admin)

    resolved = client.patch(f"/api/tickets/{ticket.id}/status", json={"status": "RESOLVED"},
                            headers=admin_headers).json()
    assert resolved["resolved_at"] is not None
    assert resolved["closed_at"] is None

    closed = client.patch(f"/api/tickets/{ticket.id}/status", json={"status": "CLOSED"},
                          headers=admin_headers).json()
    assert closed["closed_at"] is not None
    assert len(closed["status_history"]) == 2


def test_unknown_status_is_rejected(client, factory, admin, admin_headers, customer):
    ticket = factory.ticket(customer, admin)
    response = client.patch(f"/api/tickets/{ticket.id}/status", json={"status": "DONE"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_service_person_updates_only_assigned_tickets(client, factory, admin, customer):
    technician = factory.user(UserRole.SERVICE_PERSON.value)
    mine = factory.ticket(customer, admin, assigned_to=technician, status="ASSIGNED")
    other = factory.ticket(customer, admin)
    headers = factory.auth(technician)

    listing = client.get("/api/tickets", headers=headers).json()
    assert [t["id"] for t in listing["items"]] == [mine.id]

    ok = client.patch(f"/api/tickets/{mine.id}/status", json={"status": "ONSITE_VISIT_STARTED"}, headers=headers)
    assert ok.status_code == 200
    denied = client.patch(f"/api/tickets/{other.id}/status", json={"status": "CLOSED"}, headers=headers)
    assert denied.status_code == 403


def test_helpdesk_cannot_change_status(client, factory, admin, customer):
    ticket = factory.ticket(customer, admin)
    helpdesk = factory.user(UserRole.EXPERT_HELPDESK.value)
    response = client.patch(f"/api/tickets/{ticket.id}/status", json={"status": "CLOSED"},
                            headers=factory.auth(helpdesk))
    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_zone_user_ticket_scope(client, factory, admin, customer, zone):
    other_zone = factory.zone("North Zone", "N")
    visible = factory.ticket(customer, admin)
    factory.ticket(factory.customer(other_zone), admin)
    zone_user = factory.user(UserRole.ZONE_USER.value, zone=zone)

    listing = client.get("/api/tickets", headers=factory.auth(zone_user)).json()
    assert [t["id"] for t in listing["items"]] == [visible.id]


def test_zone_user_cannot_create_ticket_outside_zone(client, factory):
    home, away = factory.zone(), factory.zone()
    zone_user = factory.user(UserRole.ZONE_USER.value, zone=home)
    customer = factory.customer(away)
    response = client.post("/api/tickets", json={"title": "Out of zone", "customer_id": customer.id},
                           headers=factory.auth(zone_user))
    assert response.status_code == 403


def test_external_user_sees_own_tickets(client, factory, admin, customer):
    external = factory.user(UserRole.EXTERNAL_USER.value)
    headers = factory.auth(external)
    created = client.post("/api/tickets", json={"title": "Raised by partner", "customer_id": customer.id},
                          headers=headers)
    assert created.status_code == 201
    factory.ticket(customer, admin)

    listing = client.get("/api/tickets", headers=headers).json()
    assert [t["id"] for t in listing["items"]] == [created.json()["id"]]


def test_assign_ticket(client, factory, admin, admin_headers, customer):
    ticket = factory.ticket(customer, admin)
    technician = factory.user(UserRole.SERVICE_PERSON.value, name="Vijay Kumar")

    response = client.patch(f"/api/tickets/{ticket.id}/assign", json={"assigned_to_id": technician.id},
                            headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["assigned_to_id"] == technician.id
    assert body["status"] == "ASSIGNED"
    assert body["status_history"][-1]["notes"] == "Assigned to Vijay Kumar"


def test_delete_ticket_removes_history(client, factory, admin, admin_headers, customer, db):
    created = client.post("/api/tickets", json={"title": "Temporary", "customer_id": customer.id},
                          headers=admin_headers).json()

    assert client.delete(f"/api/tickets/{created['id']}", headers=admin_headers).status_code == 204
    assert db.query(TicketStatusHistory).filter(TicketStatusHistory.ticket_id == created["id"]).count() == 0
    assert client.get(f"/api/tickets/{created['id']}", headers=admin_headers).status_code == 404


def test_only_admin_deletes_tickets(client, factory, admin, customer):
    ticket = factory.ticket(customer, admin)
    manager = factory.user(UserRole.ZONE_MANAGER.value, zone=factory.zone())
    assert client.delete(f"/api/tickets/{ticket.id}", headers=factory.auth(manager)).status_code == 403


def test_service_person_keeps_access_to_created_ticket(client, factory, customer):
    technician = factory.user(UserRole.SERVICE_PERSON.value)
    headers = factory.auth(technician)

    response = client.post("/api/tickets", json={"title": "Lift motor noise", "customer_id": customer.id},
                           headers=headers)
    assert response.status_code == 201
    body = response.json()
    assert body["assigned_to_id"] == technician.id
    assert body["status"] == "ASSIGNED"
    assert [(h["previous_status"], h["status"]) for h in body["status_history"]] == [(None, "ASSIGNED")]

    assert client.get(f"/api/tickets/{body['id']}", headers=headers).status_code == 200
    moved = client.patch(f"/api/tickets/{body['id']}/status",
                         json={"status": "IN_PROGRESS"}, headers=headers)
    assert moved.status_code == 200
    assert moved.json()["status"] == "IN_PROGRESS"
