import pytest

from kardexcare.enums import UserRole


def test_health_is_public(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_protected_route_without_token_returns_401(client):
    response = client.get("/api/customers")
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Authentication required", "code": "UNAUTHORIZED"}


def test_invalid_token_returns_401(client):
    response = client.get("/api/tickets", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_inactive_user_is_rejected(client, factory):
    user = factory.user(UserRole.ADMIN.value, is_active=False)
    response = client.get("/api/customers", headers=factory.auth(user))
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_token_cookie_is_accepted(client, factory, admin):
    client.cookies.set("token", factory.token(admin))
    try:
        response = client.get("/api/auth/me")
    finally:
        client.cookies.clear()
    assert response.status_code == 200
    assert response.json()["id"] == admin.id


def test_login_and_me(client, admin, password):
    response = client.post("/api/auth/login", json={"email": admin.email, "password": password})
    client.cookies.clear()
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == admin.email
    assert me.json()["role"] == "ADMIN"


def test_login_with_wrong_password(client, admin):
    response = client.post("/api/auth/login", json={"email": admin.email, "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_me_reports_zone_ids_from_assignments(client, factory):
    home, extra = factory.zone(), factory.zone()
    user = factory.user(UserRole.ZONE_USER.value, zone=home, zones=[extra])
    response = client.get("/api/auth/me", headers=factory.auth(user))
    assert sorted(response.json()["zone_ids"]) == sorted([home.id, extra.id])


@pytest.mark.parametrize("role", [
    UserRole.ZONE_MANAGER.value,
    UserRole.ZONE_USER.value,
    UserRole.SERVICE_PERSON.value,
    UserRole.EXTERNAL_USER.value,
    UserRole.EXPERT_HELPDESK.value,
    UserRole.CUSTOMER_OWNER.value,
])
def test_only_admin_manages_customers(client, factory, role):
    zone = factory.zone()
    customer = factory.customer(zone)
    user = factory.user(role, zone=zone, customer=customer)
    headers = factory.auth(user)

    created = client.post("/api/customers", json={"company_name": "Blocked Ltd"}, headers=headers)
    updated = client.put(f"/api/customers/{customer.id}", json={"industry": "Retail"}, headers=headers)
    deleted = client.delete(f"/api/customers/{customer.id}", headers=headers)

    for response in (created, updated, deleted):
        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"


def test_customer_owner_manages_only_own_contacts(client, factory):
    own = factory.customer()
    other = factory.customer()
    owner = factory.user(UserRole.CUSTOMER_OWNER.value, customer=own)
    headers = factory.auth(owner)

    allowed = client.post(f"/api/customers/{own.id}/contacts", json={"name": "Ravi"}, headers=headers)
    assert allowed.status_code == 201
    assert allowed.json()["customer_id"] == own.id

    denied = client.post(f"/api/customers/{other.id}/contacts", json={"name": "Ravi"}, headers=headers)
    assert denied.status_code == 403
    assert denied.json()["code"] == "FORBIDDEN"


def test_customer_contact_cannot_manage_contacts(client, factory):
    customer = factory.customer()
    contact_user = factory.user(UserRole.CUSTOMER_CONTACT.value, customer=customer)
    response = client.post(
        f"/api/customers/{customer.id}/contacts", json={"name": "Meena"}, headers=factory.auth(contact_user)
    )
    assert response.status_code == 403


def test_admin_manages_any_contacts(client, factory, admin_headers):
    customer = factory.customer()
    response = client.post(f"/api/customers/{customer.id}/contacts", json={"name": "Kiran"}, headers=admin_headers)
    assert response.status_code == 201


def test_non_numeric_customer_id_for_contacts_is_a_validation_error(client, factory):
    owner = factory.user(UserRole.CUSTOMER_OWNER.value, customer=factory.customer())
    response = client.post("/api/customers/abc/contacts", json={"name": "X"}, headers=factory.auth(owner))
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_zone_user_sees_only_customers_in_their_zones(client, factory):
    north, south = factory.zone(), factory.zone()
    visible = factory.customer(north)
    hidden = factory.customer(south)
    user = factory.user(UserRole.ZONE_USER.value, zone=north)
    headers = factory.auth(user)

    listing = client.get("/api/customers", headers=headers).json()
    assert [c["id"] for c in listing["items"]] == [visible.id]
    assert listing["total"] == 1

    assert client.get(f"/api/customers/{visible.id}", headers=headers).status_code == 200
    out_of_scope = client.get(f"/api/customers/{hidden.id}", headers=headers)
    assert out_of_scope.status_code == 403
    assert out_of_scope.json()["code"] == "FORBIDDEN"
    missing = client.get("/api/customers/9999", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["code"] == "NOT_FOUND"


def test_zone_user_without_zones_sees_nothing(client, factory):
    factory.customer(factory.zone())
    user = factory.user(UserRole.ZONE_MANAGER.value)
    response = client.get("/api/customers", headers=factory.auth(user))
    assert response.status_code == 200
    assert response.json()["items"] == []


def test_customer_owner_sees_only_own_customer(client, factory):
    own, other = factory.customer(), factory.customer()
    owner = factory.user(UserRole.CUSTOMER_OWNER.value, customer=own)
    listing = client.get("/api/customers", headers=factory.auth(owner)).json()
    assert [c["id"] for c in listing["items"]] == [own.id]
    assert client.get(f"/api/customers/{other.id}", headers=factory.auth(owner)).status_code == 403


def test_asset_management_roles(client, factory):
    zone = factory.zone()
    customer = factory.customer(zone)
    payload = {"customer_id": customer.id, "serial_number": "KX-1001"}

    helpdesk = factory.user(UserRole.EXPERT_HELPDESK.value)
    denied = client.post("/api/assets", json=payload, headers=factory.auth(helpdesk))
    assert denied.status_code == 403

    zone_user = factory.user(UserRole.ZONE_USER.value, zone=zone)
    allowed = client.post("/api/assets", json=payload, headers=factory.auth(zone_user))
    assert allowed.status_code == 201
    assert allowed.json()["serial_number"] == "KX-1001"


def test_offers_hidden_from_service_person(client, factory):
    service_person = factory.user(UserRole.SERVICE_PERSON.value)
    response = client.get("/api/offers", headers=factory.auth(service_person))
    assert response.status_code == 403
