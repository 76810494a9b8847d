import pytest

from kardexcare.enums import UserRole


def new_user(**overrides):
    payload = {
        "email": "ravi.tech@example.com",
        "password": "Sup3rSecret",
        "name": "Ravi Kumar",
        "role": UserRole.SERVICE_PERSON.value,
    }
    payload.update(overrides)
    return payload


def test_create_user_and_login(client, admin_headers):
    response = client.post("/api/users", json=new_user(email="Ravi.Tech@Example.com", short_form="rk"),
                           headers=admin_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "ravi.tech@example.com"
    assert body["short_form"] == "RK"
    assert body["is_active"] is True
    assert "hashed_password" not in body

    login = client.post("/api/auth/login", json={"email": "ravi.tech@example.com", "password": "Sup3rSecret"})
    client.cookies.clear()
    assert login.status_code == 200


def test_invalid_role_is_rejected(client, admin_headers):
    response = client.post("/api/users", json=new_user(role="SUPERVISOR"), headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert "Invalid role" in response.json()["error"]


@pytest.mark.parametrize("role", [UserRole.CUSTOMER_OWNER.value, UserRole.CUSTOMER_CONTACT.value])
def test_customer_users_require_customer_id(client, admin_headers, factory, role):
    response = client.post("/api/users", json=new_user(role=role), headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "customer_id is required for customer users"

    customer = factory.customer()
    response = client.post("/api/users", json=new_user(role=role, customer_id=customer.id), headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["customer_id"] == customer.id


def test_unknown_zone_is_not_found(client, admin_headers):
    response = client.post("/api/users", json=new_user(zone_id=404), headers=admin_headers)
    assert response.status_code == 404


def test_duplicate_email_conflicts(client, admin_headers, admin):
    response = client.post("/api/users", json=new_user(email=admin.email.upper()), headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["code"] == "CONFLICT"


def test_update_email_to_existing_conflicts(client, admin_headers, factory, admin):
    other = factory.user(UserRole.ZONE_USER.value)
    response = client.put(f"/api/users/{other.id}", json={"email": admin.email}, headers=admin_headers)
    assert response.status_code == 409


def test_update_role_is_validated(client, admin_headers, factory):
    user = factory.user(UserRole.ZONE_USER.value)

    assert client.put(f"/api/users/{user.id}", json={"role": "ROOT"}, headers=admin_headers).status_code == 400

    response = client.put(f"/api/users/{user.id}", json={"role": UserRole.ZONE_MANAGER.value, "name": "Lead"},
                          headers=admin_headers)
    assert response.status_code == 200
    assert (response.json()["role"], response.json()["name"]) == ("ZONE_MANAGER", "Lead")


def test_admin_cannot_deactivate_self(client, admin_headers, admin):
    response = client.delete(f"/api/users/{admin.id}", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "You cannot deactivate your own account"


def test_deactivated_user_is_hidden_and_locked_out(client, admin_headers, factory):
    user = factory.user(UserRole.SERVICE_PERSON.value)
    user_headers = factory.auth(user)

    assert client.delete(f"/api/users/{user.id}", headers=admin_headers).status_code == 204

    active_ids = [u["id"] for u in client.get("/api/users", headers=admin_headers).json()["items"]]
    assert user.id not in active_ids
    all_ids = [u["id"] for u in client.get("/api/users?include_inactive=true", headers=admin_headers).json()["items"]]
    assert user.id in all_ids

    assert client.get("/api/auth/me", headers=user_headers).status_code == 401


def test_list_filters_by_role_and_search(client, admin_headers, factory):
    factory.user(UserRole.ZONE_USER.value, name="Meena Zone")
    factory.user(UserRole.SERVICE_PERSON.value, name="Suresh Field")

    by_role = client.get("/api/users?role=SERVICE_PERSON", headers=admin_headers).json()
    assert [u["name"] for u in by_role["items"]] == ["Suresh Field"]

    found = client.get("/api/users?search=meena", headers=admin_headers).json()
    assert [u["name"] for u in found["items"]] == ["Meena Zone"]


def test_user_management_is_admin_only(client, factory):
    helpdesk = factory.user(UserRole.EXPERT_HELPDESK.value)
    assert client.get("/api/users", headers=factory.auth(helpdesk)).status_code == 403
    assert client.post("/api/users", json=new_user(), headers=factory.auth(helpdesk)).status_code == 403


def test_missing_user_is_not_found(client, admin_headers):
    assert client.get("/api/users/999", headers=admin_headers).status_code == 404
