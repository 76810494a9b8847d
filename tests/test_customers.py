from kardexcare.models import Contact


def test_create_customer_with_account_owner(client, admin_headers, factory, db):
    zone = factory.zone("West Zone", "W")
    response = client.post("/api/customers", json={
        "company_name": "  Tata Motors ",
        "industry": "Automotive",
        "service_zone_id": zone.id,
        "contact_name": "Priya",
        "contact_phone": "+91 98450 00000",
    }, headers=admin_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["company_name"] == "Tata Motors"
    assert body["status"] == "ACTIVE"
    assert [(c["name"], c["role"]) for c in body["contacts"]] == [("Priya", "ACCOUNT_OWNER")]


def test_duplicate_company_name_conflicts(client, admin_headers, factory):
    factory.customer(name="Acme")
    response = client.post("/api/customers", json={"company_name": "acme"}, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["code"] == "CONFLICT"


def test_empty_company_name_is_rejected(client, admin_headers):
    response = client.post("/api/customers", json={"company_name": "   "}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert response.json()["success"] is False


def test_unknown_zone_is_not_found(client, admin_headers):
    response = client.post("/api/customers", json={"company_name": "Nowhere", "service_zone_id": 42},
                           headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_update_upserts_account_owner(client, admin_headers, factory, db):
    customer = factory.customer()

    first = client.put(f"/api/customers/{customer.id}", json={"contact_name": "Anil"}, headers=admin_headers)
    assert first.status_code == 200
    second = client.put(f"/api/customers/{customer.id}",
                        json={"contact_name": "Anil Kumar", "industry": "Pharma"}, headers=admin_headers)
    assert second.status_code == 200
    assert second.json()["industry"] == "Pharma"

    owners = db.query(Contact).filter(Contact.customer_id == customer.id).all()
    assert [(o.name, o.role) for o in owners] == [("Anil Kumar", "ACCOUNT_OWNER")]


def test_delete_blocked_while_assets_exist(client, admin_headers, factory):
    customer = factory.customer()
    factory.asset(customer)

    response = client.delete(f"/api/customers/{customer.id}", headers=admin_headers)
    assert response.status_code == 409
    assert "1 assets" in response.json()["error"]


def test_delete_customer_without_dependents(client, admin_headers, factory):
    customer = factory.customer()
    assert client.delete(f"/api/customers/{customer.id}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/customers/{customer.id}", headers=admin_headers).status_code == 404


def test_list_paginates_and_searches(client, admin_headers, factory):
    for name in ("Alpha Logistics", "Beta Pharma", "Gamma Logistics"):
        factory.customer(name=name)

    page = client.get("/api/customers?size=2&page=2", headers=admin_headers).json()
    assert page["total"] == 3
    assert [c["company_name"] for c in page["items"]] == ["Gamma Logistics"]

    found = client.get("/api/customers?search=logistics", headers=admin_headers).json()
    assert [c["company_name"] for c in found["items"]] == ["Alpha Logistics", "Gamma Logistics"]


def test_search_matches_contact_names(client, admin_headers, factory, db):
    customer = factory.customer(name="Hidden Name Pvt")
    db.add(Contact(customer_id=customer.id, name="Sunita Rao"))
    db.commit()

    found = client.get("/api/customers?search=sunita", headers=admin_headers).json()
    assert [c["id"] for c in found["items"]] == [customer.id]


def test_include_contacts_and_assets(client, admin_headers, factory):
    customer = factory.customer()
    asset = factory.asset(customer)

    plain = client.get("/api/customers", headers=admin_headers).json()["items"][0]
    assert plain["assets"] is None

    included = client.get("/api/customers?include=contacts,assets", headers=admin_headers).json()["items"][0]
    assert [a["id"] for a in included["assets"]] == [asset.id]
    assert included["contacts"] == []


def test_contact_update_and_delete(client, admin_headers, factory):
    customer = factory.customer()
    created = client.post(f"/api/customers/{customer.id}/contacts",
                          json={"name": "Deepak", "email": "deepak@example.com"}, headers=admin_headers).json()

    updated = client.put(f"/api/customers/{customer.id}/contacts/{created['id']}",
                         json={"phone": "12345"}, headers=admin_headers)
    assert updated.status_code == 200
    assert updated.json()["phone"] == "12345"
    assert updated.json()["email"] == "deepak@example.com"

    deleted = client.delete(f"/api/customers/{customer.id}/contacts/{created['id']}", headers=admin_headers)
    assert deleted.status_code == 204
    assert client.get(f"/api/customers/{customer.id}/contacts", headers=admin_headers).json() == []


def test_duplicate_asset_serial_conflicts(client, admin_headers, factory):
    customer = factory.customer()
    factory.asset(customer, serial_number="KX-42")
    response = client.post("/api/assets", json={"customer_id": customer.id, "serial_number": "KX-42"},
                           headers=admin_headers)
    assert response.status_code == 409


def test_null_status_is_rejected(client, admin_headers, factory):
    customer = factory.customer()
    response = client.put(f"/api/customers/{customer.id}", json={"status": None}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert client.get(f"/api/customers/{customer.id}", headers=admin_headers).json()["status"] == "ACTIVE"


def test_null_company_name_is_rejected(client, admin_headers, factory):
    customer = factory.customer(name="Kirloskar")
    response = client.put(f"/api/customers/{customer.id}", json={"company_name": None}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_null_contact_role_and_name_are_rejected(client, admin_headers, factory):
    customer = factory.customer()
    created = client.post(f"/api/customers/{customer.id}/contacts",
                          json={"name": "Meera"}, headers=admin_headers).json()
    url = f"/api/customers/{customer.id}/contacts/{created['id']}"

    for payload in ({"role": None}, {"name": None}):
        response = client.put(url, json=payload, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    contacts = client.get(f"/api/customers/{customer.id}/contacts", headers=admin_headers).json()
    assert [(c["name"], c["role"]) for c in contacts] == [("Meera", "CONTACT")]
