from kardexcare.enums import UserRole
from kardexcare.models import OfferAsset


def test_create_and_update_asset(client, admin_headers, factory):
    customer = factory.customer()
    created = client.post("/api/assets", json={
        "customer_id": customer.id, "serial_number": " KX-7001 ", "model": "Shuttle XP 500"
    }, headers=admin_headers)
    assert created.status_code == 201
    asset = created.json()
    assert (asset["serial_number"], asset["status"]) == ("KX-7001", "ACTIVE")

    response = client.put(f"/api/assets/{asset['id']}", json={"location": "Bay 3", "status": "INACTIVE"},
                          headers=admin_headers)
    assert response.status_code == 200
    assert (response.json()["location"], response.json()["status"]) == ("Bay 3", "INACTIVE")
    assert response.json()["model"] == "Shuttle XP 500"


def test_update_to_taken_serial_conflicts(client, admin_headers, factory):
    customer = factory.customer()
    factory.asset(customer, serial_number="KX-1")
    other = factory.asset(customer, serial_number="KX-2")

    response = client.put(f"/api/assets/{other.id}", json={"serial_number": "KX-1"}, headers=admin_headers)
    assert response.status_code == 409

    same = client.put(f"/api/assets/{other.id}", json={"serial_number": "KX-2"}, headers=admin_headers)
    assert same.status_code == 200


def test_move_asset_to_missing_customer_is_not_found(client, admin_headers, factory):
    asset = factory.asset(factory.customer())
    response = client.put(f"/api/assets/{asset.id}", json={"customer_id": 999}, headers=admin_headers)
    assert response.status_code == 404


def test_list_assets_filters_and_paginates(client, admin_headers, factory):
    first, second = factory.customer(), factory.customer()
    factory.asset(first, serial_number="VLM-100")
    factory.asset(first, serial_number="VLM-200")
    factory.asset(second, serial_number="HRL-300")

    by_customer = client.get(f"/api/assets?customer_id={first.id}", headers=admin_headers).json()
    assert by_customer["total"] == 2

    found = client.get("/api/assets?search=hrl", headers=admin_headers).json()
    assert [a["serial_number"] for a in found["items"]] == ["HRL-300"]

    page = client.get("/api/assets?size=2&page=2", headers=admin_headers).json()
    assert (page["total"], page["page"], page["size"]) == (3, 2, 2)
    assert [a["serial_number"] for a in page["items"]] == ["HRL-300"]


def test_zone_user_lists_only_assets_in_zone(client, factory):
    zone = factory.zone()
    mine = factory.asset(factory.customer(zone))
    other = factory.asset(factory.customer(factory.zone()))
    user = factory.user(UserRole.ZONE_USER.value, zones=[zone])

    listed = client.get("/api/assets", headers=factory.auth(user)).json()
    assert [a["id"] for a in listed["items"]] == [mine.id]
    assert client.get(f"/api/assets/{other.id}", headers=factory.auth(user)).status_code == 403


def test_delete_blocked_while_ticket_references_asset(client, admin, admin_headers, factory, db):
    customer = factory.customer()
    asset = factory.asset(customer)
    ticket = factory.ticket(customer, admin)
    ticket.asset_id = asset.id
    db.commit()

    response = client.delete(f"/api/assets/{asset.id}", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "Cannot delete asset referenced by 1 tickets and 0 offers"


def test_delete_blocked_while_offer_references_asset(client, admin, admin_headers, factory, db):
    zone = factory.zone()
    customer = factory.customer(zone)
    asset = factory.asset(customer)
    offer = factory.offer(customer, zone, admin)
    db.add(OfferAsset(offer_id=offer.id, asset_id=asset.id))
    db.commit()

    response = client.delete(f"/api/assets/{asset.id}", headers=admin_headers)
    assert response.status_code == 409
    assert "1 offers" in response.json()["error"]


def test_delete_unreferenced_asset(client, admin_headers, factory):
    asset = factory.asset(factory.customer())
    assert client.delete(f"/api/assets/{asset.id}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/assets/{asset.id}", headers=admin_headers).status_code == 404


def test_service_person_cannot_manage_assets(client, factory):
    customer = factory.customer()
    technician = factory.user(UserRole.SERVICE_PERSON.value)
    response = client.post("/api/assets", json={"customer_id": customer.id, "serial_number": "KX-9"},
                           headers=factory.auth(technician))
    assert response.status_code == 403
