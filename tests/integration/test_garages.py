def test_owner_creates_garage_with_numbered_bays(client, auth_headers):
    owner = auth_headers("owner@example.com", role="garage_owner")

    response = client.post(
        "/garages",
        headers=owner,
        json={
            "name": "Garage du Port",
            "address": "3 Quai Ouest",
            "phone": "+33200000000",
            "opening_time": "8:00",
            "closing_time": "18:30",
            "number_of_bays": 3,
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["garage"]["opening_time"] == "08:00"
    assert body["garage"]["number_of_bays"] == 3
    assert [bay["bay_number"] for bay in body["repair_bays"]] == [1, 2, 3]
    assert [bay["name"] for bay in body["repair_bays"]] == ["Bay 1", "Bay 2", "Bay 3"]
    assert all(bay["opening_time"] == "08:00" and bay["closing_time"] == "18:30" for bay in body["repair_bays"])
    assert all(bay["is_active"] for bay in body["repair_bays"])


def test_plain_user_cannot_create_garage(client, auth_headers, garage_factory):
    user = auth_headers("driver@example.com")

    response = client.post(
        "/garages",
        headers=user,
        json={"name": "Nope", "address": "Nowhere", "phone": "000", "opening_time": "08:00", "closing_time": "18:00"},
    )

    assert response.status_code == 403


def test_garage_hours_must_be_ordered(client, auth_headers):
    owner = auth_headers("hours@example.com", role="garage_owner")

    response = client.post(
        "/garages",
        headers=owner,
        json={"name": "Night", "address": "Dark St", "phone": "000", "opening_time": "18:00", "closing_time": "08:00"},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Opening time must be before closing time"


def test_bay_count_is_bounded(client, auth_headers):
    owner = auth_headers("many@example.com", role="garage_owner")

    response = client.post(
        "/garages",
        headers=owner,
        json={
            "name": "Huge",
            "address": "Big Road",
            "phone": "000",
            "opening_time": "08:00",
            "closing_time": "18:00",
            "number_of_bays": 11,
        },
    )

    assert response.status_code == 422


def test_only_operator_updates_garage_and_bays_keep_hours(client, auth_headers, garage_factory):
    owner = auth_headers("update-owner@example.com", role="garage_owner")
    other = auth_headers("other-owner@example.com", role="garage_owner")
    admin = auth_headers("update-admin@example.com", role="admin")
    garage = garage_factory(owner)["garage"]

    denied = client.patch(f"/garages/{garage['id']}", headers=other, json={"name": "Stolen"})
    updated = client.patch(f"/garages/{garage['id']}", headers=owner, json={"closing_time": "20:00"})
    by_admin = client.patch(f"/garages/{garage['id']}", headers=admin, json={"name": "Renamed"})
    bays = client.get(f"/repair-bays/garage/{garage['id']}", headers=owner).json()

    assert denied.status_code == 403
    assert updated.status_code == 200
    assert updated.json()["closing_time"] == "20:00"
    assert by_admin.json()["name"] == "Renamed"
    assert all(bay["closing_time"] == "18:00" for bay in bays)


def test_delete_garage_removes_bays_services_and_reservations(client, auth_headers, garage_factory, reserve):
    owner = auth_headers("delete-owner@example.com", role="garage_owner")
    user = auth_headers("delete-user@example.com")
    created = garage_factory(owner, number_of_bays=2)
    garage_id = created["garage"]["id"]
    bay_id = created["repair_bays"][0]["id"]
    service = client.post(
        "/services",
        headers=owner,
        json={"garage_id": garage_id, "type": "oil_change", "average_cost": "49.90", "estimated_duration_minutes": 45},
    ).json()
    reservation = reserve(user, garage_id, "09:00", "10:00")

    response = client.delete(f"/garages/{garage_id}", headers=owner)

    assert response.status_code == 200
    assert "message" in response.json()
    assert client.get(f"/garages/{garage_id}", headers=owner).status_code == 404
    assert client.get(f"/repair-bays/{bay_id}", headers=owner).status_code == 404
    assert client.get(f"/repair-bays/garage/{garage_id}", headers=owner).status_code == 404
    assert client.get(f"/services/{service['id']}", headers=owner).status_code == 404
    assert client.get(f"/reservations/{reservation['id']}", headers=user).status_code == 404


def test_delete_garage_requires_operator(client, auth_headers, garage_factory):
    owner = auth_headers("keep-owner@example.com", role="garage_owner")
    other = auth_headers("keep-other@example.com", role="garage_owner")
    garage = garage_factory(owner)["garage"]

    response = client.delete(f"/garages/{garage['id']}", headers=other)

    assert response.status_code == 403
    assert client.get(f"/garages/{garage['id']}", headers=owner).status_code == 200
