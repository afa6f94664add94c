def test_error_response_has_unified_shape(client):
    response = client.get("/users/me")
    assert response.status_code == 401
    body = response.json()
    assert "error" in body
    assert "code" in body["error"]
    assert "message" in body["error"]
    assert "detail" in body
    assert "request_id" in body


def test_health_endpoint_returns_ok_and_request_id(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert "x-request-id" in response.headers


def test_malformed_id_is_a_validation_error(client, auth_headers):
    headers = auth_headers("malformed@example.com")

    response = client.get("/reservations/not-a-number", headers=headers)

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"


def test_domain_errors_carry_their_code(client, auth_headers):
    headers = auth_headers("missing@example.com")

    response = client.get("/garages/999", headers=headers)

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == {"code": "not_found", "message": "Garage not found", "detail": "Garage not found"}


def test_garages_pagination_limit_offset(client, auth_headers, garage_factory):
    owner = auth_headers("pagination-owner@example.com", role="garage_owner")
    garage_factory(owner, name="First Garage")
    second = garage_factory(owner, name="Second Garage")
    garage_factory(owner, name="Third Garage")

    paged = client.get("/garages?limit=1&offset=1", headers=owner)

    assert paged.status_code == 200
    data = paged.json()
    assert len(data) == 1
    assert data[0]["id"] == second["garage"]["id"]


def test_limit_above_maximum_is_rejected(client, auth_headers):
    headers = auth_headers("limit@example.com")

    response = client.get("/garages?limit=1000", headers=headers)

    assert response.status_code == 422
