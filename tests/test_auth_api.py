from conftest import PASSWORD, login


def register_payload(**overrides):
    payload = {
        "username": "carol",
        "email": "carol@mail.com",
        "password": PASSWORD,
        "password_confirmation": PASSWORD,
        "full_name": "Carol Smith",
        "phone": "+49 (0) 123-456",
    }
    payload.update(overrides)
    return payload


def test_register_creates_customer_with_token(client):
    response = client.post("/api/v1/register", json=register_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["user"]["role"] == "customer"
    assert body["user"]["phone"] == "+490123456"
    assert "password" not in body["user"]
    assert body["token_type"] == "bearer"

    me = client.get("/api/v1/user", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "carol@mail.com"


def test_register_rejects_mismatched_confirmation(client):
    response = client.post("/api/v1/register", json=register_payload(password_confirmation="different1"))

    assert response.status_code == 422
    assert response.json()["message"] == "The given data was invalid."


def test_register_rejects_short_password(client):
    response = client.post("/api/v1/register", json=register_payload(password="short", password_confirmation="short"))

    assert response.status_code == 422
    assert "password" in response.json()["errors"]


def test_register_cannot_choose_role(client):
    response = client.post("/api/v1/register", json=register_payload(role="admin"))

    assert response.status_code == 422
    assert "role" in response.json()["errors"]


def test_register_rejects_duplicate_email(client, customer):
    response = client.post("/api/v1/register", json=register_payload(email=customer.email))

    assert response.status_code == 422
    assert "email" in response.json()["errors"]


def test_login_with_bad_password_is_unauthorized(client, customer):
    response = client.post("/api/v1/login", json={"email": customer.email, "password": "wrong-password"})

    assert response.status_code == 401
    assert response.json()["message"] == "The provided credentials are incorrect."


def test_logout_revokes_token(client, customer_headers):
    assert client.post("/api/v1/logout", headers=customer_headers).status_code == 200

    response = client.get("/api/v1/user", headers=customer_headers)
    assert response.status_code == 401


def test_new_login_revokes_previous_token(client, customer, customer_headers):
    fresh = login(client, customer)

    assert client.get("/api/v1/user", headers=customer_headers).status_code == 401
    assert client.get("/api/v1/user", headers=fresh).status_code == 200


def test_missing_or_garbage_token_is_unauthorized(client):
    assert client.get("/api/v1/user").status_code == 401

    response = client.get("/api/v1/user", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert "message" in response.json()


def test_admin_routes_reject_customers(client, customer_headers):
    response = client.get("/api/v1/users", headers=customer_headers)

    assert response.status_code == 403
    assert response.json() == {"message": "Unauthorized"}


def test_admin_manages_users(client, admin_headers, customer):
    created = client.post("/api/v1/users", headers=admin_headers, json={
        "username": "dave",
        "email": "dave@mail.com",
        "password": PASSWORD,
        "full_name": "Dave",
        "role": "admin",
    })
    assert created.status_code == 201
    user_id = created.json()["user"]["id"]

    updated = client.put(f"/api/v1/users/{user_id}", headers=admin_headers, json={"full_name": "David", "password": ""})
    assert updated.status_code == 200
    assert updated.json()["user"]["full_name"] == "David"

    usernames = [u["username"] for u in client.get("/api/v1/users", headers=admin_headers).json()]
    assert "dave" in usernames and customer.username in usernames

    assert client.delete(f"/api/v1/users/{user_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/v1/users/{user_id}", headers=admin_headers).status_code == 404


def test_user_update_rejects_blank_names(client, admin_headers, customer):
    for field in ("username", "full_name"):
        response = client.put(f"/api/v1/users/{customer.id}", headers=admin_headers, json={field: "   "})
        assert response.status_code == 422
        assert field in response.json()["errors"]

    trimmed = client.put(f"/api/v1/users/{customer.id}", headers=admin_headers, json={"full_name": "  Alice B  "})
    assert trimmed.json()["user"]["full_name"] == "Alice B"


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
