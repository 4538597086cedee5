def test_register_login_and_me(client):
    registered = client.post(
        "/auth/register",
        json={"name": "Alice", "email": "Alice@X.com", "password": "Secret123", "avatar": "a.png"},
    )
    assert registered.status_code == 201
    assert registered.json()["email"] == "alice@x.com"
    assert "password_hash" not in registered.json()

    login = client.post("/auth/login", json={"email": "alice@x.com", "password": "Secret123"})
    assert login.status_code == 200
    body = login.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["name"] == "Alice"
    assert client.cookies.get("token") == body["access_token"]

    me = client.get("/auth/me")
    assert me.status_code == 200
    assert me.json()["avatar"] == "a.png"


def test_duplicate_email_conflicts(client, make_user):
    make_user("Alice", "a@x.com")

    response = client.post(
        "/auth/register", json={"name": "Other", "email": "a@x.com", "password": "Secret123"}
    )

    assert response.status_code == 409


def test_wrong_password_is_unauthenticated(client, make_user):
    make_user("Alice", "a@x.com")

    response = client.post("/auth/login", json={"email": "a@x.com", "password": "Wrong1234"})

    assert response.status_code == 401


def test_weak_password_is_rejected(client):
    response = client.post(
        "/auth/register", json={"name": "Alice", "email": "a@x.com", "password": "short"}
    )

    assert response.status_code == 400


def test_profile_update(client, make_user):
    alice = make_user("Alice", "a@x.com")

    updated = client.put(
        "/auth/me", json={"name": "Alicia", "password": "Newpass123"}, headers=alice["headers"]
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Alicia"

    old = client.post("/auth/login", json={"email": "a@x.com", "password": "Secret123"})
    new = client.post("/auth/login", json={"email": "a@x.com", "password": "Newpass123"})
    assert old.status_code == 401
    assert new.status_code == 200


def test_logout_clears_cookie(client, make_user):
    make_user("Alice", "a@x.com")
    client.post("/auth/login", json={"email": "a@x.com", "password": "Secret123"})

    client.post("/auth/logout")

    assert client.get("/auth/me").status_code == 401
