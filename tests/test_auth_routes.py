import uuid


def _creds():
    name = f"auth_{uuid.uuid4().hex[:8]}"
    return {"email": f"{name}@Example.com", "username": name, "password": "password123"}


def test_signup_then_login_by_email_or_username(client):
    creds = _creds()
    r = client.post("/auth/signup", data=creds)
    assert r.status_code == 200
    assert r.json()["user_id"] > 0

    by_name = client.post("/auth/login", data={"email_or_username": creds["username"], "password": "password123"})
    by_email = client.post("/auth/login", data={"email_or_username": creds["email"].upper(), "password": "password123"})
    assert by_name.status_code == 200
    assert by_email.status_code == 200
    assert by_name.json()["role"] == "user"


def test_duplicate_signup_rejected(client):
    creds = _creds()
    assert client.post("/auth/signup", data=creds).status_code == 200

    again = client.post("/auth/signup", data=creds)
    assert again.status_code == 400
    assert again.json()["detail"] == "Email already registered"

    same_name = dict(creds, email=f"other_{creds['email']}")
    assert client.post("/auth/signup", data=same_name).json()["detail"] == "Username already taken"


def test_short_password_rejected(client):
    r = client.post("/auth/signup", data=dict(_creds(), password="123"))
    assert r.status_code == 400


def test_auth_api_returns_json_on_bad_credentials(client):
    resp = client.post("/auth/login", data={"email_or_username": "nouser", "password": "bad"})
    assert resp.status_code == 401
    assert "application/json" in resp.headers.get("content-type", "").lower()


def test_login_cookie_authenticates_following_requests(client):
    creds = _creds()
    client.post("/auth/signup", data=creds)
    client.post("/auth/login", data={"email_or_username": creds["username"], "password": "password123"})

    me = client.get("/users/me")
    assert me.status_code == 200
    assert me.json()["username"] == creds["username"]


def test_protected_routes_need_a_token(client):
    assert client.get("/users/me").status_code == 401
    assert client.get("/users/me", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401


def test_admin_routes_need_admin(client, make_user, admin):
    user = make_user()
    assert client.get("/admin/users", headers=user.headers).status_code == 403
    assert client.get("/admin/users", headers=admin.headers).status_code == 200


def test_token_survives_rename_and_is_not_inherited(client, make_user):
    alice = make_user()
    old_name = alice.username
    new_name = f"{old_name}_renamed"
    assert client.post("/users/me", data={"username": new_name}, headers=alice.headers).status_code == 200

    # Still the same account after the rename
    me = client.get("/users/me", headers=alice.headers)
    assert me.status_code == 200
    assert (me.json()["id"], me.json()["username"]) == (alice.id, new_name)

    # Someone else takes the freed name; neither token resolves to the other account
    r = client.post("/auth/signup", data={
        "email": f"{old_name}_2@example.com", "username": old_name, "password": "password123",
    })
    newcomer_id = r.json()["user_id"]
    login = client.post("/auth/login", data={"email_or_username": old_name, "password": "password123"})
    client.cookies.clear()
    newcomer_headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    assert client.get("/users/me", headers=alice.headers).json()["id"] == alice.id
    assert client.get("/users/me", headers=newcomer_headers).json()["id"] == newcomer_id


def test_token_with_non_numeric_subject_rejected(client):
    from fitlive.core.security import create_access_token

    token = create_access_token({"sub": "alice"})
    assert client.get("/users/me", headers={"Authorization": f"Bearer {token}"}).status_code == 401
