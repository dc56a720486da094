import pytest

from eventboard.auth_service.hasher import HashingFailure
from eventboard.auth_service.utils import verify_token
from eventboard.database.store import StoreError


def test_signup_success(client, store):
    response = client.post("/signup", json={"email": "a@x.com", "password": "pw"})

    assert response.status_code == 201
    assert response.get_json()["message"] == "User created successfully"

    user = store.get_user_by_email("a@x.com")
    assert user is not None
    assert user.password_hash != "pw"


def test_signup_normalizes_email(client, store):
    response = client.post("/signup", json={"email": "  A@X.com ", "password": "pw"})

    assert response.status_code == 201
    assert store.get_user_by_email("a@x.com") is not None


@pytest.mark.parametrize("payload", [
    {},
    {"email": "a@x.com"},
    {"password": "pw"},
    {"email": "", "password": "pw"},
    {"email": "a@x.com", "password": ""},
    {"email": 5, "password": "pw"},
])
def test_signup_missing_fields(client, payload):
    response = client.post("/signup", json=payload)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Could not parse request"


def test_signup_non_json_body(client):
    response = client.post("/signup", data="not json", content_type="text/plain")
    assert response.status_code == 400


def test_signup_duplicate_email(client):
    client.post("/signup", json={"email": "a@x.com", "password": "pw"})
    response = client.post("/signup", json={"email": "a@x.com", "password": "other"})

    assert response.status_code == 500
    assert response.get_json()["message"] == "Could not save user, try again later"


def test_signup_hashing_failure(client, mocker):
    mocker.patch("eventboard.auth_service.routes.hash_password", side_effect=HashingFailure("boom"))

    response = client.post("/signup", json={"email": "a@x.com", "password": "pw"})
    assert response.status_code == 500


def test_login_success(client, make_user):
    user = make_user("login@example.com", "password123")

    response = client.post("/login", json={"email": "login@example.com", "password": "password123"})

    assert response.status_code == 201
    data = response.get_json()
    assert data["message"] == "Login Successfully"
    assert data["token"]
    assert verify_token(data["token"]).user_id == user.id


def test_login_wrong_password(client, make_user):
    make_user("login@example.com", "password123")

    response = client.post("/login", json={"email": "login@example.com", "password": "wrong"})

    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid credentials"


def test_login_unknown_email_looks_like_wrong_password(client, make_user):
    make_user("login@example.com", "password123")

    unknown = client.post("/login", json={"email": "nobody@example.com", "password": "password123"})
    wrong = client.post("/login", json={"email": "login@example.com", "password": "nope"})

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.get_json() == wrong.get_json()


@pytest.mark.parametrize("payload", [{}, {"email": "a@x.com"}, {"password": "pw"}])
def test_login_missing_fields(client, payload):
    response = client.post("/login", json=payload)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Could not parse request"


def test_login_store_failure(client, store, mocker):
    mocker.patch.object(store, "get_user_by_email", side_effect=StoreError("down"))

    response = client.post("/login", json={"email": "a@x.com", "password": "pw"})
    assert response.status_code == 500


def test_signup_then_login(client):
    client.post("/signup", json={"email": "new@x.com", "password": "secret"})

    ok = client.post("/login", json={"email": "new@x.com", "password": "secret"})
    bad = client.post("/login", json={"email": "new@x.com", "password": "secret!"})

    assert ok.status_code == 201
    assert ok.get_json()["token"]
    assert bad.status_code == 401
