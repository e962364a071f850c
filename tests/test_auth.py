from jose import jwt
from config import settings
from conftest import signup, signin

def test_signup_returns_created(client):
    response = signup(client)
    assert response.status_code == 201
    assert response.json() == {"message": "User registered successfully!"}

def test_duplicate_email_is_case_insensitive(client):
    assert signup(client, email="A@x.com").status_code == 201
    response = signup(client, email="a@x.com")
    assert response.status_code == 409
    assert response.json()["message"] == "Email already exists"

def test_signup_validation(client):
    response = client.post("/api/auth/signup", json={"fullName": "Asha", "email": "asha@example.com", "password": "123"})
    assert response.status_code == 422
    response = client.post("/api/auth/signup", json={"fullName": "Asha", "email": "not-an-email", "password": "secret123"})
    assert response.status_code == 422

def test_signin_returns_token_and_user(client):
    signup(client, email="Ops@Example.com")
    response = signin(client, email="ops@example.COM")
    assert response.status_code == 200
    body = response.json()
    assert body["user"]["email"] == "ops@example.com"
    assert body["user"]["fullName"] == "Asha Rao"
    assert body["user"]["kycStatus"] == "not-submitted"

    claims = jwt.decode(body["token"], settings.secret_key, algorithms=[settings.algorithm])
    assert claims["id"] == body["user"]["id"]
    assert claims["exp"] - claims["iat"] == 3600

def test_unknown_email_and_wrong_password_are_distinct(client):
    signup(client)
    unknown = signin(client, email="nobody@example.com")
    assert unknown.status_code == 400
    assert unknown.json()["message"] == "User not found"

    wrong = signin(client, password="wrong-password")
    assert wrong.status_code == 400
    assert wrong.json()["message"] == "Invalid credentials"

def test_password_is_not_stored_in_clear(client, db):
    from models.user import User
    signup(client, password="secret123")
    user = db.query(User).filter(User.email == "operator@example.com").first()
    assert user.password_hash != "secret123"
    assert user.password_hash.startswith("$argon2")

def test_me_requires_valid_token(client, operator_headers):
    assert client.get("/api/auth/me", headers=operator_headers).json()["email"] == "operator@example.com"
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401
    assert client.get("/api/auth/me").status_code in (401, 403)

def test_token_without_account_id_is_rejected(client):
    token = jwt.encode({"sub": "someone"}, settings.secret_key, algorithm=settings.algorithm)
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
