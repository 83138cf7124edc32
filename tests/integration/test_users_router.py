# tests/integration/test_users_router.py

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.models import User, UserRole
from tests.utils.user import DEFAULT_PASSWORD, create_random_user, user_authentication_headers


def admin_headers(db: Session, client: TestClient) -> dict[str, str]:
    admin = create_random_user(db, role=UserRole.ADMIN)
    return user_authentication_headers(client=client, email=admin.email)


def test_admin_lists_users(client: TestClient, db: Session):
    """
    The listing is paginated and never exposes password hashes or refresh
    tokens.
    """
    # --- Arrange ---
    headers = admin_headers(db, client)
    create_random_user(db)
    create_random_user(db)

    # --- Act ---
    response = client.get("/users/", params={"limit": 2}, headers=headers)

    # --- Assert ---
    assert response.status_code == 200
    body = response.json()
    assert body["meta"]["total"] == 3
    assert body["meta"]["has_next_page"] is True
    assert len(body["data"]) == 2
    for user in body["data"]:
        assert "hashed_password" not in user
        assert "refresh_token" not in user


def test_admin_reads_user(client: TestClient, db: Session):
    headers = admin_headers(db, client)
    user = create_random_user(db)

    response = client.get(f"/users/{user.id}", headers=headers)

    assert response.status_code == 200
    assert response.json()["email"] == user.email
    assert client.get("/users/999", headers=headers).status_code == 404


def test_admin_promotes_and_deactivates_user(client: TestClient, db: Session):
    headers = admin_headers(db, client)
    user = create_random_user(db)

    promoted = client.patch(f"/users/{user.id}", json={"role": "admin", "first_name": "Renamed"}, headers=headers)
    deactivated = client.patch(f"/users/{user.id}", json={"is_active": False}, headers=headers)
    login = client.post("/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD})

    assert promoted.json()["role"] == "admin"
    assert promoted.json()["first_name"] == "Renamed"
    assert deactivated.json()["is_active"] is False
    assert login.status_code == 401


def test_deactivated_user_token_stops_working(client: TestClient, db: Session):
    headers = admin_headers(db, client)
    user = create_random_user(db)
    user_headers = user_authentication_headers(client=client, email=user.email)

    client.patch(f"/users/{user.id}", json={"is_active": False}, headers=headers)

    assert client.get("/auth/me", headers=user_headers).status_code == 401


def test_update_user_rejects_null_names(client: TestClient, db: Session):
    headers = admin_headers(db, client)
    user = create_random_user(db)

    response = client.patch(f"/users/{user.id}", json={"first_name": None}, headers=headers)

    assert response.status_code == 400


def test_admin_deletes_user(client: TestClient, db: Session):
    headers = admin_headers(db, client)
    user = create_random_user(db)

    response = client.delete(f"/users/{user.id}", headers=headers)

    assert response.status_code == 204
    db.expire_all()
    assert db.get(User, user.id) is None


def test_users_endpoints_require_admin(client: TestClient, db: Session):
    user = create_random_user(db)
    headers = user_authentication_headers(client=client, email=user.email)

    assert client.get("/users/", headers=headers).status_code == 403
    assert client.get("/users/").status_code == 401


def test_users_cannot_be_sorted_by_credentials(client: TestClient, db: Session):
    """Sorting by the password hash or refresh token falls back to the default order."""
    headers = admin_headers(db, client)
    create_random_user(db)

    by_hash = client.get("/users/", params={"sort_by": "hashed_password", "sort_order": "asc"}, headers=headers)
    by_email = client.get("/users/", params={"sort_by": "email", "sort_order": "asc"}, headers=headers)
    default = client.get("/users/", params={"sort_order": "asc"}, headers=headers)

    assert by_hash.status_code == 200
    assert by_email.status_code == 200
    assert [u["id"] for u in by_hash.json()["data"]] == [u["id"] for u in default.json()["data"]]
