# tests/integration/test_categories_router.py

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from tests.utils.product import create_random_category, create_random_product
from tests.utils.user import create_user_and_get_headers


def test_admin_creates_category(client: TestClient, db: Session):
    headers = create_user_and_get_headers(db, client, is_admin=True)

    response = client.post(
        "/categories/", json={"name": "Rings", "slug": "Rings", "description": "All rings"}, headers=headers
    )

    assert response.status_code == 201
    assert response.json()["slug"] == "rings"
    assert response.json()["is_active"] is True


def test_category_name_and_slug_are_unique(client: TestClient, db: Session):
    headers = create_user_and_get_headers(db, client, is_admin=True)
    existing = create_random_category(db)

    same_name = client.post("/categories/", json={"name": existing.name, "slug": "fresh-slug"}, headers=headers)
    same_slug = client.post("/categories/", json={"name": "Fresh Name", "slug": existing.slug}, headers=headers)

    assert same_name.status_code == 409
    assert same_slug.status_code == 409


def test_invalid_category_is_rejected(client: TestClient, db: Session):
    headers = create_user_and_get_headers(db, client, is_admin=True)

    response = client.post("/categories/", json={"name": " ", "slug": "not a slug"}, headers=headers)

    assert response.status_code == 400
    assert {d["field"] for d in response.json()["details"]} == {"name", "slug"}


def test_public_category_reads(client: TestClient, db: Session):
    active = create_random_category(db)
    create_random_category(db, is_active=False)

    listing = client.get("/categories/").json()
    only_active = client.get("/categories/active").json()

    assert listing["meta"]["total"] == 2
    assert [c["id"] for c in only_active] == [active.id]
    assert client.get(f"/categories/{active.id}").json()["name"] == active.name
    assert client.get(f"/categories/slug/{active.slug}").json()["id"] == active.id
    assert client.get("/categories/999").status_code == 404


def test_admin_updates_category(client: TestClient, db: Session):
    headers = create_user_and_get_headers(db, client, is_admin=True)
    category = create_random_category(db)

    response = client.patch(f"/categories/{category.id}", json={"is_active": False}, headers=headers)

    assert response.status_code == 200
    assert response.json()["is_active"] is False


def test_category_with_products_cannot_be_deleted(client: TestClient, db: Session):
    headers = create_user_and_get_headers(db, client, is_admin=True)
    used = create_random_category(db)
    create_random_product(db, category=used)
    empty = create_random_category(db)

    assert client.delete(f"/categories/{used.id}", headers=headers).status_code == 409
    assert client.delete(f"/categories/{empty.id}", headers=headers).status_code == 204
    assert client.get(f"/categories/{empty.id}").status_code == 404


def test_category_writes_require_admin(client: TestClient, db: Session):
    headers = create_user_and_get_headers(db, client)

    response = client.post("/categories/", json={"name": "Rings", "slug": "rings"}, headers=headers)

    assert response.status_code == 403
