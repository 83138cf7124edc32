# tests/integration/test_auth_router.py

import re
from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core import security
from app.core.clock import utcnow
from app.models import PasswordReset, TokenBlacklist, User, UserRole
from tests.utils.user import DEFAULT_PASSWORD, create_random_user, user_authentication_headers


def register_payload(**overrides):
    payload = {
        "email": "Ana.Lee@Example.com",
        "password": "s3cret-pass",
        "first_name": "Ana",
        "last_name": "Lee",
    }
    payload.update(overrides)
    return payload


def test_register_returns_tokens_and_sends_verification(client: TestClient, db: Session, email_outbox):
    """
    Registration signs the user in straight away and mails a verification
    link; the email is stored lowercased.
    """
    # --- Act ---
    response = client.post("/auth/register", json=register_payload())

    # --- Assert ---
    assert response.status_code == 201
    data = response.json()
    assert data["user"]["email"] == "ana.lee@example.com"
    assert data["user"]["role"] == "user"
    assert data["user"]["email_verified"] is False
    assert data["access_token"] and data["refresh_token"]
    assert "hashed_password" not in data["user"]

    assert len(email_outbox.sent) == 1
    assert email_outbox.sent[0]["to"] == "ana.lee@example.com"
    assert "verify-email?token=" in email_outbox.sent[0]["html"]


def test_register_survives_email_failure(client: TestClient, db: Session, email_outbox):
    email_outbox.fail = True

    response = client.post("/auth/register", json=register_payload())

    assert response.status_code == 201
    assert db.query(User).count() == 1


def test_register_rejects_duplicates_and_bad_input(client: TestClient, db: Session):
    assert client.post("/auth/register", json=register_payload()).status_code == 201

    duplicate = client.post("/auth/register", json=register_payload(email="ana.lee@example.com"))
    invalid = client.post("/auth/register", json=register_payload(email="nope", password="short"))

    assert duplicate.status_code == 409
    assert invalid.status_code == 400
    assert {d["field"] for d in invalid.json()["details"]} == {"email", "password"}


def test_login_and_me(client: TestClient, db: Session):
    user = create_random_user(db)

    response = client.post("/auth/login", json={"email": user.email.upper(), "password": DEFAULT_PASSWORD})
    me = client.get("/auth/me", headers={"Authorization": f"Bearer {response.json()['access_token']}"})

    assert response.status_code == 200
    assert me.status_code == 200
    assert me.json()["id"] == user.id
    db.expire_all()
    assert db.get(User, user.id).last_login_at is not None


def test_login_with_wrong_password_or_inactive_account(client: TestClient, db: Session):
    user = create_random_user(db)
    inactive = create_random_user(db, is_active=False)

    wrong = client.post("/auth/login", json={"email": user.email, "password": "not-the-password"})
    unknown = client.post("/auth/login", json={"email": "ghost@example.com", "password": DEFAULT_PASSWORD})
    disabled = client.post("/auth/login", json={"email": inactive.email, "password": DEFAULT_PASSWORD})

    assert wrong.status_code == 401
    assert wrong.headers["WWW-Authenticate"] == "Bearer"
    assert unknown.status_code == 401
    assert disabled.status_code == 401
    assert disabled.json()["detail"] == "User account is inactive"


def test_oauth2_token_form(client: TestClient, db: Session):
    user = create_random_user(db)

    response = client.post("/auth/token", data={"username": user.email, "password": DEFAULT_PASSWORD})

    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"


def test_refresh_rotates_tokens(client: TestClient, db: Session):
    # --- Arrange ---
    user = create_random_user(db)
    tokens = client.post("/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD}).json()

    # --- Act ---
    rotated = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    replayed = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})

    # --- Assert ---
    assert rotated.status_code == 200
    assert rotated.json()["refresh_token"] != tokens["refresh_token"]
    # the old refresh token was replaced and is no longer accepted
    assert replayed.status_code == 401


def test_refresh_rejects_access_token(client: TestClient, db: Session):
    user = create_random_user(db)
    tokens = client.post("/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD}).json()

    response = client.post("/auth/refresh", json={"refresh_token": tokens["access_token"]})

    assert response.status_code == 401


def test_logout_revokes_access_token(client: TestClient, db: Session):
    # --- Arrange ---
    user = create_random_user(db)
    headers = user_authentication_headers(client=client, email=user.email)

    # --- Act ---
    response = client.post("/auth/logout", headers=headers)

    # --- Assert ---
    assert response.status_code == 200
    assert response.json() == {"message": "Successfully logged out", "success": True}
    assert client.get("/auth/me", headers=headers).status_code == 401
    assert db.query(TokenBlacklist).filter_by(user_id=user.id).count() == 1
    db.expire_all()
    assert db.get(User, user.id).refresh_token is None


def test_protected_route_rejects_bad_tokens(client: TestClient, db: Session):
    user = create_random_user(db)
    refresh = security.create_token(security.REFRESH, str(user.id))
    unknown_user = security.create_token(security.ACCESS, "999")

    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401
    assert client.get("/auth/me", headers={"Authorization": f"Bearer {refresh}"}).status_code == 401
    assert client.get("/auth/me", headers={"Authorization": f"Bearer {unknown_user}"}).status_code == 401


# --- Email verification ---

def test_verify_email_marks_user_verified(client: TestClient, db: Session):
    user = create_random_user(db)
    token = security.create_token(security.VERIFICATION, str(user.id))

    response = client.get("/auth/verify-email", params={"token": token})
    again = client.get("/auth/verify-email", params={"token": token})

    assert response.status_code == 200
    assert response.json()["user"]["email_verified"] is True
    assert again.status_code == 400


def test_verify_email_rejects_other_tokens(client: TestClient, db: Session):
    user = create_random_user(db)
    access = security.create_token(security.ACCESS, str(user.id))

    response = client.get("/auth/verify-email", params={"token": access})

    assert response.status_code == 400


def test_send_verification_email(client: TestClient, db: Session, email_outbox):
    user = create_random_user(db)
    verified = create_random_user(db, email_verified=True)

    sent = client.post("/auth/send-verification-email", json={"email": user.email})
    already = client.post("/auth/send-verification-email", json={"email": verified.email})
    unknown = client.post("/auth/send-verification-email", json={"email": "ghost@example.com"})

    assert sent.json() == {"message": "Verification email sent successfully.", "success": True}
    assert already.status_code == 400
    assert unknown.status_code == 404
    assert [m["to"] for m in email_outbox.sent] == [user.email]


# --- Password reset ---

def request_reset_otp(client: TestClient, email_outbox, email: str) -> str:
    response = client.post("/auth/request-password-reset", json={"email": email})
    assert response.json()["success"] is True
    return re.search(r"<strong>(\d{6})</strong>", email_outbox.sent[-1]["html"]).group(1)


def test_full_password_reset_flow(client: TestClient, db: Session, email_outbox):
    """
    OTP from the email -> reset token -> new password. The old password
    stops working and the token cannot be used twice.
    """
    # --- Arrange ---
    user = create_random_user(db)
    otp = request_reset_otp(client, email_outbox, user.email)

    # --- Act ---
    verified = client.post("/auth/verify-otp", json={"email": user.email, "otp": otp})
    reset_token = verified.json()["reset_token"]
    valid = client.post("/auth/validate-reset-token", json={"reset_token": reset_token})
    reset = client.post(
        "/auth/reset-password",
        json={"reset_token": reset_token, "password": "brand-new-pass", "confirm_password": "brand-new-pass"},
    )
    reused = client.post(
        "/auth/reset-password",
        json={"reset_token": reset_token, "password": "another-pass", "confirm_password": "another-pass"},
    )

    # --- Assert ---
    assert verified.json()["success"] is True
    assert valid.json()["success"] is True
    assert reset.json()["success"] is True
    assert reused.json() == {"message": "This reset token has already been used.", "success": False}
    assert client.post("/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD}).status_code == 401
    assert client.post("/auth/login", json={"email": user.email, "password": "brand-new-pass"}).status_code == 200
    assert email_outbox.sent[-1]["subject"] == "Your password was changed"

    reset_row = db.query(PasswordReset).filter_by(token=reset_token).one()
    assert reset_row.ip_address is not None


def test_password_reset_for_unknown_email_still_reports_success(client: TestClient, db: Session, email_outbox):
    response = client.post("/auth/request-password-reset", json={"email": "ghost@example.com"})

    assert response.json()["success"] is True
    assert email_outbox.sent == []
    assert db.query(PasswordReset).count() == 0


def test_wrong_otp_is_reported_not_raised(client: TestClient, db: Session, email_outbox):
    user = create_random_user(db)
    otp = request_reset_otp(client, email_outbox, user.email)
    wrong = "000000" if otp != "000000" else "111111"

    response = client.post("/auth/verify-otp", json={"email": user.email, "otp": wrong})

    assert response.status_code == 200
    assert response.json()["success"] is False
    assert "reset_token" not in response.json()


def test_reset_password_requires_matching_confirmation(client: TestClient, db: Session):
    response = client.post(
        "/auth/reset-password",
        json={"reset_token": "whatever", "password": "brand-new-pass", "confirm_password": "different-pass"},
    )

    assert response.json() == {"message": "Passwords do not match", "success": False}


def test_expired_reset_token_is_invalid(client: TestClient, db: Session):
    user = create_random_user(db)
    db.add(
        PasswordReset(
            user_id=user.id, email=user.email, token="expired-token", expires_at=utcnow() - timedelta(minutes=1)
        )
    )
    db.commit()

    response = client.post("/auth/validate-reset-token", json={"reset_token": "expired-token"})

    assert response.json() == {"message": "Reset token has expired.", "success": False}


# --- Blacklist admin ---

def test_blacklist_cleanup_and_stats(client: TestClient, db: Session):
    # --- Arrange ---
    admin = create_random_user(db, role=UserRole.ADMIN)
    headers = user_authentication_headers(client=client, email=admin.email)
    now = utcnow()
    db.add_all(
        [
            TokenBlacklist(token="old-1", user_id=admin.id, expires_at=now - timedelta(hours=1), blacklisted_at=now),
            TokenBlacklist(token="old-2", user_id=admin.id, expires_at=now - timedelta(hours=2), blacklisted_at=now),
            TokenBlacklist(token="live", user_id=admin.id, expires_at=now + timedelta(hours=1), blacklisted_at=now),
        ]
    )
    db.commit()

    # --- Act ---
    stats = client.get("/auth/admin/blacklist-stats", headers=headers)
    cleanup = client.post("/auth/admin/cleanup-tokens", headers=headers)

    # --- Assert ---
    assert stats.json() == {"total_tokens": 3, "expired_tokens": 2, "active_tokens": 1}
    assert cleanup.json() == {"deleted": 2}
    assert db.query(TokenBlacklist).count() == 1


def test_blacklist_admin_requires_admin(client: TestClient, db: Session):
    user = create_random_user(db)
    headers = user_authentication_headers(client=client, email=user.email)

    assert client.get("/auth/admin/blacklist-stats", headers=headers).status_code == 403
