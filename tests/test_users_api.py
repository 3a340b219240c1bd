"""End-to-end tests for the user account endpoints."""

from unittest.mock import patch

from dashboard.services.repositories import SqlStore
from dashboard.utils import ID_LENGTH
from tests.conftest import (
    NEW_PASSWORD,
    PASSWORD,
    bearer,
    login,
    reset_tokens_for,
    sign_up,
    signed_up_verified,
    verify_tokens_for,
)

ME = "/api/v1/users/me"


def _lock(db_session_maker, email: str) -> None:
    db = db_session_maker()
    try:
        store = SqlStore(db)
        store.set_user_locked(store.get_user_by_email(email).id, True)
    finally:
        db.close()


def test_sign_up(client):
    test_client, _ = client

    response = sign_up(test_client, "Alice@Example.com")

    assert response.status_code == 201
    assert len(response.headers["Token"]) == ID_LENGTH
    user = response.json()["user"]
    assert user["email"] == "alice@example.com"
    assert user["email_verified"] is False
    assert user["state"] == "active"
    assert user["is_admin"] is False
    assert user["password"] == ""


def test_sign_up_token_is_a_live_session(client):
    test_client, _ = client
    token = sign_up(test_client, "alice@example.com").headers["Token"]

    response = test_client.get(ME, headers=bearer(token))

    assert response.status_code == 200
    assert response.json()["email"] == "alice@example.com"


def test_sign_up_duplicate_email(client):
    test_client, _ = client
    sign_up(test_client, "alice@example.com")

    response = sign_up(test_client, "ALICE@example.com")

    assert response.status_code == 409
    assert response.json() == {"message": "email exists"}


def test_sign_up_weak_password(client):
    test_client, _ = client

    response = sign_up(test_client, "alice@example.com", password="short")

    assert response.status_code == 400
    assert response.json() == {"message": "invalid password"}


def test_sign_up_invalid_email(client):
    test_client, _ = client

    response = sign_up(test_client, "not-an-email")

    assert response.status_code == 400
    assert response.json() == {"message": "invalid email"}


def test_malformed_body(client):
    test_client, _ = client

    response = test_client.post("/api/v1/users/signup", json={"email": "alice@example.com"})

    assert response.status_code == 400
    assert response.json() == {"message": "invalid request"}


def test_sign_up_rate_limited(client):
    test_client, _ = client

    statuses = [sign_up(test_client, f"user{i}@example.com").status_code for i in range(6)]

    assert statuses[:5] == [201] * 5
    assert statuses[5] == 429


def test_login(client):
    test_client, _ = client
    sign_up(test_client, "alice@example.com")

    response = login(test_client, "alice@example.com")

    assert response.status_code == 200
    assert response.json()["email"] == "alice@example.com"
    assert response.json()["password"] == ""
    assert test_client.get(ME, headers=bearer(response.headers["Token"])).status_code == 200


def test_login_wrong_password(client):
    test_client, _ = client
    sign_up(test_client, "alice@example.com")

    response = login(test_client, "alice@example.com", password="Wr0ngPassword")

    assert response.status_code == 401
    assert "Token" not in response.headers


def test_login_unknown_user_looks_like_wrong_password(client):
    test_client, _ = client
    sign_up(test_client, "alice@example.com")

    unknown = login(test_client, "nobody@example.com")
    wrong = login(test_client, "alice@example.com", password="Wr0ngPassword")

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json()


def test_login_locked_account(client):
    test_client, db_session_maker = client
    sign_up(test_client, "alice@example.com")
    _lock(db_session_maker, "alice@example.com")

    response = login(test_client, "alice@example.com")

    assert response.status_code == 423
    assert response.json() == {"message": "account is locked"}


def test_logout(client):
    test_client, _ = client
    token = sign_up(test_client, "alice@example.com").headers["Token"]

    response = test_client.post("/api/v1/users/logout", headers=bearer(token))

    assert response.status_code == 200
    assert test_client.get(ME, headers=bearer(token)).status_code == 401


def test_verify_email_flow(client, mailer):
    test_client, db_session_maker = client
    token = sign_up(test_client, "alice@example.com").headers["Token"]

    response = test_client.post("/api/v1/users/verify-email", headers=bearer(token))
    assert response.status_code == 200

    [code] = verify_tokens_for(db_session_maker, "alice@example.com")
    assert mailer.sent[-1][0] == "alice@example.com"

    response = test_client.post("/api/v1/users/verify-email-complete", json={"token": code})
    assert response.status_code == 200

    me = test_client.get(ME, headers=bearer(token)).json()
    assert me["email_verified"] is True
    assert verify_tokens_for(db_session_maker, "alice@example.com") == []


def test_verify_email_when_already_verified(client):
    test_client, db_session_maker = client
    token = signed_up_verified(test_client, db_session_maker, "alice@example.com")

    response = test_client.post("/api/v1/users/verify-email", headers=bearer(token))

    assert response.status_code == 400


def test_verify_email_mail_failure(client, mailer):
    test_client, db_session_maker = client
    token = sign_up(test_client, "alice@example.com").headers["Token"]
    mailer.fail = True

    response = test_client.post("/api/v1/users/verify-email", headers=bearer(token))

    assert response.status_code == 500
    assert response.json() == {"message": "internal server error"}
    assert len(verify_tokens_for(db_session_maker, "alice@example.com")) == 1


def test_verify_email_complete_bad_token(client):
    test_client, _ = client

    response = test_client.post("/api/v1/users/verify-email-complete", json={"token": "000000"})

    assert response.status_code == 400
    assert response.json() == {"message": "invalid token"}


def test_forgot_password_unknown_email(client, mailer):
    test_client, db_session_maker = client

    response = test_client.post(
        "/api/v1/users/forgot-password", json={"email": "nobody@example.com"}
    )

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert reset_tokens_for(db_session_maker, "nobody@example.com") == []
    assert mailer.sent == []


def test_reset_password_flow(client, mailer):
    test_client, db_session_maker = client
    old_token = sign_up(test_client, "alice@example.com").headers["Token"]

    response = test_client.post(
        "/api/v1/users/forgot-password", json={"email": "alice@example.com"}
    )
    assert response.status_code == 200
    [reset_token] = reset_tokens_for(db_session_maker, "alice@example.com")
    assert reset_token in mailer.sent[-1][2]

    response = test_client.post(
        "/api/v1/users/reset-password-complete",
        json={"token": reset_token, "password": NEW_PASSWORD},
    )
    assert response.status_code == 200

    assert test_client.get(ME, headers=bearer(old_token)).status_code == 401
    assert login(test_client, "alice@example.com").status_code == 401
    assert login(test_client, "alice@example.com", password=NEW_PASSWORD).status_code == 200

    response = test_client.post(
        "/api/v1/users/reset-password-complete",
        json={"token": reset_token, "password": NEW_PASSWORD},
    )
    assert response.status_code == 400


def test_get_me_requires_session(client):
    test_client, _ = client

    assert test_client.get(ME).status_code == 401


def test_update_profile(client):
    test_client, db_session_maker = client
    token = signed_up_verified(test_client, db_session_maker, "alice@example.com")

    response = test_client.put(
        ME, json={"first_name": "Alice", "last_name": "Liddell"}, headers=bearer(token)
    )

    assert response.status_code == 200
    assert response.json()["first_name"] == "Alice"
    assert response.json()["last_name"] == "Liddell"
    assert response.json()["email_verified"] is True


def test_update_profile_email_resets_verification(client, mailer):
    test_client, db_session_maker = client
    token = signed_up_verified(test_client, db_session_maker, "alice@example.com")

    response = test_client.put(ME, json={"email": "ally@example.com"}, headers=bearer(token))

    assert response.status_code == 200
    assert response.json()["email"] == "ally@example.com"
    assert response.json()["email_verified"] is False
    assert len(verify_tokens_for(db_session_maker, "ally@example.com")) == 1
    assert mailer.sent[-1][0] == "ally@example.com"


def test_change_password_wrong_current(client):
    test_client, db_session_maker = client
    token = signed_up_verified(test_client, db_session_maker, "alice@example.com")

    response = test_client.put(
        "/api/v1/users/me/password",
        json={"current_password": "Wr0ngPassword", "new_password": NEW_PASSWORD},
        headers=bearer(token),
    )

    assert response.status_code == 403
    assert response.json() == {"message": "bad old password"}
    assert test_client.get(ME, headers=bearer(token)).status_code == 200


def test_change_password(client):
    test_client, db_session_maker = client
    token = signed_up_verified(test_client, db_session_maker, "alice@example.com")
    other_token = login(test_client, "alice@example.com").headers["Token"]

    response = test_client.put(
        "/api/v1/users/me/password",
        json={"current_password": PASSWORD, "new_password": NEW_PASSWORD},
        headers=bearer(token),
    )

    assert response.status_code == 200
    new_token = response.headers["Token"]
    assert new_token not in (token, other_token)
    assert test_client.get(ME, headers=bearer(token)).status_code == 401
    assert test_client.get(ME, headers=bearer(other_token)).status_code == 401
    assert test_client.get(ME, headers=bearer(new_token)).status_code == 200
    assert login(test_client, "alice@example.com", password=NEW_PASSWORD).status_code == 200


def test_verify_email_code_collision_is_regenerated(client):
    test_client, db_session_maker = client
    alice = sign_up(test_client, "alice@example.com").headers["Token"]
    bob = sign_up(test_client, "bob@example.com").headers["Token"]

    with patch(
        "dashboard.services.token_service.new_random_number",
        side_effect=["123456", "123456", "654321"],
    ):
        first = test_client.post("/api/v1/users/verify-email", headers=bearer(alice))
        second = test_client.post("/api/v1/users/verify-email", headers=bearer(bob))

    assert first.status_code == 200
    assert second.status_code == 200
    assert verify_tokens_for(db_session_maker, "alice@example.com") == ["123456"]
    assert verify_tokens_for(db_session_maker, "bob@example.com") == ["654321"]


def test_verify_email_complete_rate_limited(client):
    test_client, _ = client

    statuses = [
        test_client.post(
            "/api/v1/users/verify-email-complete", json={"token": f"{i:06d}"}
        ).status_code
        for i in range(11)
    ]

    assert statuses[:10] == [400] * 10
    assert statuses[10] == 429
