from src.models import User

PHONE = "9876543210"


def _send(client, phone=PHONE):
    return client.post("/auth/send-otp", json={"phone": phone})


def _verify(client, sms, phone=PHONE):
    return client.post("/auth/verify-otp", json={"phone": phone, "otp": sms.last_code(phone)})


def test_send_otp_texts_a_code(client, sms):
    response = _send(client, "+91 98765 43210")

    assert response.status_code == 200
    body = response.json()
    assert body["phone"] == PHONE
    assert body["expires_in_seconds"] == 300
    assert len(sms.last_code(PHONE)) == 6


def test_invalid_phone_is_rejected(client, sms):
    response = _send(client, "12345")

    assert response.status_code == 422
    assert sms.sent == []


def test_fourth_otp_request_is_rate_limited(client):
    for _ in range(3):
        assert _send(client).status_code == 200

    response = _send(client)

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "600"
    assert "10 minute" in response.json()["detail"]


def test_rate_limit_window_expires(client, clock):
    for _ in range(3):
        _send(client)

    clock.advance(minutes=10)

    assert _send(client).status_code == 200


def test_failed_sms_does_not_leave_a_usable_code(app, client, sms):
    sms.succeed = False

    response = _send(client)

    assert response.status_code == 503
    assert app.state.otp_service.has_valid_otp(PHONE) is False


def test_verify_otp_returns_verification_token(client, sms):
    _send(client)

    response = _verify(client, sms)

    assert response.status_code == 200
    assert response.json()["verification_token"]


def test_wrong_otp_is_rejected(client):
    _send(client)

    response = client.post("/auth/verify-otp", json={"phone": PHONE, "otp": "000000"})

    assert response.status_code == 400
    assert "attempt" in response.json()["detail"]


def test_expired_otp_is_rejected(client, sms, clock):
    _send(client)
    clock.advance(minutes=6)

    response = _verify(client, sms)

    assert response.status_code == 400
    assert "expired" in response.json()["detail"]


def test_resend_replaces_code(app, client, sms):
    _send(client)
    first = sms.last_code(PHONE)
    app.state.otp_service.generate = lambda: "654321" if first != "654321" else "123456"

    response = client.post("/auth/resend-otp", json={"phone": PHONE})

    assert response.status_code == 200
    assert sms.last_code(PHONE) != first
    assert client.post("/auth/verify-otp", json={"phone": PHONE, "otp": first}).status_code == 400


def test_full_login_creates_then_finds_user(client, sms, db_session):
    _send(client)
    token = _verify(client, sms).json()["verification_token"]

    first = client.post("/user/login-complete", headers={"Authorization": f"Bearer {token}"})

    assert first.status_code == 200
    body = first.json()
    assert body["is_new_user"] is True
    assert body["is_profile_complete"] is False
    assert body["user"]["phone"] == PHONE
    assert body["access_token"]

    second = client.post("/user/login-complete", headers={"Authorization": f"Bearer {token}"})
    assert second.json()["is_new_user"] is False
    assert db_session.query(User).filter(User.phone == PHONE).count() == 1

    session_headers = {"Authorization": f"Bearer {body['access_token']}"}
    assert client.get("/user/profile", headers=session_headers).status_code == 200


def test_login_complete_requires_verification_token(client, auth_headers):
    assert client.post("/user/login-complete").status_code == 401
    assert client.post("/user/login-complete", headers=auth_headers).status_code == 401
    assert client.post(
        "/user/login-complete", headers={"Authorization": "Bearer nonsense"}
    ).status_code == 401
