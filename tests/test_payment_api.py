import hashlib
import hmac

from src.payments.gateway import RazorpayGateway

from tests.conftest import RAZORPAY_TEST_KEY_ID, RAZORPAY_TEST_SECRET


def _sign(order_id, payment_id):
    return hmac.new(
        RAZORPAY_TEST_SECRET.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256
    ).hexdigest()


def test_config_exposes_only_public_key(client):
    response = client.get("/payment/config")

    assert response.status_code == 200
    body = response.json()
    assert body["key_id"] == RAZORPAY_TEST_KEY_ID
    assert body["currency"] == "INR"
    assert RAZORPAY_TEST_SECRET not in response.text


def test_config_when_not_configured(app, client):
    gateway = RazorpayGateway()
    gateway.key_id = None
    gateway.key_secret = None
    app.state.payment_gateway = gateway

    assert client.get("/payment/config").status_code == 503


def test_create_order(client, auth_headers, payment_transport):
    response = client.post("/payment/create-order", headers=auth_headers, json={
        "amount": 2715,
        "booking_details": {"bus_name": "Sancharie Express", "seats": ["L1", "L2", "L3"], "passenger_count": 3},
    })

    assert response.status_code == 200
    body = response.json()
    assert body["order_id"] == "order_TEST1"
    assert body["amount"] == 271500
    assert float(body["amount_inr"]) == 2715.0
    notes = payment_transport.orders["order_TEST1"]["notes"]
    assert notes["booking_source"] == "sancharie_web"
    assert notes["seats"] == "L1, L2, L3"


def test_create_order_validation(client, auth_headers):
    assert client.post("/payment/create-order", headers=auth_headers, json={"amount": -5}).status_code == 422
    too_much = client.post("/payment/create-order", headers=auth_headers, json={"amount": 6000000})
    assert too_much.status_code == 400
    assert client.post("/payment/create-order", json={"amount": 100}).status_code == 401


def test_verify_payment(client, auth_headers):
    response = client.post("/payment/verify-payment", headers=auth_headers, json={
        "razorpay_order_id": "order_ABC",
        "razorpay_payment_id": "pay_XYZ",
        "razorpay_signature": _sign("order_ABC", "pay_XYZ"),
    })

    assert response.status_code == 200
    body = response.json()
    assert body["verified"] is True
    assert body["outcome"]["status"] == "captured"


def test_verify_payment_with_bad_signature(client, auth_headers):
    response = client.post("/payment/verify-payment", headers=auth_headers, json={
        "razorpay_order_id": "order_ABC",
        "razorpay_payment_id": "pay_XYZ",
        "razorpay_signature": _sign("order_ABC", "pay_OTHER"),
    })

    assert response.status_code == 400


def test_verify_payment_rejects_malformed_ids(client, auth_headers):
    response = client.post("/payment/verify-payment", headers=auth_headers, json={
        "razorpay_order_id": "ABC",
        "razorpay_payment_id": "pay_XYZ",
        "razorpay_signature": "sig",
    })

    assert response.status_code == 422


def test_dismissed_checkout_is_reported_as_cancelled(client, auth_headers):
    response = client.post("/payment/verify-payment", headers=auth_headers, json={
        "razorpay_order_id": "order_ABC",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["outcome"]["kind"] == "cancelled"


def test_order_lookup(client, auth_headers):
    order_id = client.post("/payment/create-order", headers=auth_headers, json={"amount": 500}).json()["order_id"]

    response = client.get(f"/payment/order/{order_id}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["amount"] == 50000
    assert client.get("/payment/order/bogus", headers=auth_headers).status_code == 400
    assert client.get("/payment/order/order_MISSING", headers=auth_headers).status_code == 502
