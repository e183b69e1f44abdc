import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import httpx
import pytest

from src.auth.expiring_store import ExpiringStore
from src.auth.otp_service import OtpService
from src.auth.rate_limiter import RateLimiter
from src.auth.sms_service import SmsService
from src.auth.utils import (
    InvalidToken, SESSION_TOKEN, VERIFICATION_TOKEN, create_access_token,
    create_session_token, create_verification_token, normalize_phone, verify_token
)

from tests.factories import FakeClock

PHONE = "9876543210"


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def otp(clock):
    return OtpService(store=ExpiringStore(clock=clock), length=6, expiry_minutes=5, max_attempts=3)


# Expiring store

def test_store_entries_expire(clock):
    store = ExpiringStore(clock=clock)
    store.set("a", 1, timedelta(minutes=5))

    clock.advance(minutes=4, seconds=59)
    assert store.get("a") == 1

    clock.advance(seconds=1)
    assert store.get("a") is None
    assert "a" not in store


def test_store_purge_and_len(clock):
    store = ExpiringStore(clock=clock)
    store.set("short", 1, timedelta(minutes=1))
    store.set("long", 2, timedelta(minutes=10))

    clock.advance(minutes=2)

    assert store.purge_expired() == 1
    assert len(store) == 1
    assert store.delete("long") is True
    assert store.delete("long") is False


def test_empty_store_is_kept_when_injected(clock):
    store = ExpiringStore(clock=clock)

    otp = OtpService(store=store)
    limiter = RateLimiter(store=store)

    assert otp.store is store
    assert limiter.store is store

    otp.issue(PHONE)
    limiter.hit(f"1.2.3.4-{PHONE}")
    assert len(store) == 2


class _RacingStore(ExpiringStore):
    """Holds each read until a second reader arrives or a short timeout passes"""

    def __init__(self, clock):
        super().__init__(clock=clock)
        self.barrier = threading.Barrier(2, timeout=0.2)

    def get(self, key):
        try:
            self.barrier.wait()
        except threading.BrokenBarrierError:
            pass
        return super().get(key)


def _concurrently(fn, *args):
    with ThreadPoolExecutor(max_workers=2) as pool:
        futures = [pool.submit(fn, *args) for _ in range(2)]
        return [f.result() for f in futures]


# OTP

def test_generated_codes_have_full_length(otp):
    for _ in range(50):
        code = otp.generate()
        assert len(code) == 6
        assert code.isdigit()
        assert code[0] != "0"


def test_code_verifies_once(otp):
    code = otp.issue(PHONE)

    assert otp.verify(PHONE, code).valid is True
    assert otp.verify(PHONE, code).valid is False
    assert otp.has_valid_otp(PHONE) is False


def test_code_expires_after_five_minutes(otp, clock):
    code = otp.issue(PHONE)
    clock.advance(minutes=5)

    result = otp.verify(PHONE, code)

    assert result.valid is False
    assert "expired" in result.reason


def test_three_wrong_attempts_lock_the_code(otp):
    otp.generate = lambda: "482913"
    otp.issue(PHONE)

    first = otp.verify(PHONE, "000000")
    second = otp.verify(PHONE, "111111")
    third = otp.verify(PHONE, "222222")

    assert (first.valid, first.attempts_remaining) == (False, 2)
    assert (second.valid, second.attempts_remaining) == (False, 1)
    assert third.valid is False
    assert "Too many" in third.reason
    assert otp.verify(PHONE, "482913").valid is False


def test_concurrent_verifications_consume_code_once(clock):
    otp = OtpService(store=_RacingStore(clock), length=6, expiry_minutes=5, max_attempts=3)
    code = otp.issue(PHONE)

    results = _concurrently(otp.verify, PHONE, code)

    assert sorted(r.valid for r in results) == [False, True]


def test_wrong_attempt_then_right_code(otp):
    otp.generate = lambda: "482913"
    otp.issue(PHONE)

    assert otp.verify(PHONE, "000000").valid is False
    assert otp.verify(PHONE, "482913").valid is True


def test_new_code_replaces_previous(otp):
    codes = iter(["111111", "222222"])
    otp.generate = lambda: next(codes)

    otp.issue(PHONE)
    otp.issue(PHONE)

    assert otp.verify(PHONE, "111111").valid is False
    assert otp.verify(PHONE, "222222").valid is True


def test_invalidate(otp):
    otp.issue(PHONE)

    assert otp.invalidate(PHONE) is True
    assert otp.has_valid_otp(PHONE) is False


# Rate limiting

def test_fourth_request_in_window_is_refused(clock):
    limiter = RateLimiter(store=ExpiringStore(clock=clock), max_requests=3, window_minutes=10)

    decisions = [limiter.hit("1.2.3.4-9876543210") for _ in range(4)]

    assert [d.allowed for d in decisions] == [True, True, True, False]
    assert decisions[3].retry_after_seconds == 600
    assert decisions[3].retry_after_minutes == 10


def test_window_slides(clock):
    limiter = RateLimiter(store=ExpiringStore(clock=clock), max_requests=3, window_minutes=10)
    key = "1.2.3.4-9876543210"

    limiter.hit(key)
    clock.advance(minutes=4)
    limiter.hit(key)
    clock.advance(minutes=4)
    limiter.hit(key)

    clock.advance(minutes=1)
    blocked = limiter.hit(key)
    assert blocked.allowed is False
    assert blocked.retry_after_seconds == 60

    clock.advance(minutes=1)
    assert limiter.hit(key).allowed is True


def test_concurrent_hits_respect_limit(clock):
    limiter = RateLimiter(store=_RacingStore(clock), max_requests=1, window_minutes=10)

    decisions = _concurrently(limiter.hit, "1.2.3.4-9876543210")

    assert sorted(d.allowed for d in decisions) == [False, True]


def test_keys_are_independent(clock):
    limiter = RateLimiter(store=ExpiringStore(clock=clock), max_requests=1, window_minutes=10)

    assert limiter.hit("1.2.3.4-9876543210").allowed is True
    assert limiter.hit("1.2.3.4-9123456780").allowed is True
    assert limiter.hit("1.2.3.4-9876543210").allowed is False

    limiter.reset("1.2.3.4-9876543210")
    assert limiter.hit("1.2.3.4-9876543210").allowed is True


# Phone numbers and tokens

@pytest.mark.parametrize("raw", ["9876543210", "+91 98765 43210", "919876543210", "98765-43210"])
def test_phone_normalization(raw):
    assert normalize_phone(raw) == PHONE


@pytest.mark.parametrize("raw", ["", None, "5876543210", "98765", "0919876543210", "abcdefghij"])
def test_invalid_phone_numbers(raw):
    with pytest.raises(ValueError):
        normalize_phone(raw)


def test_session_token_round_trip():
    payload = verify_token(create_session_token(7, PHONE), SESSION_TOKEN)

    assert payload["sub"] == "7"
    assert payload["phone"] == PHONE


def test_token_types_are_not_interchangeable():
    with pytest.raises(InvalidToken):
        verify_token(create_verification_token(PHONE), SESSION_TOKEN)
    with pytest.raises(InvalidToken):
        verify_token(create_session_token(7, PHONE), VERIFICATION_TOKEN)


def test_expired_token_is_rejected():
    token = create_access_token(
        {"sub": "7", "phone": PHONE, "type": SESSION_TOKEN},
        expires_delta=timedelta(seconds=-1)
    )

    with pytest.raises(InvalidToken) as exc:
        verify_token(token, SESSION_TOKEN)
    assert "expired" in str(exc.value)


def test_garbage_token_is_rejected():
    with pytest.raises(InvalidToken):
        verify_token("not-a-jwt", SESSION_TOKEN)


# SMS gateway

def _sms(handler, **kwargs):
    options = dict(
        api_url="https://sms.example.test/send",
        api_key="key-1",
        sender_id="SNCHRI",
        entity_id="1101",
        template_id="1107",
        transport=httpx.MockTransport(handler),
    )
    options.update(kwargs)
    return SmsService(**options)


def test_sms_request_parameters():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"status": "success"})

    result = asyncio.run(_sms(handler).send_otp(PHONE, "482913"))

    assert result.success is True
    assert seen["params"]["number"] == "919876543210"
    assert seen["params"]["apikey"] == "key-1"
    assert seen["params"]["senderid"] == "SNCHRI"
    assert seen["params"]["peid"] == "1101"
    assert seen["params"]["templateid"] == "1107"
    assert "Use 482913 to complete your Sancharie account login" in seen["params"]["message"]


def test_sms_gateway_error_is_reported():
    def handler(request):
        return httpx.Response(500, text="error")

    result = asyncio.run(_sms(handler).send_otp(PHONE, "482913"))

    assert result.success is False


def test_sms_transport_failure_is_reported():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    result = asyncio.run(_sms(handler).send_otp(PHONE, "482913"))

    assert result.success is False
