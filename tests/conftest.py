import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from src.database import Base, get_db  # noqa: E402
from src.auth.expiring_store import ExpiringStore  # noqa: E402
from src.auth.otp_service import OtpService  # noqa: E402
from src.auth.rate_limiter import RateLimiter  # noqa: E402
from src.auth.service import UserService  # noqa: E402
from src.auth.utils import create_session_token  # noqa: E402
from src.payments.gateway import RazorpayGateway  # noqa: E402

from tests.factories import FakeClock, FakeInventoryClient, FakeSmsService, razorpay_transport  # noqa: E402

RAZORPAY_TEST_KEY_ID = "rzp_test_key"
RAZORPAY_TEST_SECRET = "rzp_test_secret"


@pytest.fixture()
def db_session():
    """
    Fresh in-memory SQLite database per test.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def sms():
    return FakeSmsService()


@pytest.fixture()
def inventory():
    return FakeInventoryClient()


@pytest.fixture()
def payment_transport():
    return razorpay_transport()


@pytest.fixture()
def app(db_session, clock, sms, inventory, payment_transport):
    """
    The application wired to in-memory collaborators.
    """
    from src.main import app as fastapi_app

    def override_get_db():
        yield db_session

    saved_state = {
        name: getattr(fastapi_app.state, name)
        for name in ("otp_service", "rate_limiter", "sms_service", "payment_gateway", "inventory_client")
    }

    store = ExpiringStore(clock=clock)
    fastapi_app.state.otp_service = OtpService(store=store)
    fastapi_app.state.rate_limiter = RateLimiter(store=store)
    fastapi_app.state.sms_service = sms
    fastapi_app.state.inventory_client = inventory
    fastapi_app.state.payment_gateway = RazorpayGateway(
        key_id=RAZORPAY_TEST_KEY_ID,
        key_secret=RAZORPAY_TEST_SECRET,
        transport=payment_transport,
    )
    fastapi_app.dependency_overrides[get_db] = override_get_db

    yield fastapi_app

    fastapi_app.dependency_overrides.clear()
    for name, value in saved_state.items():
        setattr(fastapi_app.state, name, value)


@pytest.fixture()
def client(app):
    """
    Synchronous TestClient; lifespan is not entered so no real database is created.
    """
    return TestClient(app)


@pytest.fixture()
def user(db_session):
    created, _ = UserService.login(db_session, "9876543210")
    return created


@pytest.fixture()
def auth_headers(user):
    token = create_session_token(user.id, user.phone)
    return {"Authorization": f"Bearer {token}"}
