"""
Pytest fixtures for assetVerse backend tests.

Provides an in-memory database, a test client, identity tokens, seeded
users/assets/packages and a fake payment gateway.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from assetverse import create_app
from assetverse.extensions import db
from assetverse.models import User, Asset, AssetRequest, EmployeeMembership, Package
from assetverse.cli import seed_packages
from assetverse.errors import NotFoundError
from assetverse.services.payment_gateway import CheckoutSession


TEST_JWT_SECRET = "test-identity-secret"


class FakePaymentGateway:
    """In-memory stand-in for StripePaymentGateway."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.sessions = {}
        self.retrieve_calls = 0

    def create_checkout_session(
        self, *, amount_cents, currency, product_name, customer_email, metadata, success_url, cancel_url
    ):
        session_id = f"cs_test_{len(self.sessions) + 1}"
        session = CheckoutSession(
            id=session_id,
            payment_status="unpaid",
            url=f"https://checkout.test/pay/{session_id}",
            amount_total=amount_cents,
            currency=currency,
            customer_email=customer_email,
            metadata={k: str(v) for k, v in metadata.items()},
        )
        self.sessions[session_id] = session
        return session

    def mark_paid(self, session_id):
        self.sessions[session_id].payment_status = "paid"

    def retrieve_checkout_session(self, session_id):
        self.retrieve_calls += 1
        if session_id not in self.sessions:
            raise NotFoundError("Payment session not found")
        return self.sessions[session_id]


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'IDENTITY_JWT_SECRET': TEST_JWT_SECRET,
        'IDENTITY_JWT_ALGORITHMS': ['HS256'],
        'DEFAULT_HR_EMPLOYEE_LIMIT': 5,
        'LOG_LEVEL': 'WARNING',
    })
    app.extensions["payment_gateway"] = FakePaymentGateway()

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def gateway(app):
    fake = app.extensions["payment_gateway"]
    fake.reset()
    return fake


@pytest.fixture(scope='function')
def packages(db_session):
    seed_packages()
    return {p.name: p for p in db_session.query(Package).all()}


def make_user(db_session, email, *, role="employee", name=None, company_name=None, employee_limit=0):
    user = User(
        email=email,
        name=name or email.split("@")[0].title(),
        role=role,
        company_name=company_name,
        employee_limit=employee_limit,
    )
    db_session.add(user)
    db_session.commit()
    return user


def make_asset(db_session, hr, *, product_name="Laptop", product_type="Returnable", quantity=3):
    asset = Asset(
        hr_email=hr.email,
        company_name=hr.company_name,
        product_name=product_name,
        product_type=product_type,
        quantity=quantity,
    )
    db_session.add(asset)
    db_session.commit()
    return asset


def make_member(db_session, hr, employee):
    membership = EmployeeMembership(
        employee_email=employee.email,
        employee_name=employee.name,
        hr_email=hr.email,
        company_name=hr.company_name,
    )
    db_session.add(membership)
    db_session.commit()
    return membership


def roster_emails(db_session, hr):
    rows = db_session.query(EmployeeMembership).filter_by(hr_email=hr.email).all()
    return sorted(m.employee_email for m in rows)


def requests_for(db_session, email):
    return db_session.query(AssetRequest).filter_by(requester_email=email).order_by(AssetRequest.id).all()


@pytest.fixture(scope='function')
def hr_user(db_session):
    """HR manager with the default five seats."""
    return make_user(db_session, "hr@acme.com", role="hr", name="Hannah Reyes", company_name="Acme Corp", employee_limit=5)


@pytest.fixture(scope='function')
def other_hr(db_session):
    return make_user(db_session, "hr@globex.com", role="hr", name="Gary Lobb", company_name="Globex", employee_limit=5)


@pytest.fixture(scope='function')
def employee(db_session):
    return make_user(db_session, "emma@acme.com", name="Emma Stone")


@pytest.fixture(scope='function')
def second_employee(db_session):
    return make_user(db_session, "frank@acme.com", name="Frank Ocean")


@pytest.fixture(scope='function')
def laptop(db_session, hr_user):
    return make_asset(db_session, hr_user, product_name="Dell Latitude", quantity=3)


def make_token(email: str, *, expires_in: int = 3600, secret: str = TEST_JWT_SECRET, **claims) -> str:
    """Mint an identity-provider token the app will accept."""
    now = datetime.now(timezone.utc)
    payload = {
        "email": email,
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
        **claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(email: str, **kwargs) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {make_token(email, **kwargs)}'}
