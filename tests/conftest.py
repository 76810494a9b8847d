import itertools

import pytest
from fastapi.testclient import TestClient

from kardexcare.config import Settings
from kardexcare.enums import UserRole
from kardexcare.main import create_app
from kardexcare.models import User, ServiceZone, ServicePersonZone, Customer, Asset, Ticket, Offer
from kardexcare.utils.security import create_access_token, get_password_hash

PASSWORD = "Passw0rd!"
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'kardexcare_test.db'}",
        nextauth_secret="test-secret",
        storage_root=str(tmp_path / "storage"),
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(client, app):
    session = app.state.database.session()
    try:
        yield session
    finally:
        session.close()


class Factory:
    """Creates rows directly in the database and issues tokens for users"""

    def __init__(self, db, settings):
        self.db = db
        self.settings = settings
        self._seq = itertools.count(1)

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def zone(self, name=None, short_form=None):
        n = next(self._seq)
        return self._save(ServiceZone(name=name or f"Zone {n}", short_form=short_form))

    def user(self, role=UserRole.ADMIN.value, zone=None, customer=None, name=None, short_form=None,
             is_active=True, zones=()):
        n = next(self._seq)
        user = self._save(User(
            email=f"user{n}@example.com",
            name=name or f"User {n}",
            hashed_password=PASSWORD_HASH,
            role=role,
            short_form=short_form,
            zone_id=zone.id if zone else None,
            customer_id=customer.id if customer else None,
            is_active=is_active,
        ))
        for extra in zones:
            self._save(ServicePersonZone(user_id=user.id, service_zone_id=extra.id))
        return user

    def customer(self, zone=None, name=None):
        n = next(self._seq)
        return self._save(Customer(company_name=name or f"Customer {n}", service_zone_id=zone.id if zone else None))

    def asset(self, customer, serial_number=None):
        n = next(self._seq)
        return self._save(Asset(customer_id=customer.id, serial_number=serial_number or f"SN-{n:05d}"))

    def ticket(self, customer, created_by, zone=None, assigned_to=None, status="OPEN"):
        n = next(self._seq)
        return self._save(Ticket(
            ticket_number=f"TKT-20240101-{n:04d}",
            title=f"Ticket {n}",
            customer_id=customer.id,
            zone_id=zone.id if zone else customer.service_zone_id,
            assigned_to_id=assigned_to.id if assigned_to else None,
            created_by_id=created_by.id,
            status=status,
        ))

    def offer(self, customer, zone, created_by, stage="INITIAL", reference=None, **fields):
        n = next(self._seq)
        return self._save(Offer(
            offer_reference_number=reference or f"KRIND/T/GEN/XX{n:05d}",
            customer_id=customer.id,
            zone_id=zone.id,
            created_by_id=created_by.id,
            stage=stage,
            **fields
        ))

    def token(self, user):
        return create_access_token({"sub": str(user.id), "role": user.role}, self.settings)

    def auth(self, user):
        return {"Authorization": f"Bearer {self.token(user)}"}


@pytest.fixture
def factory(db, settings):
    return Factory(db, settings)


@pytest.fixture
def admin(factory):
    return factory.user(UserRole.ADMIN.value, name="Asha Admin")


@pytest.fixture
def admin_headers(factory, admin):
    return factory.auth(admin)


@pytest.fixture
def password():
    return PASSWORD
