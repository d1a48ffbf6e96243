import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from garage.auth import Principal
from garage.db import get_db
from garage.main import app
from garage.models import Base, Customer, Job, Profile, RoleEnum, Vehicle
from garage.services.identity import password_hash

PASSWORD = "correct-horse"


@pytest.fixture()
def engine(tmp_path):
    db_path = tmp_path / "test.db"
    engine = create_engine(
        f"sqlite+pysqlite:///{db_path}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def SessionLocal(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db_session(SessionLocal):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(SessionLocal):
    def override_get_db():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _make_profile(db_session, username, role, is_active=True):
    profile = Profile(
        user_id=f"uid-{username}",
        username=username,
        password_hash=password_hash.hash(PASSWORD),
        role=role,
        is_active=is_active,
    )
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture()
def admin_profile(db_session):
    return _make_profile(db_session, "admin", RoleEnum.ADMIN)


@pytest.fixture()
def employee_profile(db_session):
    return _make_profile(db_session, "e1", RoleEnum.EMPLOYEE)


@pytest.fixture()
def inactive_profile(db_session):
    return _make_profile(db_session, "gone", RoleEnum.EMPLOYEE, is_active=False)


@pytest.fixture()
def admin(admin_profile):
    return Principal.from_profile(admin_profile)


@pytest.fixture()
def employee(employee_profile):
    return Principal.from_profile(employee_profile)


@pytest.fixture()
def inactive(inactive_profile):
    return Principal.from_profile(inactive_profile)


@pytest.fixture()
def customer_vehicle(db_session, employee_profile):
    customer = Customer(name="C1", phone="0700000000", created_by=employee_profile.id)
    db_session.add(customer)
    db_session.flush()
    vehicle = Vehicle(
        registration="KAA123A",
        model="Corolla",
        type="Saloon",
        customer_id=customer.id,
        created_by=employee_profile.id,
    )
    db_session.add(vehicle)
    db_session.commit()
    return customer, vehicle


@pytest.fixture()
def pending_job(db_session, customer_vehicle, employee_profile):
    customer, vehicle = customer_vehicle
    job = Job(
        customer_id=customer.id,
        vehicle_id=vehicle.id,
        assigned_employee=employee_profile.id,
        description="Oil change",
    )
    db_session.add(job)
    db_session.commit()
    return job


@pytest.fixture()
def login_as(client):
    def _login(username, password=PASSWORD):
        response = client.post(
            "/auth/login", json={"username": username, "password": password}
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['session_token']}"}

    return _login
