import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')
os.environ.setdefault('BCRYPT_ROUNDS', '4')

from blooms.auth.jwt_handler import TokenIssuer, get_token_issuer  # noqa: E402
from blooms.auth.password import PasswordHasher, get_password_hasher  # noqa: E402
from blooms.database import Base, get_db  # noqa: E402
from blooms.main import app  # noqa: E402
from blooms.models.user import User, UserRole  # noqa: E402
from blooms.repositories.user_store import UserStore  # noqa: E402
from blooms.services.auth_service import AuthService  # noqa: E402

TEST_JWT_SECRET = 'test-secret-key'


@pytest.fixture
def db_session():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=[User.__table__])

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=[User.__table__])
        engine.dispose()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(secret_key=TEST_JWT_SECRET, algorithm='HS256', expires_minutes=60)


@pytest.fixture
def store(db_session) -> UserStore:
    return UserStore(db_session)


@pytest.fixture
def auth_service(store, hasher, token_issuer) -> AuthService:
    return AuthService(store, hasher, token_issuer)


@pytest.fixture
def make_user(store, hasher):
    def _make_user(
        email: str = 'staff@buneko.com',
        password: str = 'secret123',
        name: str = 'Staff',
        role: UserRole = UserRole.customer,
        is_active: bool = True,
    ) -> User:
        user = User(
            name=name,
            email=email,
            password=hasher.hash(password),
            role=role,
            is_active=is_active,
        )
        return store.save(user)

    return _make_user


@pytest.fixture
def client(db_session, hasher, token_issuer):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_password_hasher] = lambda: hasher
    app.dependency_overrides[get_token_issuer] = lambda: token_issuer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
