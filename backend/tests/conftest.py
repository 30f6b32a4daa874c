import socket
from collections.abc import AsyncGenerator, Iterator
from datetime import UTC, datetime, timedelta

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from portal.core.config import settings
from portal.core.rate_limiting import limiter
from portal.models import Base
from portal.providers import factory
from portal.providers.identity.base import Identity
from portal.providers.identity.mock_adapter import MockIdentityProvider
from portal.providers.storage.mock_adapter import MockObjectStorage
from portal.providers.store.base import Collection
from portal.providers.store.mock_adapter import MockDataStore
from portal.services.experience_registry import ExperienceRegistry
from portal.services.profile_store import ProfileStore

# Test user ID (consistent across tests for predictable auth)
TEST_USER_ID = "00000000-0000-0000-0000-000000000001"
TEST_EMAIL = "test@example.com"
TEST_FULL_NAME = "Test User"

USER_ROLE_ID = "10000000-0000-0000-0000-000000000001"
ADMIN_ROLE_ID = "10000000-0000-0000-0000-000000000002"

# Security: This is a test-only secret. Production uses a real secret from env.
TEST_JWT_SECRET = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105  # gitleaks:allow


def create_test_jwt(
    user_id: str = TEST_USER_ID,
    *,
    email: str = TEST_EMAIL,
    full_name: str = TEST_FULL_NAME,
    secret: str = TEST_JWT_SECRET,
    expires_delta: timedelta | None = None,
) -> str:
    """Create an access token shaped like the identity service's.

    Args:
        user_id: Subject claim.
        email: Email claim.
        full_name: user_metadata.full_name.
        secret: Signing secret (must match settings.supabase_jwt_secret).
        expires_delta: Time until expiration. Defaults to 1 hour.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "aud": "authenticated",
        "email": email,
        "user_metadata": {"full_name": full_name},
        "app_metadata": {"provider": "email"},
        "exp": now + (expires_delta or timedelta(hours=1)),
        "iat": now,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def identity() -> Identity:
    return Identity(
        id=TEST_USER_ID,
        email=TEST_EMAIL,
        metadata={"full_name": TEST_FULL_NAME},
        app_metadata={"provider": "email"},
    )


@pytest.fixture
def data_store() -> MockDataStore:
    """In-memory store with the seeded "user" and "admin" roles."""
    store = MockDataStore()
    store.seed(
        Collection.ROLES,
        {"id": USER_ROLE_ID, "name": "user", "permissions": []},
        {"id": ADMIN_ROLE_ID, "name": "admin", "permissions": ["admin_access"]},
    )
    return store


@pytest.fixture
def storage() -> MockObjectStorage:
    return MockObjectStorage()


@pytest.fixture
def profile_store(data_store: MockDataStore, identity: Identity) -> ProfileStore:
    """Unloaded profile store for the test identity."""
    return ProfileStore(data_store, identity)


@pytest_asyncio.fixture
async def loaded_store(profile_store: ProfileStore) -> ProfileStore:
    """Profile store loaded from an empty data store (defaults + identity)."""
    await profile_store.load()
    return profile_store


@pytest.fixture(autouse=True)
def _reset_provider_singletons() -> Iterator[None]:
    yield
    factory.reset_providers()


# =============================================================================
# API Test Fixtures
# =============================================================================


@pytest.fixture
def registry(data_store: MockDataStore, storage: MockObjectStorage) -> ExperienceRegistry:
    return ExperienceRegistry(data_store, storage)


@pytest.fixture
def auth_provider() -> MockIdentityProvider:
    """Identity provider handed to the auth endpoints."""
    provider = MockIdentityProvider()
    provider.add_account("jane@example.com", "correct-password", full_name="Jane Doe")
    return provider


@pytest.fixture
def hosted_auth() -> Iterator[None]:
    """Enable token auth with the test secret; disable rate limiting."""
    original_auth_enabled = settings.auth_enabled
    original_secret = settings.supabase_jwt_secret
    original_limiter = limiter.enabled
    settings.auth_enabled = True
    settings.supabase_jwt_secret = SecretStr(TEST_JWT_SECRET)
    limiter.enabled = False

    yield

    settings.auth_enabled = original_auth_enabled
    settings.supabase_jwt_secret = original_secret
    limiter.enabled = original_limiter


def _make_client(
    registry: ExperienceRegistry,
    auth_provider: MockIdentityProvider,
    cookies: dict[str, str] | None = None,
) -> AsyncClient:
    from portal.api.deps import get_auth_provider, get_registry
    from portal.main import app

    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_auth_provider] = lambda: auth_provider
    return AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies=cookies,
    )


@pytest_asyncio.fixture
async def client(
    hosted_auth: None,  # noqa: ARG001 - enables auth
    registry: ExperienceRegistry,
    auth_provider: MockIdentityProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client authenticated as TEST_USER_ID via the session cookie."""
    from portal.main import app

    cookies = {settings.auth_cookie_name: create_test_jwt()}
    async with _make_client(registry, auth_provider, cookies) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def unauthenticated_client(
    hosted_auth: None,  # noqa: ARG001 - enables auth
    registry: ExperienceRegistry,
    auth_provider: MockIdentityProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client with auth enabled but no credentials."""
    from portal.main import app

    async with _make_client(registry, auth_provider) as ac:
        yield ac
    app.dependency_overrides.clear()



# =============================================================================
# Database Fixtures (postgres data store)
# =============================================================================

TEST_DATABASE_URL = settings.database_url.rsplit("/", 1)[0] + f"/{settings.database_name}_test"


def _is_postgres_available() -> bool:
    """Check if PostgreSQL is accepting connections.

    Returns:
        True if PostgreSQL is reachable on the configured port, False otherwise.
    """
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex((settings.database_host, settings.database_port))
        sock.close()
        return result == 0
    except OSError:
        return False


# Check once at module load time
_POSTGRES_AVAILABLE = _is_postgres_available()


def skip_if_no_postgres() -> None:
    """Skip test if PostgreSQL is not available."""
    if not _POSTGRES_AVAILABLE:
        pytest.skip(
            f"PostgreSQL not available on port {settings.database_port}. "
            "Start database with: docker compose up -d"
        )


@pytest_asyncio.fixture
async def db_session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory over a freshly created schema.

    Skips test if PostgreSQL is not available (e.g., Docker not running).
    """
    skip_if_no_postgres()

    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
