"""API test fixtures: the real app over in-memory stores."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from hardstore.app.api.v1.dependencies import get_auth_service
from hardstore.app.main import app
from hardstore.core.domain.auth import AccountSecurityState, Role


@pytest_asyncio.fixture
async def client(auth_service):
    """Test client; the lifespan (DB, admin bootstrap) is not run."""
    app.dependency_overrides[get_auth_service] = lambda: auth_service

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def admin(account_store, alice_hash) -> AccountSecurityState:
    """Admin account sharing alice's password."""
    account = AccountSecurityState(
        user_id="01HARDSTOREADMIN0000000000",
        username="admin",
        role=Role.ADMIN,
        password_hash=alice_hash,
        failed_attempts=0,
    )
    account_store.put(account)
    return account
