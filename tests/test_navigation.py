import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.auth.jwt import create_access_token
from src.core.database import get_db
from src.core.navigation import ROLE_NAVIGATION, get_navigation
from src.main import app
from src.models.enums import UserRole


@pytest_asyncio.fixture
async def client(session):
    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


def test_every_role_has_navigation():
    assert set(ROLE_NAVIGATION) == set(UserRole)
    for role in UserRole:
        items = get_navigation(role)
        assert items[0].key == "dashboard"
        assert len({item.key for item in items}) == len(items)


def test_teacher_sees_each_part():
    paths = [item.path for item in get_navigation(UserRole.TEACHER)]
    assert paths[-5:] == [f"/appraisal/part-{part}" for part in "abcde"]


def test_reviewers_do_not_see_part_forms():
    for role in (UserRole.HOD, UserRole.IQAC, UserRole.PRINCIPAL, UserRole.ADMIN):
        assert not any(item.path.startswith("/appraisal/") for item in get_navigation(role))


def test_unknown_role_gets_nothing():
    assert get_navigation("GUEST") == ()


@pytest.mark.asyncio
async def test_navigation_endpoint(client, users):
    token = create_access_token({"sub": str(users["hod"].id)})
    response = await client.get("/api/v1/navigation", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    body = response.json()
    assert body["role"] == "HOD"
    assert [item["key"] for item in body["items"]] == ["dashboard", "review", "department", "reports"]
