import os
import tempfile

TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'cropcycle_test.db')}",
)
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from datetime import date, timedelta  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from app.core.deps import get_db, get_text_generator, get_weather_provider  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Farm  # noqa: E402
from app.services.crop_catalog import PRE_PLANTING_STAGE  # noqa: E402
from app.services.daily_recommendations import today_utc  # noqa: E402
from app.services.harvest import expected_harvest_date  # noqa: E402

# NullPool prevents connections from being cached across event loop boundaries,
# which avoids "Future attached to a different loop" errors in pytest-asyncio.
engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

OWNER_ID = "owner-1"
OTHER_OWNER_ID = "owner-2"


# ── Collaborator fakes ────────────────────────────────────────────────────────


class FakeWeatherProvider:
    def __init__(self, weather: dict | None = None, error: Exception | None = None):
        self.weather = weather if weather is not None else {
            "current": {"temperature": 29.0, "humidity": 70, "conditions": "Partly cloudy"},
            "forecast": [
                {"date": "2024-03-01", "rainfallProbability": 20, "rainfallAmount": 0.0},
            ],
            "source": "fake",
        }
        self.error = error
        self.calls: list[tuple[float, float]] = []

    async def get_weather(self, latitude: float, longitude: float) -> dict:
        self.calls.append((latitude, longitude))
        if self.error is not None:
            raise self.error
        return self.weather


class FakeTextGenerator:
    def __init__(self, reply: str = "{}", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt, *, system_prompt=None, temperature=0.7, max_output_tokens=4096) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


# ── Database ──────────────────────────────────────────────────────────────────


@pytest_asyncio.fixture(scope="session", autouse=True)
async def setup_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db():
    async with TestSessionLocal() as session:
        yield session
        await session.rollback()
        # Services commit, so clear every table between tests
        for table in reversed(Base.metadata.sorted_tables):
            await session.execute(table.delete())
        await session.commit()


@pytest_asyncio.fixture
async def make_farm(db: AsyncSession):
    async def _make(
        *,
        crop: str = "maize",
        planting_date: date | None = None,
        status: str = "active",
        owner_id: str = OWNER_ID,
        **fields,
    ) -> Farm:
        planting = planting_date or today_utc() - timedelta(days=30)
        values = {
            "farm_name": f"{crop.title()} plot",
            "state": "Kaduna",
            "country": "Nigeria",
            "latitude": 10.52,
            "longitude": 7.44,
            "budget": 1000.0,
            **fields,
        }
        farm = Farm(
            owner_id=owner_id,
            crop=crop,
            planting_date=planting,
            expected_harvest_date=expected_harvest_date(crop, planting),
            current_growth_stage=PRE_PLANTING_STAGE,
            status=status,
            budget_spent=0.0,
            **values,
        )
        db.add(farm)
        await db.commit()
        await db.refresh(farm)
        return farm

    return _make


# ── HTTP ──────────────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def weather_provider() -> FakeWeatherProvider:
    return FakeWeatherProvider()


@pytest_asyncio.fixture
async def text_generator() -> FakeTextGenerator:
    return FakeTextGenerator()


@pytest_asyncio.fixture
async def client(db: AsyncSession, weather_provider: FakeWeatherProvider, text_generator: FakeTextGenerator):
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_weather_provider] = lambda: weather_provider
    app.dependency_overrides[get_text_generator] = lambda: text_generator

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


def _bearer(owner_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(owner_id)}"}


@pytest_asyncio.fixture
async def auth_headers() -> dict:
    return _bearer(OWNER_ID)


@pytest_asyncio.fixture
async def other_auth_headers() -> dict:
    return _bearer(OTHER_OWNER_ID)
