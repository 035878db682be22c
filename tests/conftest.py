import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from sharelyst.core.security import create_access_token
from sharelyst.db.base import Base, Group, Payment, Transaction, User
from sharelyst.db.session import get_db
from sharelyst.main import app


class LedgerFactory:
    """Writes groups, members and transactions straight to the test database."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._codes = iter(range(100001, 999999))
        self._users = 0

    async def group(self, name="Trip"):
        group = Group(code=next(self._codes), name=name)
        self.db.add(group)
        await self.db.commit()
        return group

    async def user(self, first_name, last_name="Tester", group=None):
        self._users += 1
        user = User(
            username=f"{first_name.lower()}{self._users}",
            first_name=first_name,
            last_name=last_name,
            email=f"{first_name.lower()}{self._users}@example.com",
            group_id=group.id if group else None,
        )
        self.db.add(user)
        await self.db.commit()
        return user

    async def transaction(self, group, payments, name="Dinner", total=None):
        """``payments`` maps a user to the amount they paid toward it."""
        amounts = {u: Decimal(str(a)) for u, a in payments.items()}
        if total is None:
            total = sum(amounts.values(), Decimal("0"))

        transaction = Transaction(
            code=next(self._codes),
            name=name,
            total=Decimal(str(total)),
            group_id=group.id,
        )
        self.db.add(transaction)
        await self.db.flush()

        for user, amount in amounts.items():
            self.db.add(Payment(
                amount=amount,
                user_id=user.id,
                transaction_id=transaction.id,
                group_id=group.id,
            ))
        await self.db.commit()
        return transaction


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def ledger(db):
    return LedgerFactory(db)


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def make(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}
    return make
