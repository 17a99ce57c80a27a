# tests/conftest.py
import os

# Настройки должны быть в окружении до импорта приложения
os.environ.setdefault("DATABASE_USER", "test")
os.environ.setdefault("DATABASE_PASSWORD", "test")
os.environ.setdefault("DATABASE_HOST", "localhost")
os.environ.setdefault("DATABASE_NAME", "test")
os.environ["AUTH_JWT_KEY"] = "test-jwt-secret"
os.environ["ADMIN_USER_IDS"] = "user_admin"
os.environ["REDIS_HOST"] = ""  # без Redis лимитер выключен
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from storefront.db.base import Base
from storefront.dependencies import get_db
from storefront.main import app
from storefront.models.catalog import Category, Product
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.user import User

# Используем in-memory SQLite для тестов - это быстро и изолированно.
# StaticPool: одно соединение на все сессии, иначе каждая увидит пустую БД
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

USER_ID = "user_customer"
ADMIN_ID = "user_admin"


@pytest.fixture(scope="function")
def db_session() -> Session:
    """
    Фикстура для создания чистой базы данных для каждого теста.
    """
    Base.metadata.create_all(bind=engine) # Создаем все таблицы
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine) # Очищаем все после теста


@pytest.fixture
async def client(db_session: Session):
    """HTTP-клиент поверх ASGI-приложения; get_db подменен на тестовую сессию."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def sqlite_foreign_keys(db_session: Session):
    """Включает проверку внешних ключей SQLite на время теста, как в PostgreSQL."""
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")
    yield
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=OFF")


# --- Аутентификация ---

def make_token(user_id: str, email: str | None = None, name: str | None = None, role: str | None = None) -> str:
    claims = {"sub": user_id}
    if email:
        claims["email"] = email
    if name:
        claims["name"] = name
    if role:
        claims["public_metadata"] = {"role": role}
    return jwt.encode(claims, "test-jwt-secret", algorithm="HS256")


@pytest.fixture
def make_auth_headers():
    def _headers(user_id: str, **claims) -> dict:
        return {"Authorization": f"Bearer {make_token(user_id, **claims)}"}
    return _headers


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {make_token(USER_ID, email='customer@example.com', name='Jane Doe')}"}


@pytest.fixture
def admin_auth_headers() -> dict:
    return {"Authorization": f"Bearer {make_token(ADMIN_ID, email='admin@example.com')}"}


# --- Фабрики ---

@pytest.fixture
def test_user(db_session: Session) -> User:
    user = User(id=USER_ID, email="customer@example.com", name="Jane Doe")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def category_factory(db_session: Session):
    def _create(name: str = "Watches", slug: str | None = None) -> Category:
        category = Category(name=name, slug=slug or name.lower().replace(" ", "-"))
        db_session.add(category)
        db_session.commit()
        db_session.refresh(category)
        return category
    return _create


@pytest.fixture
def test_category(category_factory) -> Category:
    return category_factory()


@pytest.fixture
def product_factory(db_session: Session, test_category: Category):
    counter = {"n": 0}

    def _create(
        name: str | None = None,
        price: str = "20.00",
        stock: int = 10,
        category: Category | None = None,
        discount_percent: int | None = None,
    ) -> Product:
        counter["n"] += 1
        name = name or f"Product {counter['n']}"
        product = Product(
            name=name,
            slug=name.lower().replace(" ", "-"),
            price=Decimal(price),
            stock=stock,
            category_id=(category or test_category).id,
            discount_percent=discount_percent,
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product
    return _create


@pytest.fixture
def order_factory(db_session: Session):
    def _create(
        product: Product,
        quantity: int = 1,
        status: OrderStatus = OrderStatus.PROCESSING,
        user_id: str | None = None,
        email: str = "guest@example.com",
        guest_token: str | None = "guest-token-123",
        shipping_address: dict | None = None,
    ) -> Order:
        order = Order(
            user_id=user_id,
            is_guest=user_id is None,
            guest_token=guest_token,
            customer_email=email,
            customer_name="Guest Buyer",
            total=product.price * quantity,
            status=status,
            shipping_address=shipping_address,
            items=[OrderItem(
                product_id=product.id,
                name=product.name,
                price=product.price,
                quantity=quantity,
            )],
        )
        db_session.add(order)
        db_session.commit()
        db_session.refresh(order)
        return order
    return _create


@pytest.fixture
def shipping_address() -> dict:
    return {
        "name": "Guest Buyer",
        "address": {
            "line1": "1 Market St",
            "line2": None,
            "city": "San Francisco",
            "state": "CA",
            "postal_code": "94105",
            "country": "US",
        },
    }


# --- Моки внешних сервисов ---

@pytest.fixture
def mock_shippo_client(mocker):
    """Подменяет методы клиента Shippo асинхронными моками."""
    from storefront.clients.shippo import shippo_client

    mocker.patch.object(shippo_client, "create_shipment", new_callable=mocker.AsyncMock)
    mocker.patch.object(shippo_client, "create_transaction", new_callable=mocker.AsyncMock)
    return shippo_client


@pytest.fixture
def mock_send_email(mocker):
    """Перехватывает отправку писем через Resend."""
    return mocker.patch("storefront.services.email.resend.Emails.send", return_value={"id": "email_123"})


class FakeRedis:
    """Минимальная замена redis.asyncio для ключей идемпотентности."""
    def __init__(self):
        self.store = {}

    async def exists(self, key: str) -> int:
        return int(key in self.store)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.store[key] = value
        return True


@pytest.fixture
def fake_redis():
    from storefront.core.redis import get_redis_client

    redis = FakeRedis()
    app.dependency_overrides[get_redis_client] = lambda: redis
    yield redis
    app.dependency_overrides.pop(get_redis_client, None)
