# storefront/db/base.py
# Импортируем все модели, чтобы Base.metadata и реестр мапперов знали о них
# (нужно для Alembic, тестов и разрешения строковых relationship).

from storefront.db.session import Base  # noqa: F401
from storefront.models.user import User  # noqa: F401
from storefront.models.catalog import Category, Product, ProductImage  # noqa: F401
from storefront.models.cart import CartItem, Favorite, RecentlyViewed  # noqa: F401
from storefront.models.order import Order, OrderItem  # noqa: F401
from storefront.models.sale import Sale, SaleCategory  # noqa: F401
