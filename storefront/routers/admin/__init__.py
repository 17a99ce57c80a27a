# storefront/routers/admin/__init__.py

from fastapi import APIRouter, Depends

from storefront.dependencies import get_admin_user
from . import orders

# Главный роутер админки: все вложенные эндпоинты требуют прав администратора
router = APIRouter(dependencies=[Depends(get_admin_user)])

router.include_router(orders.router, prefix="/orders", tags=["Admin: Orders"])
