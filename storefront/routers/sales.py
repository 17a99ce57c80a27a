# storefront/routers/sales.py

from typing import List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from storefront.core.limiter import RATE_LIMITS, limiter
from storefront.dependencies import get_admin_user, get_db
from storefront.schemas import sale as sale_schemas
from storefront.schemas.cart import SuccessResponse
from storefront.services import sales as sales_service

router = APIRouter()


@router.get("/sales", response_model=List[sale_schemas.Sale])
@limiter.limit(RATE_LIMITS["api"])
def list_sales(request: Request, db: Session = Depends(get_db)):
    return sales_service.list_sales(db)


@router.get("/sales/active", response_model=List[sale_schemas.Sale])
@limiter.limit(RATE_LIMITS["api"])
def list_active_sales(request: Request, db: Session = Depends(get_db)):
    """Распродажи, действующие прямо сейчас (для баннеров витрины)."""
    return sales_service.list_active_sales(db)


@router.get("/sales/{sale_id}", response_model=sale_schemas.Sale)
@limiter.limit(RATE_LIMITS["api"])
def get_sale(request: Request, sale_id: str, db: Session = Depends(get_db)):
    return sales_service.get_sale_or_404(db, sale_id)


@router.post(
    "/sales",
    response_model=sale_schemas.Sale,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_admin_user)],
)
@limiter.limit(RATE_LIMITS["admin"])
def create_sale(request: Request, body: sale_schemas.SaleCreate, db: Session = Depends(get_db)):
    return sales_service.create_sale(db, body)


@router.patch("/sales/{sale_id}", response_model=sale_schemas.Sale, dependencies=[Depends(get_admin_user)])
@limiter.limit(RATE_LIMITS["admin"])
def update_sale(
    request: Request,
    sale_id: str,
    body: sale_schemas.SaleUpdate,
    db: Session = Depends(get_db),
):
    sale = sales_service.get_sale_or_404(db, sale_id)
    return sales_service.update_sale(db, sale, body)


@router.delete("/sales/{sale_id}", response_model=SuccessResponse, dependencies=[Depends(get_admin_user)])
@limiter.limit(RATE_LIMITS["admin"])
def delete_sale(request: Request, sale_id: str, db: Session = Depends(get_db)):
    sale = sales_service.get_sale_or_404(db, sale_id)
    sales_service.delete_sale(db, sale)
    return SuccessResponse()
