# storefront/routers/webhooks.py

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Request
from redis.asyncio import Redis
from sqlalchemy.orm import Session

from storefront.core.redis import get_redis_client
from storefront.dependencies import get_db
from storefront.services import payments as payments_service

router = APIRouter()


@router.post("/webhooks/stripe", include_in_schema=False)
async def stripe_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    stripe_signature: str | None = Header(None),
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis_client),
):
    """Принимает события Stripe; подпись проверяется по сырому телу запроса."""
    payload = await request.body()
    return await payments_service.process_stripe_webhook(db, redis, payload, stripe_signature, background_tasks)
