# storefront/core/redis.py
import redis.asyncio as redis
from storefront.core.config import settings

# Клиент создается только если Redis настроен.
# decode_responses=True автоматически декодирует ответы из байтов в строки
redis_client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True) if settings.REDIS_URL else None

async def get_redis_client():
    """
    Зависимость для получения клиента Redis в эндпоинтах.
    Возвращает None, если Redis не сконфигурирован.
    """
    return redis_client
