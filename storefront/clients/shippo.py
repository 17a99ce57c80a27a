# storefront/clients/shippo.py

import httpx
from storefront.core.config import settings
import logging

logger = logging.getLogger(__name__)

class ShippoClient:
    """
    Асинхронный клиент для REST API Shippo (тарифы доставки и покупка этикеток).
    Аутентификация через заголовок 'ShippoToken <key>'.
    """
    def __init__(self, base_url: str, api_key: str):
        self.base_url = base_url
        timeouts = httpx.Timeout(20.0, read=60.0)
        self.async_client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"ShippoToken {api_key}"},
            timeout=timeouts
        )

    async def post(self, endpoint: str, json: dict) -> dict:
        """
        Выполняет POST-запрос. В случае успеха возвращает JSON-ответ (dict).
        В случае HTTP-ошибки (4xx/5xx) выбрасывает исключение.
        """
        try:
            response = await self.async_client.post(endpoint, json=json)
            response.raise_for_status()
            return response.json()
        except httpx.RequestError as e:
            logger.error(f"Network error during POST request to {e.request.url!r}.", exc_info=True)
            raise
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error during POST request to {e.request.url!r}: {e.response.text}", exc_info=True)
            raise

    async def create_shipment(self, address_from: dict, address_to: dict, parcel: dict) -> dict:
        """Создает отправление и синхронно получает список тарифов."""
        return await self.post("/shipments/", json={
            "address_from": address_from,
            "address_to": address_to,
            "parcels": [parcel],
            "async": False,
        })

    async def create_transaction(self, rate_id: str) -> dict:
        """Покупает этикетку (PDF) по выбранному тарифу."""
        return await self.post("/transactions/", json={
            "rate": rate_id,
            "label_file_type": "PDF",
            "async": False,
        })


# Создаем синглтон
shippo_client = ShippoClient(
    base_url=settings.SHIPPO_API_URL,
    api_key=settings.SHIPPO_API_KEY
)
