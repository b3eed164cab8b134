import time
import asyncio
import httpx
import logging

from order_api.application.interfaces import MetricsRecorder

logger = logging.getLogger(__name__)


class NoopMetricsRecorder(MetricsRecorder):
    """Метрики отключены"""

    async def record_metric(self, name: str, value: float = 1) -> None:
        return None

    async def record_error(self, error: Exception) -> None:
        return None


class HTTPMetricsRecorder(MetricsRecorder):
    """Отправка кастомных метрик в New Relic Metric API.

    Один клиент на все время жизни приложения. Отправка идет фоновыми задачами,
    запрос не ждет ответа Metric API. aclose() дожидается незавершенных отправок.
    """

    def __init__(self, base_url: str, license_key: str, app_name: str, timeout: float = 5.0,
                 transport: httpx.AsyncBaseTransport | None = None):
        self._base_url = base_url
        self._app_name = app_name
        self._client = httpx.AsyncClient(
            transport=transport,
            timeout=timeout,
            headers={"Api-Key": license_key}
        )
        self._pending: set[asyncio.Task] = set()

    async def record_metric(self, name: str, value: float = 1) -> None:
        self._schedule(name, value, {})

    async def record_error(self, error: Exception) -> None:
        self._schedule(
            f"Custom/Errors/{type(error).__name__}",
            1,
            {"error.message": str(error)}
        )

    async def aclose(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await self._client.aclose()

    def _schedule(self, name: str, value: float, attributes: dict) -> None:
        task = asyncio.create_task(self._send(name, value, attributes))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, name: str, value: float, attributes: dict) -> bool:
        payload = [{
            "common": {"attributes": {"app.name": self._app_name}},
            "metrics": [{
                "name": name,
                "type": "gauge",
                "value": value,
                "timestamp": int(time.time() * 1000),
                "attributes": attributes
            }]
        }]
        try:
            response = await self._client.post(f"{self._base_url}/metric/v1", json=payload)

            if response.status_code == 202:
                return True
            logger.warning(f"Metric API вернул статус {response.status_code} для {name}")

        except httpx.HTTPError as e:
            # Метрики не должны ломать обработку запроса
            logger.warning(f"Не удалось отправить метрику {name}: {e}")
        return False


def create_metrics_recorder(settings) -> MetricsRecorder:
    if settings.METRICS_ENABLED:
        return HTTPMetricsRecorder(
            settings.METRICS_BASE_URL, settings.NEW_RELIC_LICENSE_KEY, settings.NEW_RELIC_APP_NAME
        )
    return NoopMetricsRecorder()
