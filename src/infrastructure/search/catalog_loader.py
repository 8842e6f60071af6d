"""
Загрузка сырого каталога (JSON) по сети или из локального файла.
Реализует CatalogSourceProtocol.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import httpx

from ...domain.exceptions import CatalogLoadError

logger = logging.getLogger(__name__)


class JsonCatalogLoader:
    """
    Загрузчик каталога товаров.

    Источник - URL (http/https) или путь к JSON файлу со списком записей
    вида {"codigo", "descripcion", "rubro", "marca", "precio_venta"}.
    Любая ошибка получения или разбора превращается в CatalogLoadError.
    """

    def __init__(self, timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None) -> None:
        """
        Инициализация загрузчика.

        Args:
            timeout: Таймаут HTTP запроса в секундах
            client: Готовый HTTP клиент (для тестов и переиспользования соединений)
        """
        self.timeout = timeout
        self._client = client
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def load_records(self, source: str) -> list[Any]:
        """
        Загружает список записей каталога.

        Args:
            source: URL или путь к JSON файлу

        Returns:
            Список сырых записей

        Raises:
            CatalogLoadError: Ошибка сети, статуса ответа, чтения файла или разбора JSON
        """
        self._logger.info(f"Начинаю загрузку каталога из {source}")

        if source.lower().startswith(("http://", "https://")):
            payload = await self._fetch(source)
        else:
            payload = self._read_file(source)

        if not isinstance(payload, list):
            raise CatalogLoadError(
                source,
                f"Ожидался JSON-массив записей, получено: {type(payload).__name__}"
            )

        self._logger.info(f"Получено {len(payload)} записей каталога")
        return payload

    async def _fetch(self, url: str) -> Any:
        try:
            if self._client is not None:
                response = await self._client.get(url)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url)
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            raise CatalogLoadError(url, f"Сервер вернул статус {e.response.status_code}", e) from e
        except httpx.RequestError as e:
            raise CatalogLoadError(url, f"Ошибка сети: {e}", e) from e
        except ValueError as e:
            raise CatalogLoadError(url, f"Некорректный JSON: {e}", e) from e

    def _read_file(self, path: str) -> Any:
        file_path = Path(path)
        if not file_path.exists():
            raise CatalogLoadError(path, "Файл каталога не найден")

        try:
            return json.loads(file_path.read_text(encoding="utf-8"))
        except OSError as e:
            raise CatalogLoadError(path, f"Ошибка чтения файла: {e}", e) from e
        except ValueError as e:
            raise CatalogLoadError(path, f"Некорректный JSON: {e}", e) from e
