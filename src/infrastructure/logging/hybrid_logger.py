"""
Гибридная система логирования
- DEBUG, INFO → консоль
- ERROR, WARNING, CRITICAL → консоль + журнал событий в памяти
- BUSINESS события → журнал событий для статистики
"""
import logging
import sys
from collections import deque
from datetime import datetime
from typing import Any, Dict, List, Optional

from src.config.settings import settings

logger = logging.getLogger(__name__)

JOURNAL_LEVELS = ("ERROR", "WARNING", "CRITICAL", "BUSINESS")


class HybridLogger:
    """Гибридная система логирования"""

    def __init__(self, journal_size: int = 200):
        self._setup_console_logger()
        self._journal: deque = deque(maxlen=journal_size)

    def _setup_console_logger(self) -> None:
        """Настройка консольного логгера"""
        self.file_logger = logging.getLogger("catalog_search")
        self.file_logger.setLevel(logging.DEBUG)

        # Консольный handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        console_handler.setFormatter(formatter)

        # Проверяем, что handler еще не добавлен
        if not self.file_logger.handlers:
            self.file_logger.addHandler(console_handler)

    async def log(
        self,
        level: str,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Основной метод логирования"""
        level_upper = level.upper()

        # Всегда в консоль
        log_level = getattr(logging, level_upper, logging.INFO)
        self.file_logger.log(log_level, message)

        # В журнал для WARNING и выше
        if level_upper in JOURNAL_LEVELS:
            self._journal.append({
                "level": level_upper,
                "message": message,
                "metadata": metadata or {},
                "created_at": datetime.utcnow().isoformat(),
            })

    def recent_events(self, limit: int = 20, level: Optional[str] = None) -> List[Dict[str, Any]]:
        """Последние события журнала, новые первыми"""
        events = [e for e in reversed(self._journal) if level is None or e["level"] == level.upper()]
        return events[:limit]

    async def error(self, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Логирование ошибок"""
        await self.log("ERROR", message, metadata)

    async def warning(self, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Логирование предупреждений"""
        await self.log("WARNING", message, metadata)

    async def critical(self, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Логирование критических ошибок"""
        await self.log("CRITICAL", message, metadata)

    async def business(self, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Логирование бизнес-событий"""
        await self.log("BUSINESS", message, metadata)

    async def info(self, message: str) -> None:
        """Информационное логирование (только в консоль)"""
        self.file_logger.info(message)

    async def debug(self, message: str) -> None:
        """Отладочное логирование (только в консоль)"""
        self.file_logger.debug(message)


# Глобальный экземпляр логгера
hybrid_logger = HybridLogger()
