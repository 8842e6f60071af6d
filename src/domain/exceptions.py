"""
Исключения поискового ядра каталога.
"""
from typing import Optional


class CatalogError(Exception):
    """Базовое исключение для операций с каталогом"""
    pass


class CatalogLoadError(CatalogError):
    """Не удалось получить или разобрать каталог целиком"""

    def __init__(self, source: str, message: str, original_error: Optional[Exception] = None):
        self.source = source
        self.original_error = original_error
        super().__init__(f"[{source}] {message}")


class MalformedRecordError(CatalogError):
    """Запись каталога не содержит обязательных полей"""

    def __init__(self, message: str, record: object = None):
        self.record = record
        super().__init__(message)
