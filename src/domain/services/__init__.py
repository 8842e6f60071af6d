"""
Domain services - сценарии работы с каталогом.
Содержит управление загрузкой каталога и сессию интерактивного поиска.
"""
from .catalog_management import CatalogManagementService
from .search_session import SearchSession, SessionStatus, SessionUpdate

__all__ = [
    # Управление каталогом
    "CatalogManagementService",

    # Интерактивный поиск
    "SearchSession",
    "SessionStatus",
    "SessionUpdate",
]
