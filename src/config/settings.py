"""
Настройки приложения через переменные окружения
"""
import os


class Settings:
    """Основные настройки приложения"""

    def __init__(self):
        # Основные
        self.environment: str = os.getenv("ENVIRONMENT", "production")
        self.debug: bool = os.getenv("DEBUG", "false").lower() == "true"
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")

        # Источник каталога: URL (http/https) или путь к JSON файлу
        self.catalog_source: str = os.getenv("CATALOG_SOURCE", "data/products.json")
        self.catalog_fetch_timeout: float = float(os.getenv("CATALOG_FETCH_TIMEOUT", "30"))

        # Загрузка каталога порциями
        self.catalog_batch_size: int = int(os.getenv("CATALOG_BATCH_SIZE", "1000"))
        self.catalog_yield_every: int = int(os.getenv("CATALOG_YIELD_EVERY", "5"))

        # Настройки поиска
        self.search_debounce_ms: int = int(os.getenv("SEARCH_DEBOUNCE_MS", "300"))
        self.search_page_size: int = int(os.getenv("SEARCH_PAGE_SIZE", "30"))
        self.search_max_results: int = int(os.getenv("SEARCH_MAX_RESULTS", "100"))
        self.search_cache_size: int = int(os.getenv("SEARCH_CACHE_SIZE", "50"))
        self.search_min_score: float = float(os.getenv("SEARCH_MIN_SCORE", "0.01"))
        self.search_hide_unpriced: bool = os.getenv("SEARCH_HIDE_UNPRICED", "false").lower() == "true"
        self.search_slot_prefill: int = int(os.getenv("SEARCH_SLOT_PREFILL", "10"))

        # Исходящие сообщения
        self.whatsapp_base_url: str = os.getenv("WHATSAPP_BASE_URL", "https://wa.me/")

    @property
    def catalog_is_remote(self) -> bool:
        """Каталог загружается по сети"""
        return self.catalog_source.lower().startswith(("http://", "https://"))

    @property
    def search_debounce_seconds(self) -> float:
        """Задержка debounce в секундах"""
        return max(self.search_debounce_ms, 0) / 1000


# Глобальный экземпляр настроек (lazy initialization)
_settings_instance = None

def get_settings() -> Settings:
    """Получить экземпляр настроек (создается при первом обращении)"""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance

# Для обратной совместимости
settings = get_settings()
