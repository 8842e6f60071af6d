"""
Утилиты для работы с текстом.
Форматирование цен и исходящих сообщений о товаре.
"""
from decimal import Decimal, ROUND_HALF_EVEN
from urllib.parse import quote

from src.domain.entities.product import Product

INQUIRY_TEMPLATE = "Hola, quiero consultar por:\n{description}\nCódigo: {code}\nPrecio: ${price}"


def format_price(price: float) -> str:
    """
    Форматирует цену в аргентинском формате (es-AR).

    Разделитель тысяч - точка, десятичный - запятая, не более трех
    знаков после запятой, незначащие нули отбрасываются.

    Args:
        price: Цена

    Returns:
        Отформатированная строка

    Example:
        >>> format_price(1234567)
        '1.234.567'

        >>> format_price(1500.5)
        '1.500,5'
    """
    try:
        value = Decimal(str(price)).quantize(Decimal("0.001"), rounding=ROUND_HALF_EVEN)
    except (ArithmeticError, ValueError):
        return "0"
    if not value.is_finite():
        return "0"

    sign = "-" if value < 0 else ""
    integer_part, _, fraction = f"{abs(value):f}".partition(".")
    fraction = fraction.rstrip("0")

    groups = []
    while len(integer_part) > 3:
        groups.insert(0, integer_part[-3:])
        integer_part = integer_part[:-3]
    groups.insert(0, integer_part)

    formatted = ".".join(groups)
    if fraction:
        formatted = f"{formatted},{fraction}"
    return f"{sign}{formatted}"


def build_inquiry_message(product: Product) -> str:
    """
    Готовое сообщение для запроса о товаре через мессенджер.

    Example:
        >>> build_inquiry_message(Product(code="100", description="MARTILLO", price=1000))
        'Hola, quiero consultar por:\\nMARTILLO\\nCódigo: 100\\nPrecio: $1.000'
    """
    return INQUIRY_TEMPLATE.format(
        description=product.description,
        code=product.code,
        price=format_price(product.price),
    )


def build_whatsapp_url(product: Product, base_url: str = "https://wa.me/") -> str:
    """
    Ссылка на диалог WhatsApp с подставленным сообщением о товаре.
    Открывает ссылку клиент, ядро только формирует ее.
    """
    return f"{base_url}?text={quote(build_inquiry_message(product), safe='')}"


def format_result_count(shown: int, total: int, filtered: bool) -> str:
    """
    Подпись счетчика товаров.

    Args:
        shown: Количество найденных товаров
        total: Размер каталога
        filtered: Активен ли запрос или фильтр по рубрике
    """
    if filtered:
        return f"{shown} de {total} productos"
    return f"{total} productos disponibles"
