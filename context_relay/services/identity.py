"""
Нормализация идентификаторов собеседников (номеров WhatsApp).

normalize_identity - чистая и тотальная функция: никогда не выбрасывает исключений
и идемпотентна, normalize_identity(normalize_identity(x)) == normalize_identity(x).
"""

import re

from context_relay.core.errors import ValidationError

COUNTRY_PREFIX = "55"
MOBILE_DIGIT = "9"
# prefix (2) + area code (2)
MOBILE_DIGIT_POSITION = 4
# prefix + area code + 8-digit subscriber, mobile digit missing
LENGTH_WITHOUT_MOBILE_DIGIT = 12
SHORT_NUMBER_THRESHOLD = 11
MAX_LENGTH = 15

_NON_DIGITS = re.compile(r"\D")


def normalize_identity(
    raw,
    country_prefix: str = COUNTRY_PREFIX,
    short_number_threshold: int = SHORT_NUMBER_THRESHOLD,
    max_length: int = MAX_LENGTH,
) -> str:
    """
    Привести номер к виду, пригодному для адресации в WhatsApp.

    Правила применяются по порядку:
        1. удалить все не-цифры;
        2. без префикса страны и не длиннее short_number_threshold -> добавить префикс;
        3. с префиксом, но без мобильной девятки (12 цифр) -> вставить "9" после DDD;
        4. обрезать до max_length цифр.

    Пример:
        >>> normalize_identity("+55 (81) 8765-4321")
        '5581987654321'
        >>> normalize_identity("81 98765-4321")
        '5581987654321'
    """
    digits = _NON_DIGITS.sub("", str(raw or ""))
    if not digits:
        return ""

    if not digits.startswith(country_prefix) and len(digits) <= short_number_threshold:
        digits = country_prefix + digits

    if digits.startswith(country_prefix) and len(digits) == LENGTH_WITHOUT_MOBILE_DIGIT:
        digits = digits[:MOBILE_DIGIT_POSITION] + MOBILE_DIGIT + digits[MOBILE_DIGIT_POSITION:]

    return digits[:max_length]


def resolve_target(raw, field: str = "identity") -> str:
    """
    Ключ истории и адресат отправки для идентификатора собеседника.

    Номер нормализуется; идентификатор без цифр используется как есть
    (без пробелов по краям).

    Raises:
        ValidationError: Если идентификатор пустой
    """
    if raw is None or not str(raw).strip():
        raise ValidationError(field)
    return normalize_identity(raw) or str(raw).strip()
