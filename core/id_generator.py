import random

# Двухзначные коды сущностей
TYPE_POSTFIX = {
    "users": 11,
    "photos": 13,
    "ratings": 14,
    "rating_stats": 15,
    "rating_queue": 16,
}


def generate_random_id(entity: str) -> int:
    """Возвращает id: 9 случайных цифр + 2-значный постфикс таблицы."""
    if entity not in TYPE_POSTFIX:
        raise ValueError(f"Unknown entity for ID generation: {entity}")
    rand9 = random.randint(100_000_000, 999_999_999)
    return rand9 * 100 + TYPE_POSTFIX[entity]
