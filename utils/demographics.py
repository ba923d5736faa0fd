from datetime import date
from typing import Optional

# (верхняя граница возраста, не включая; подпись)
AGE_BUCKETS = (
    (20, "18-19"),
    (25, "20-24"),
    (30, "25-29"),
    (35, "30-34"),
    (40, "35-39"),
    (50, "40-49"),
)


def get_age_range(birth_year: Optional[int], today: Optional[date] = None) -> Optional[str]:
    """Возрастной диапазон по году рождения, без точного возраста."""
    if not birth_year:
        return None
    today = today or date.today()
    age = today.year - birth_year
    for upper, label in AGE_BUCKETS:
        if age < upper:
            return label
    return "50+"
