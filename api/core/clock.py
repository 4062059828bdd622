"""Injectable "today" for endpoints whose results depend on the current day.

Current-streak semantics treat an undone *today* as pending, so the date
used as today must be swappable in tests:

    app.dependency_overrides[get_today] = lambda: date(2024, 1, 4)
"""

from datetime import date
from typing import Annotated

from fastapi import Depends

from models import utc_today


def get_today() -> date:
    return utc_today()


Today = Annotated[date, Depends(get_today)]
