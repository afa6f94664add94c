import math
from typing import Annotated

from fastapi import Query

LimitParam = Annotated[int, Query(ge=1, le=100)]
OffsetParam = Annotated[int, Query(ge=0)]
PageParam = Annotated[int, Query(ge=1)]


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0
