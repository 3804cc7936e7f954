from typing import Callable

from fastapi import Query


def clamp_limit(limit: int, default: int, maximum: int) -> int:
    """Out-of-range limits fall back to the default instead of erroring."""
    if limit is None or limit <= 0 or limit > maximum:
        return default
    return limit


def clamp_offset(offset: int) -> int:
    if offset is None or offset < 0:
        return 0
    return offset


class LimitOffsetParams:
    def __init__(self, limit: int, offset: int):
        self.limit = limit
        self.offset = offset


def limit_offset(default: int = 20, maximum: int = 100) -> Callable[..., LimitOffsetParams]:
    """
    Build a dependency reading `limit`/`offset` query parameters.

    Usage: `page: LimitOffsetParams = Depends(limit_offset(default=50))`
    """
    def dependency(
        limit: int = Query(default, description=f"Page size (max {maximum})"),
        offset: int = Query(0, description="Number of items to skip"),
    ) -> LimitOffsetParams:
        return LimitOffsetParams(clamp_limit(limit, default, maximum), clamp_offset(offset))

    return dependency
