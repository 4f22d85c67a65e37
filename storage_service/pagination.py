import math
from typing import Tuple

from storage_service.config import settings


def normalize_pagination(page: int, page_size: int) -> Tuple[int, int]:
    """Clamp paging parameters: page < 1 becomes 1, an out of range page size falls back to the default"""
    if page < 1:
        page = 1
    if page_size < 1 or page_size > settings.max_page_size:
        page_size = settings.default_page_size
    return page, page_size


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size > 0 else 0
