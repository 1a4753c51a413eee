from __future__ import annotations

import concurrent.futures as _fut
from typing import Callable, List, Sequence, TypeVar


_T = TypeVar("_T")
_R = TypeVar("_R")


def map_ordered(fn: Callable[[_T], _R], items: Sequence[_T], jobs: int = 1) -> List[_R]:
    """Apply ``fn`` to every item, on up to ``jobs`` threads, keeping input order."""
    # Executor.map yields in submission order regardless of completion order
    if jobs <= 1 or len(items) <= 1:
        return [fn(it) for it in items]
    with _fut.ThreadPoolExecutor(max_workers=jobs) as ex:
        return list(ex.map(fn, items))
