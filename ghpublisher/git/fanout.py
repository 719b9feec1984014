"""Run a per-target operation over several targets."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

from ..config import RepoTarget

T = TypeVar("T")


def fan_out(
    func: Callable[[RepoTarget], T],
    targets: Sequence[RepoTarget],
    max_workers: int = 1,
) -> list[T]:
    """Apply ``func`` to each target, results in target order.

    Targets are independent, so with ``max_workers > 1`` they run in parallel
    threads. Work inside a single target stays sequential.
    """
    if max_workers <= 1 or len(targets) <= 1:
        return [func(target) for target in targets]

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(func, targets))
