import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, Generic, Hashable, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Settled(Generic[T]):
    """Outcome of one branch of a fan-out: a value or the error that ended it"""
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_settled(branches: Dict[Hashable, Awaitable[Any]]) -> Dict[Hashable, Settled]:
    """
    Run named awaitables concurrently and wait for all of them.

    A failing branch never cancels its siblings and never fails the join;
    its exception is returned in the branch's Settled. Cancellation of the
    caller still propagates.
    """
    keys = list(branches)
    results = await asyncio.gather(*(branches[k] for k in keys), return_exceptions=True)

    settled = {}
    for key, result in zip(keys, results):
        if isinstance(result, BaseException):
            settled[key] = Settled(error=result)
        else:
            settled[key] = Settled(value=result)
    return settled
