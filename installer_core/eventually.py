from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Succeeded(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failed:
    reason: str


Result = Union[Succeeded[T], Failed]


@dataclass(frozen=True)
class Pending:
    """A fact that has not resolved yet."""


@dataclass(frozen=True)
class Ready(Generic[T]):
    result: T


Eventually = Union[Pending, Ready[T]]

PENDING = Pending()


def succeeded(result: Result) -> bool:
    return isinstance(result, Succeeded)


def failed(result: Result) -> bool:
    return isinstance(result, Failed)


def map_result(result: Result[T], fn: Callable[[T], U]) -> Result[U]:
    if isinstance(result, Succeeded):
        return Succeeded(fn(result.value))
    return result


def is_pending(fact: Eventually) -> bool:
    return isinstance(fact, Pending)


def ready(result: T) -> Ready[T]:
    return Ready(result)


def fact_to_dict(fact: Eventually, encode: Callable[[object], object] = lambda v: v) -> dict:
    if isinstance(fact, Pending):
        return {"ready": False}
    result = fact.result
    if isinstance(result, Failed):
        return {"ready": True, "ok": False, "error": result.reason}
    if isinstance(result, Succeeded):
        value = result.value
        return {"ready": True, "ok": True, "result": None if value is None else encode(value)}
    return {"ready": True, "result": encode(result)}
