"""Caller identity captured at submission time and replayed inside worker threads.

Worker threads do not inherit context variables from the thread that submitted
the job, so the dispatch layer captures the identity while still on the request
thread and hands it to the worker explicitly. ``use_caller`` then re-establishes
it for any collaborator that reads ``current_caller()``.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass


@dataclass(frozen=True)
class CallerIdentity:
    email: str


_current_caller: ContextVar[CallerIdentity | None] = ContextVar("current_caller", default=None)


def current_caller() -> CallerIdentity | None:
    return _current_caller.get()


@contextmanager
def use_caller(identity: CallerIdentity | None) -> Iterator[CallerIdentity | None]:
    token = _current_caller.set(identity)
    try:
        yield identity
    finally:
        _current_caller.reset(token)


def identity_from_header(raw_value: str | None) -> CallerIdentity | None:
    """Build an identity from a trusted header value; blank means anonymous."""
    if raw_value is None:
        return None
    email = raw_value.strip()
    if not email:
        return None
    return CallerIdentity(email=email)
