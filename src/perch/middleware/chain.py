"""Middleware chain with explicit continuation.

Runs a route's middleware in order. Each stage receives a ``proceed``
callback; the chain only moves on to the next stage (and finally to the
handler) if the stage called it before returning.

States::

    PENDING -> RUNNING -> DISPATCHING -> DONE
                  |            |
                  v            v
               HALTED       FAILED   (FAILED is reachable from any state)
"""

from collections.abc import Sequence
from enum import Enum

from perch.http.request import Request
from perch.middleware.registry import MiddlewareRegistry


class ChainState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    DISPATCHING = "dispatching"
    DONE = "done"
    HALTED = "halted"
    FAILED = "failed"


class MiddlewareChain:
    """One request's pass through a route's middleware.

    ``position`` is the index of the stage currently (or last) running.
    ``completed`` lists the identifiers whose stage called ``proceed``.
    """

    __slots__ = ("_registry", "completed", "identifiers", "position", "state")

    def __init__(self, identifiers: Sequence[str], registry: MiddlewareRegistry) -> None:
        self.identifiers: tuple[str, ...] = tuple(identifiers)
        self._registry = registry
        self.state = ChainState.PENDING
        self.position = 0
        self.completed: list[str] = []

    def run(self, request: Request) -> bool:
        """Run every stage in order.

        Returns True when the chain reaches ``DISPATCHING`` and the
        handler may run, False when a stage halted it. Exceptions from a
        stage (including ``MiddlewareConfigError``) move the chain to
        ``FAILED`` and propagate.
        """
        self.state = ChainState.RUNNING
        try:
            for index, name in enumerate(self.identifiers):
                self.position = index
                middleware = self._registry.resolve(name)

                proceeded = False

                def proceed() -> None:
                    nonlocal proceeded
                    proceeded = True

                middleware.handle(request, proceed)

                if not proceeded:
                    self.state = ChainState.HALTED
                    return False
                self.completed.append(name)
        except Exception:
            self.state = ChainState.FAILED
            raise

        self.state = ChainState.DISPATCHING
        return True

    def finish(self) -> None:
        self.state = ChainState.DONE

    def fail(self) -> None:
        self.state = ChainState.FAILED
