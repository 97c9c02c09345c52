"""
Test Mocks
===========

Provider callbacks that record the batches they receive.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional


class RecordingProvider:
    """Async provider recording every batch and answering through ``respond``."""

    def __init__(
        self,
        respond: Optional[Callable[[Dict[str, Any], int], Dict[str, Any]]] = None,
        delay: float = 0.0,
    ):
        self.respond = respond or (lambda arguments, index: {})
        self.delay = delay
        self.batches: List[List[Dict[str, Any]]] = []

    async def __call__(self, batch: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        self.batches.append([dict(arguments) for arguments in batch])
        if self.delay:
            await asyncio.sleep(self.delay)
        return [self.respond(arguments, index) for index, arguments in enumerate(batch)]

    @property
    def call_count(self) -> int:
        return len(self.batches)


class FailingProvider(RecordingProvider):
    """Provider that records its batch and then raises."""

    def __init__(self, error: Optional[Exception] = None):
        super().__init__()
        self.error = error or RuntimeError("provider unavailable")

    async def __call__(self, batch: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        self.batches.append([dict(arguments) for arguments in batch])
        raise self.error


class SyncProvider:
    """Plain function provider."""

    def __init__(self, respond: Callable[[Dict[str, Any], int], Dict[str, Any]]):
        self.respond = respond
        self.batches: List[List[Dict[str, Any]]] = []

    def __call__(self, batch: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        self.batches.append(list(batch))
        return [self.respond(arguments, index) for index, arguments in enumerate(batch)]


class ConcurrencyProbe:
    """Tracks how many probed providers are running at the same time."""

    def __init__(self):
        self.running = 0
        self.max_running = 0

    def provider(self, respond: Callable[[Dict[str, Any], int], Dict[str, Any]], delay: float = 0.01):
        async def callback(batch: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
            self.running += 1
            self.max_running = max(self.max_running, self.running)
            try:
                await asyncio.sleep(delay)
                return [respond(arguments, index) for index, arguments in enumerate(batch)]
            finally:
                self.running -= 1

        return callback


def echo(field: str, argument: str) -> Callable[[Dict[str, Any], int], Dict[str, Any]]:
    """Respond with ``argument`` copied into ``field``."""
    return lambda arguments, index: {field: arguments.get(argument)}


def constant(**fields: Any) -> Callable[[Dict[str, Any], int], Dict[str, Any]]:
    """Respond with the same fields for every batch entry."""
    return lambda arguments, index: dict(fields)
