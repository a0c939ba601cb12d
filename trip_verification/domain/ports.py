"""
Ports the lifecycle engine depends on.

The engine only talks to these abstractions; SQL-backed and in-memory
implementations live in ``trip_verification.infrastructure``.  Stores are
append-only: there is no delete anywhere.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Optional, Sequence

from .entities import OracleSubmission, Trip
from .registry import Configuration


class TripStore(ABC):
    @abstractmethod
    async def get(self, trip_id: int, *, for_update: bool = False) -> Optional[Trip]: ...

    @abstractmethod
    async def insert(self, trip: Trip) -> None: ...

    @abstractmethod
    async def update(self, trip: Trip) -> None: ...


class OracleSubmissionStore(ABC):
    @abstractmethod
    async def get(self, trip_id: int) -> Optional[OracleSubmission]: ...

    @abstractmethod
    async def put(self, submission: OracleSubmission) -> None:
        """Insert or overwrite the submission for ``submission.trip_id``."""


class ConfigurationStore(ABC):
    @abstractmethod
    async def load(self, *, for_update: bool = False) -> Configuration: ...

    @abstractmethod
    async def save(self, config: Configuration) -> None: ...


class MintGateway(ABC):
    @abstractmethod
    async def mint(
        self,
        amount: int,
        driver: str,
        passengers: Sequence[str],
        *,
        trip_id: int,
        token_contract: str,
    ) -> None: ...


class Clock(ABC):
    @abstractmethod
    def now(self) -> int:
        """Current logical time; never decreases."""


class LockProvider(ABC):
    @abstractmethod
    def hold(self, key: str) -> AbstractAsyncContextManager: ...
