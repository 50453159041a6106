"""
Ports (interfaces) for the storage collaborator.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
The engine never writes by itself; it hands updated records to the port.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager

from .models import Piece, PracticeSpot, Project


class PracticeRepository(ABC):
    """
    Port for loading and saving practice data.

    Implementations:
        - InMemoryPracticeRepository: Dict-backed store with per-spot locks.
        - load_snapshot(): Builds an in-memory store from a YAML snapshot.
    """

    @abstractmethod
    async def get_spot(self, spot_id: str) -> PracticeSpot | None:
        """
        Fetch one spot with its attempt log.

        Returns:
            The spot, or None if it does not exist.
        """
        pass

    @abstractmethod
    async def save_spot(self, spot: PracticeSpot) -> None:
        """
        Persist an updated spot (SRS fields, counters and appended attempts).
        """
        pass

    @abstractmethod
    async def get_piece(self, piece_id: str) -> Piece | None:
        """
        Fetch a piece with all of its spots and their histories.
        """
        pass

    @abstractmethod
    async def list_pieces(self, piece_ids: list[str] | None = None) -> list[Piece]:
        """
        Fetch pieces by id, or every piece when ``piece_ids`` is None.

        Unknown ids are skipped.
        """
        pass

    @abstractmethod
    async def get_project(self, project_id: str) -> Project | None:
        pass

    @abstractmethod
    def lock_spot(self, spot_id: str) -> AbstractAsyncContextManager[None]:
        """
        Serialize read-modify-write cycles on a single spot.

        At most one practice attempt per spot may be in flight; the store
        is responsible for enforcing it (a row transaction, a mutex, ...).

        Raises:
            InvalidInput: The spot does not exist.
        """
        pass
