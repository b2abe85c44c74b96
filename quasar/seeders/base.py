"""
Base class for table-initialization seeders
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass

from sqlalchemy.orm import Session


@dataclass
class SeedResult:
    created: int = 0
    updated: int = 0
    skipped: int = 0

    def __str__(self) -> str:
        return f"created={self.created} updated={self.updated} skipped={self.skipped}"


class BaseSeeder(ABC):
    """
    A seeder inserts reference rows that are missing

    Seeders never delete; running one twice leaves the second run
    with only skipped rows. The registry commits after each seeder.
    """

    name: str = ""
    description: str = ""

    @abstractmethod
    def run(self, db: Session) -> SeedResult:
        """Insert missing rows and flush them"""
        pass
