"""Base agent class for report sources."""
import logging
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from ..utils.http import HttpClient
from .collection_context import CollectionContext

T = TypeVar("T")


class BaseAgent(ABC, Generic[T]):
    """
    Base class for all report sources.

    An agent fetches one part of the report. ``fetch`` may raise; the
    collector catches the error and uses ``fallback`` instead.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"agents.{self.__class__.__name__.lower()}")

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Get the agent's name.

        Returns:
            Agent name, unique within a collector
        """

    @abstractmethod
    async def fetch(self, ctx: CollectionContext) -> T:
        """
        Fetch and parse this agent's part of the report.

        Args:
            ctx: Collection context

        Returns:
            The parsed value
        """

    @abstractmethod
    def fallback(self) -> T:
        """Value used when ``fetch`` fails."""

    @staticmethod
    def client(ctx: CollectionContext) -> HttpClient:
        if ctx.http_client is None:
            raise RuntimeError("HTTP client not initialized. Enter the CollectionContext first.")
        return ctx.http_client
