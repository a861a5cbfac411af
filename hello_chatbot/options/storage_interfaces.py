# hello_chatbot/options/storage_interfaces.py
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Mapping


class AbstractOptionStore(ABC):
    """
    Durable key-value configuration store.

    Values are arbitrary JSON-serializable scalars. Absent keys are never an
    error: readers get the default they pass in.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the backend for use."""
        pass

    @abstractmethod
    async def teardown(self) -> None:
        """Release backend resources."""
        pass

    @abstractmethod
    async def get_option(self, name: str, default: Any = None) -> Any:
        """Return the stored value for `name`, or `default` when absent."""
        pass

    @abstractmethod
    async def get_options(self, names: Iterable[str]) -> Dict[str, Any]:
        """
        Return the stored values for the given names.

        Absent names are left out of the result.
        """
        pass

    @abstractmethod
    async def update_option(self, name: str, value: Any) -> None:
        """Insert or replace a single option."""
        pass

    @abstractmethod
    async def update_options(self, values: Mapping[str, Any]) -> None:
        """
        Insert or replace several options in one transaction.

        Either every value is written or none is.
        """
        pass

    @abstractmethod
    async def delete_option(self, name: str) -> bool:
        """Remove an option. Returns False if it did not exist."""
        pass
