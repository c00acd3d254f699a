from abc import ABC, abstractmethod
from enum import Enum

from typing import Any, Generic, NamedTuple, Optional, TypeVar

# Key of the virtual node; never a valid key of a real node
VIRTUAL_KEY = -1


class ErrorKind(Enum):
    """
    Reasons an operation on an ordered map can be rejected.
    A rejected operation never mutates the structure.
    """
    DUPLICATE_KEY = "duplicate_key"
    NOT_FOUND = "not_found"
    EMPTY_TREE = "empty_tree"
    PRECONDITION_VIOLATION = "precondition_violation"


class Outcome(NamedTuple):
    """
    The result of a public operation on an ordered map.

    Attributes:
        payload (Any): The operation's result (a value, a rebalance count,
            a join cost or a pair of trees). None if the operation failed.
        error (Optional[ErrorKind]): The reason the operation was rejected,
            or None on success.
    """
    payload: Any = None
    error: Optional[ErrorKind] = None

    @classmethod
    def success(cls, payload: Any = None) -> "Outcome":
        return cls(payload, None)

    @classmethod
    def failure(cls, error: ErrorKind) -> "Outcome":
        return cls(None, error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """
        Return the payload of a successful outcome.

        Raises:
            LookupError: If the outcome carries an error.
        """
        if self.error is not None:
            raise LookupError(f"operation failed: {self.error.value}")
        return self.payload

    def __repr__(self) -> str:
        if self.error is not None:
            return f"Outcome(error={self.error.name})"
        return f"Outcome(payload={self.payload!r})"


T = TypeVar("T", bound="AbstractOrderedMap")

class AbstractOrderedMap(ABC, Generic[T]):
    """
    Abstract base class for an ordered map from integer keys to string values.
    """

    @abstractmethod
    def search(self, key: int) -> Outcome:
        """
        Retrieve the value associated with the given key.

        Parameters:
            key (int): The key to look up.

        Returns:
            Outcome: The value, or an ErrorKind.NOT_FOUND failure.
        """
        pass

    @abstractmethod
    def insert(self, key: int, value: str) -> Outcome:
        """
        Insert a key with its value.

        Parameters:
            key (int): The key to be inserted.
            value (str): The value stored with the key.

        Returns:
            Outcome: The number of rebalance operations performed, or an
                ErrorKind.DUPLICATE_KEY failure.
        """
        pass

    @abstractmethod
    def delete(self, key: int) -> Outcome:
        """
        Delete the entry with the given key.

        Parameters:
            key (int): The key of the entry to be deleted.

        Returns:
            Outcome: The number of rebalance operations performed, or an
                ErrorKind.NOT_FOUND failure.
        """
        pass

    @abstractmethod
    def size(self) -> int:
        """Return the number of entries."""
        pass


def check_key(key: Any, op: str) -> None:
    """
    Validate a key argument of a lookup operation.

    Raises:
        TypeError: If key is not an int (bools are rejected as well).
    """
    if not isinstance(key, int) or isinstance(key, bool):
        raise TypeError(f"{op}(): key must be an int, got {key!r}")


def check_new_key(key: Any, op: str) -> None:
    """
    Validate the key of a node about to be created.

    Raises:
        TypeError: If key is not an int.
        ValueError: If key is the reserved virtual key.
    """
    check_key(key, op)
    if key == VIRTUAL_KEY:
        raise ValueError(f"{op}(): key {VIRTUAL_KEY} is reserved for the virtual node")
