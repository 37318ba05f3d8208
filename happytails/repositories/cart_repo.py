# happytails/repositories/cart_repo.py
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from happytails.schemas.cart import CartItem

logger = logging.getLogger(__name__)

CART_KEY = "cart"


class CartRepository(ABC):
    """
    Persistence contract for the client-side cart.

    The whole list is read once and written back as a whole on every
    mutation. Concurrent writers to the same backing store are
    last-writer-wins.
    """

    @abstractmethod
    def load(self) -> list[CartItem]:
        """Return the persisted cart (empty list when nothing is stored)."""

    @abstractmethod
    def save(self, items: list[CartItem]) -> None:
        """Replace the persisted cart with `items`."""


class InMemoryCartRepository(CartRepository):
    """Process-local cart; used by tests and short-lived sessions."""

    def __init__(self, items: list[CartItem] | None = None):
        self._items = [item.model_copy() for item in items or []]
        self.save_count = 0

    def load(self) -> list[CartItem]:
        return [item.model_copy() for item in self._items]

    def save(self, items: list[CartItem]) -> None:
        self._items = [item.model_copy() for item in items]
        self.save_count += 1


class JsonFileCartRepository(CartRepository):
    """
    Cart stored under a single key of a JSON document on disk.

    Other keys in the document are preserved on save. A missing or
    unreadable file loads as an empty cart.
    """

    def __init__(self, path: str | Path, key: str = CART_KEY):
        self.path = Path(path)
        self.key = key

    def _read_document(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read cart file %s: %s", self.path, exc)
            return {}
        return document if isinstance(document, dict) else {}

    def load(self) -> list[CartItem]:
        raw_items = self._read_document().get(self.key) or []
        return [CartItem.model_validate(raw) for raw in raw_items]

    def save(self, items: list[CartItem]) -> None:
        document = self._read_document()
        document[self.key] = [item.model_dump(mode="json") for item in items]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(document, indent=2), encoding="utf-8")
