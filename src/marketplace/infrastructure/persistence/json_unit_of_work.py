"""Unit of Work over the JSON document store.

Entering takes the store lock and loads the document; the repositories
work on that in-memory copy. ``commit()`` writes the whole document back
in one atomic replace. Leaving the block releases the lock, so nothing
another process reads is ever half-written.
"""

from __future__ import annotations

from contextlib import ExitStack
from typing import Any

from marketplace.domain.repository.unit_of_work import UnitOfWork
from marketplace.infrastructure.persistence.json_cart_repository import JsonCartRepository
from marketplace.infrastructure.persistence.json_order_repository import JsonOrderRepository
from marketplace.infrastructure.persistence.json_product_repository import JsonProductRepository
from marketplace.infrastructure.persistence.json_session_repository import JsonSessionRepository
from marketplace.infrastructure.persistence.json_store import JsonDocumentStore


class JsonUnitOfWork(UnitOfWork):

    def __init__(self, store: JsonDocumentStore) -> None:
        self._store = store
        self._stack: ExitStack | None = None
        self._document: dict[str, Any] | None = None

    def _begin(self) -> None:
        stack = ExitStack()
        stack.enter_context(self._store.locked())
        try:
            self._document = self._store.read()
        except BaseException:
            stack.close()
            raise
        self._stack = stack
        self._bind(self._document)

    def _bind(self, document: dict[str, Any]) -> None:
        self.products = JsonProductRepository(document["products"])
        self.carts = JsonCartRepository(document["carts"])
        self.sessions = JsonSessionRepository(document["sessions"], document["guest_merges"])
        self.orders = JsonOrderRepository(document["orders"], document["meta"])

    def _commit(self) -> None:
        if self._document is None:
            raise RuntimeError("commit() called outside of a unit of work")
        self._store.write(self._document)

    def rollback(self) -> None:
        # Uncommitted changes only ever lived in the loaded copy.
        self._document = None

    def _end(self) -> None:
        if self._stack is not None:
            self._stack.close()
            self._stack = None
