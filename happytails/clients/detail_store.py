# happytails/clients/detail_store.py
"""
Admin detail pages: one record plus its related panels.

A single ResourceDetailStore, parameterised by a ResourceSpec, serves
every admin entity (events, products, vendors, customers, event
managers, orders). The primary record and each related panel carry their
own loading flag and error slot, so a failing panel never hides the
record itself.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, TypeVar

from pydantic import BaseModel

from happytails.clients.api_client import HappyTailsClient
from happytails.core.errors import DomainError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RelatedResource:
    """A sub-resource fetched next to the detail record."""

    name: str
    path: str
    payload_key: str
    default: Any = None


@dataclass(frozen=True)
class ResourceSpec:
    entity: str
    base_path: str
    payload_key: str
    related: tuple[RelatedResource, ...] = ()

    def detail_path(self, resource_id: Any) -> str:
        return f"{self.base_path}/{resource_id}"

    def related_path(self, resource_id: Any, related: RelatedResource) -> str:
        return f"{self.base_path}/{resource_id}{related.path}"


RESOURCE_SPECS: dict[str, ResourceSpec] = {
    "event": ResourceSpec(
        entity="event",
        base_path="/admin/events",
        payload_key="event",
        related=(RelatedResource("attendees", "/attendees", "attendees", []),),
    ),
    "product": ResourceSpec(
        entity="product",
        base_path="/admin/products",
        payload_key="product",
        related=(
            RelatedResource("metrics", "/data", "metrics"),
            RelatedResource("customers", "/customers", "customers", []),
        ),
    ),
    "vendor": ResourceSpec(
        entity="vendor",
        base_path="/admin/vendors",
        payload_key="vendor",
        related=(
            RelatedResource("products", "/products", "products", []),
            RelatedResource("revenue", "/revenue", "metrics"),
            RelatedResource("top_customers", "/top-customers", "customers", []),
        ),
    ),
    "user": ResourceSpec(
        entity="user",
        base_path="/admin/customers",
        payload_key="customer",
        related=(
            RelatedResource("top_ordered", "/top-ordered", "products", []),
            RelatedResource("top_events", "/top-events", "events", []),
        ),
    ),
    "event_manager": ResourceSpec(
        entity="event_manager",
        base_path="/admin/event-managers",
        payload_key="manager",
        related=(
            RelatedResource("metrics", "/metrics", "metrics"),
            RelatedResource("upcoming_events", "/upcoming-events", "events", []),
            RelatedResource("past_events", "/past-events", "events", []),
        ),
    ),
    "order": ResourceSpec(
        entity="order",
        base_path="/admin/orders",
        payload_key="order",
    ),
}


@dataclass
class ResourceDetailState(Generic[T]):
    """
    While loading_detail is True, `selected` still holds the previous
    successful load (or None). `error` may coexist with `selected`.
    """

    selected: T | None = None
    related: dict[str, Any] = field(default_factory=dict)
    loading_detail: bool = False
    loading_related: dict[str, bool] = field(default_factory=dict)
    error: str | None = None
    related_errors: dict[str, str | None] = field(default_factory=dict)
    mutation_error: str | None = None

    def is_loading(self, name: str) -> bool:
        return self.loading_related.get(name, False)


def _merge(current: Any, data: dict[str, Any]) -> Any:
    if isinstance(current, BaseModel):
        return current.model_copy(update=data)
    if isinstance(current, dict):
        return {**current, **data}
    return current


class ResourceDetailStore(Generic[T]):
    """
    Detail + related state for one admin entity type.

    Responsibilities:
      - load_detail / load_related / load (parallel)
      - update (PUT) with echo-or-merge reconciliation
      - delete, clearing local state when it was the selected record
      - discard responses for an id that is no longer current
      - close(): cancel in-flight requests and clear
    """

    def __init__(
        self,
        client: HappyTailsClient,
        spec: ResourceSpec,
        parser: Callable[[Any], T] | None = None,
    ):
        self.client = client
        self.spec = spec
        self.parser = parser
        self.state: ResourceDetailState[T] = ResourceDetailState()
        self.current_id: Any = None
        self._tasks: set[asyncio.Task] = set()

    # -------- Plumbing --------

    def _parse(self, payload: Any) -> T:
        return self.parser(payload) if self.parser is not None else payload

    async def _fetch(self, call: Awaitable[dict[str, Any]]) -> dict[str, Any]:
        task = asyncio.ensure_future(call)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return await task

    def _is_current(self, resource_id: Any) -> bool:
        return self.current_id == resource_id

    # -------- Loads --------

    async def load_detail(self, resource_id: Any) -> T | None:
        """
        Fetch the primary record. On failure the error is recorded and the
        previously selected record is kept.
        """
        self.current_id = resource_id
        self.state.loading_detail = True
        self.state.error = None
        try:
            body = await self._fetch(self.client.get(self.spec.detail_path(resource_id)))
        except DomainError as exc:
            if self._is_current(resource_id):
                logger.warning(
                    "Loading %s %s failed: %s", self.spec.entity, resource_id, exc.message
                )
                self.state.error = exc.message
                self.state.loading_detail = False
            return None

        if not self._is_current(resource_id):
            return None
        self.state.selected = self._parse(body.get(self.spec.payload_key))
        self.state.loading_detail = False
        return self.state.selected

    async def _load_one(self, resource_id: Any, related: RelatedResource) -> None:
        name = related.name
        self.state.loading_related[name] = True
        self.state.related_errors[name] = None
        try:
            body = await self._fetch(
                self.client.get(self.spec.related_path(resource_id, related))
            )
        except DomainError as exc:
            if self._is_current(resource_id):
                self.state.related_errors[name] = exc.message
                self.state.related.setdefault(name, related.default)
                self.state.loading_related[name] = False
            return

        if not self._is_current(resource_id):
            return
        self.state.related[name] = body.get(related.payload_key, related.default)
        self.state.loading_related[name] = False

    async def load_related(self, resource_id: Any) -> dict[str, Any]:
        """Fetch every related panel in parallel; each fails on its own."""
        self.current_id = resource_id
        await asyncio.gather(
            *(self._load_one(resource_id, related) for related in self.spec.related)
        )
        return self.state.related

    async def load(self, resource_id: Any) -> ResourceDetailState[T]:
        await asyncio.gather(
            self.load_detail(resource_id),
            self.load_related(resource_id),
        )
        return self.state

    # -------- Mutations --------

    async def update(self, resource_id: Any, data: dict[str, Any]) -> T | None:
        """
        PUT the changes. Server messages are raised (and kept in
        `mutation_error`) verbatim. The selected record is refreshed from
        the echoed object, or merged from `data` when nothing is echoed.
        """
        self.state.mutation_error = None
        try:
            body = await self._fetch(
                self.client.put(self.spec.detail_path(resource_id), json=data)
            )
        except DomainError as exc:
            self.state.mutation_error = exc.message
            raise

        if not self._is_current(resource_id):
            return None

        echoed = body.get(self.spec.payload_key)
        if echoed is not None:
            self.state.selected = self._parse(echoed)
        elif self.state.selected is not None:
            self.state.selected = _merge(self.state.selected, data)
        return self.state.selected

    async def delete(self, resource_id: Any) -> str:
        """
        DELETE the record. Returns the list path the caller should go back to.
        """
        self.state.mutation_error = None
        try:
            await self._fetch(self.client.delete(self.spec.detail_path(resource_id)))
        except DomainError as exc:
            self.state.mutation_error = exc.message
            raise

        if self._is_current(resource_id):
            self.clear()
        return self.spec.base_path

    # -------- Teardown --------

    def clear(self) -> None:
        self.state = ResourceDetailState()
        self.current_id = None

    async def close(self) -> None:
        """Cancel outstanding requests and clear the state."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self.clear()

    async def __aenter__(self) -> "ResourceDetailStore[T]":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


def detail_store(
    client: HappyTailsClient,
    entity: str,
    parser: Callable[[Any], T] | None = None,
) -> ResourceDetailStore[T]:
    """Build the store for one of RESOURCE_SPECS' entities."""
    try:
        spec = RESOURCE_SPECS[entity]
    except KeyError:
        raise ValueError(f"Unknown admin entity: {entity}") from None
    return ResourceDetailStore(client, spec, parser)
