"""Session state machine for browsing and searching remote log files."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from datetime import date
from typing import Any, Protocol

from logdash.config import Settings
from logdash.log_api import LogApiError
from logdash.models import (
    SCOPE_FIELDS,
    Environment,
    FilterField,
    FilterSelection,
    LogFileEntry,
    NavigationDirection,
    SessionStatus,
)

logger = logging.getLogger(__name__)

CONTENT_PLACEHOLDER = "Loading content..."
NO_RESULTS_MESSAGE = "No results found for your search query."


class LogApi(Protocol):
    """The four remote operations a session depends on."""

    async def list_buckets(self) -> list[str]: ...

    async def list_log_files(
        self, bucket: str, environment: Environment, app_name: str, day: date
    ) -> list[LogFileEntry]: ...

    async def get_log_content(self, bucket: str, key: str) -> str: ...

    async def search_logs(
        self, bucket: str, environment: Environment, app_name: str, day: date, query: str
    ) -> list[str]: ...


class LogBrowserSession:
    """
    One user's browsing session over the log API.

    Every operation applies its local state change immediately and returns an
    asyncio.Task for the remote call, or None when nothing is requested.
    Operations must be called from a running event loop.

    Listing, content and search requests are tagged with a per-flow
    generation. A response is applied only if its generation is still the
    current one, so a slow answer to an old request never overwrites a newer
    one. A listing refresh also advances the content and search generations:
    nothing fetched for the previous filter tuple may land afterwards.
    """

    def __init__(self, client: LogApi, filters: FilterSelection | None = None) -> None:
        self._client = client
        self._filters = filters.model_copy() if filters else FilterSelection()
        self._buckets: list[str] = []
        self._listing: list[LogFileEntry] = []
        self._selected_key: str | None = None
        self._content = ""
        self._search_results: list[str] = []
        self._error: str | None = None
        self._error_flow: str | None = None

        self._catalog_task: asyncio.Task | None = None
        self._catalog_pending = False
        self._listing_pending = False
        self._content_pending = False
        self._searching = False

        self._listing_generation = 0
        self._content_generation = 0
        self._search_generation = 0
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    def from_settings(
        cls, client: LogApi, settings: Settings, today: date | None = None
    ) -> LogBrowserSession:
        """New session seeded with the configured environment, app and today's date."""
        filters = FilterSelection(
            environment=settings.default_environment,
            app_name=settings.default_app_name,
            date=today or date.today(),
        )
        return cls(client, filters)

    # -- read-only views -------------------------------------------------

    @property
    def filters(self) -> FilterSelection:
        """Copy of the current selection; change it through set_filter."""
        return self._filters.model_copy()

    @property
    def buckets(self) -> tuple[str, ...]:
        return tuple(self._buckets)

    @property
    def listing(self) -> tuple[LogFileEntry, ...]:
        return tuple(self._listing)

    @property
    def selected_key(self) -> str | None:
        return self._selected_key

    @property
    def content(self) -> str:
        return self._content

    @property
    def search_results(self) -> tuple[str, ...]:
        return tuple(self._search_results)

    @property
    def status(self) -> SessionStatus:
        return SessionStatus(
            loading=self._catalog_pending or self._listing_pending or self._content_pending,
            searching=self._searching,
            error=self._error,
        )

    @property
    def current_index(self) -> int | None:
        """Position of the selected file in the listing, or None."""
        if self._selected_key is None:
            return None
        for index, entry in enumerate(self._listing):
            if entry.key == self._selected_key:
                return index
        return None

    def can_navigate(self, direction: NavigationDirection | str) -> bool:
        return self._navigation_target(NavigationDirection(direction)) is not None

    # -- bucket catalog --------------------------------------------------

    def start(self) -> asyncio.Task:
        """Load the bucket catalog. Only the first call issues a request."""
        if self._catalog_task is not None:
            return self._catalog_task
        self._catalog_pending = True
        self._catalog_task = self._spawn(self._load_catalog(), "catalog")
        return self._catalog_task

    async def _load_catalog(self) -> None:
        try:
            buckets = await self._client.list_buckets()
        except LogApiError as e:
            logger.warning("Bucket catalog failed: %s", e)
            self._buckets = []
            self._set_error("catalog", f"Failed to fetch buckets: {e}")
            return
        finally:
            self._catalog_pending = False

        self._buckets = list(buckets)
        self._clear_error(owner="catalog")
        logger.info("Loaded %d buckets", len(self._buckets))
        if self._buckets and not self._filters.bucket:
            self.set_filter(FilterField.BUCKET, self._buckets[0])

    # -- filter state and listing ----------------------------------------

    def set_filter(self, field: FilterField | str, value: Any) -> asyncio.Task | None:
        """
        Update one field of the selection.

        A change to bucket, environment, app name or date re-queries the
        listing; setting the same value again, or setting the query, does not.
        Raises ValueError for an unknown field and pydantic.ValidationError for
        a value of the wrong shape (the selection is left unchanged).
        """
        field = FilterField(field)
        previous = getattr(self._filters, field.value)
        setattr(self._filters, field.value, value)
        if field not in SCOPE_FIELDS or getattr(self._filters, field.value) == previous:
            return None
        logger.debug("Filter %s changed", field.value, extra={"scope": self._filters.scope()})
        return self.refresh()

    def refresh(self) -> asyncio.Task | None:
        """Re-query the listing for the current filter tuple."""
        self._listing_generation += 1
        self._reset_listing_dependents()
        self._listing = []

        if not self._filters.is_complete():
            self._listing_pending = False
            return None

        self._clear_error()
        self._listing_pending = True
        bucket, environment, app_name, day = self._filters.scope()
        return self._spawn(
            self._fetch_listing(self._listing_generation, bucket, environment, app_name, day),
            "listing",
        )

    def _reset_listing_dependents(self) -> None:
        # Selection, content and search results belong to the old listing
        self._content_generation += 1
        self._search_generation += 1
        self._selected_key = None
        self._content = ""
        self._content_pending = False
        self._search_results = []
        self._searching = False

    async def _fetch_listing(
        self,
        generation: int,
        bucket: str,
        environment: Environment,
        app_name: str,
        day: date,
    ) -> None:
        try:
            entries = await self._client.list_log_files(bucket, environment, app_name, day)
        except LogApiError as e:
            if generation != self._listing_generation:
                logger.debug("Dropping failed listing for superseded filters")
                return
            logger.warning(
                "Listing failed: %s",
                e,
                extra={"bucket": bucket, "environment": environment, "app_name": app_name},
            )
            self._listing = []
            self._set_error("listing", f"Failed to fetch logs: {e}")
            self._listing_pending = False
            return

        if generation != self._listing_generation:
            logger.debug("Dropping stale listing (generation %d)", generation)
            return
        self._listing = list(entries)
        self._listing_pending = False
        logger.info(
            "Listed %d log files",
            len(self._listing),
            extra={"bucket": bucket, "app_name": app_name, "date": day.isoformat()},
        )

    # -- content navigation ----------------------------------------------

    def open(self, key: str) -> asyncio.Task | None:
        """Select a file from the current listing and fetch its content."""
        bucket = self._filters.bucket
        if not bucket:
            return None
        if not any(entry.key == key for entry in self._listing):
            logger.debug("Ignoring open of key not in listing: %s", key)
            return None

        self._content_generation += 1
        self._selected_key = key
        self._content = CONTENT_PLACEHOLDER
        self._content_pending = True
        self._clear_error()
        return self._spawn(self._fetch_content(self._content_generation, bucket, key), "content")

    def navigate(self, direction: NavigationDirection | str) -> asyncio.Task | None:
        """Open the previous or next file; no-op at either end of the listing."""
        target = self._navigation_target(NavigationDirection(direction))
        if target is None:
            return None
        return self.open(self._listing[target].key)

    def _navigation_target(self, direction: NavigationDirection) -> int | None:
        index = self.current_index
        if index is None:
            return None
        target = index + 1 if direction is NavigationDirection.NEXT else index - 1
        if 0 <= target < len(self._listing):
            return target
        return None

    def _is_current_content(self, generation: int, key: str) -> bool:
        return generation == self._content_generation and self._selected_key == key

    async def _fetch_content(self, generation: int, bucket: str, key: str) -> None:
        try:
            text = await self._client.get_log_content(bucket, key)
        except LogApiError as e:
            if not self._is_current_content(generation, key):
                return
            logger.warning("Content fetch failed: %s", e, extra={"bucket": bucket, "key": key})
            message = f"Failed to fetch log content: {e}"
            self._set_error("content", message)
            self._content = f"Error loading content: {message}"
            self._content_pending = False
            return

        if not self._is_current_content(generation, key):
            logger.debug("Dropping stale content for %s", key)
            return
        self._content = text
        self._content_pending = False

    # -- search ----------------------------------------------------------

    def search(self, query: str | None = None) -> asyncio.Task | None:
        """Search file contents in the current filter scope.

        With query given it replaces the selection's query first.
        """
        if query is not None:
            self._filters.query = query
        self._search_generation += 1
        self._search_results = []

        if not (self._filters.is_complete() and self._filters.query):
            self._searching = False
            return None

        self._searching = True
        self._clear_error()
        bucket, environment, app_name, day = self._filters.scope()
        return self._spawn(
            self._run_search(
                self._search_generation, bucket, environment, app_name, day, self._filters.query
            ),
            "search",
        )

    async def _run_search(
        self,
        generation: int,
        bucket: str,
        environment: Environment,
        app_name: str,
        day: date,
        query: str,
    ) -> None:
        try:
            names = await self._client.search_logs(bucket, environment, app_name, day, query)
        except LogApiError as e:
            if generation != self._search_generation:
                return
            logger.warning("Search failed: %s", e, extra={"query": query})
            self._search_results = []
            self._set_error("search", f"Search failed: {e}")
            self._searching = False
            return

        if generation != self._search_generation:
            logger.debug("Dropping stale search results for %r", query)
            return
        self._search_results = list(names)
        self._searching = False
        if not self._search_results:
            # Informational, shares the error channel; nothing is blocked by it
            self._set_error("search", NO_RESULTS_MESSAGE)
        logger.info("Search matched %d files", len(self._search_results), extra={"query": query})

    # -- error surface ---------------------------------------------------

    def _set_error(self, flow: str, message: str) -> None:
        self._error = message
        self._error_flow = flow

    def _clear_error(self, owner: str | None = None) -> None:
        """Clear the error; with owner, only if that flow set it."""
        if owner is not None and self._error_flow != owner:
            return
        self._error = None
        self._error_flow = None

    # -- task handling ---------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=f"logdash-{name}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait until no request started by this session is outstanding."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    async def aclose(self) -> None:
        """Cancel outstanding requests and close the client."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        close = getattr(self._client, "aclose", None)
        if close is not None:
            await close()
