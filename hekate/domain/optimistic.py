"""
Optimistic Mutations - patch the cache first, confirm with the server after.

One helper for every "mark as done" style action:

1. Guard: skip if the entity already reached the target state or a
   mutation for it is still in flight.
2. Snapshot and patch each affected query synchronously.
3. Await the request.
4. Success: clear the guard, refetch the affected queries so server-side
   side effects (counters, derived flags) replace the optimistic guess.
5. Failure: undo the patch for this entity only (other entities may have
   been confirmed meanwhile), notify the user, clear the guard.

No retries: the user repeats the action to try again.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Sequence, Set, TypeVar

from hekate.domain.exceptions import HekateError
from hekate.services.api_client import DEFAULT_ERROR_MESSAGE
from hekate.services.notifications import Notifier
from hekate.services.query_cache import QueryCache, QueryKey

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MutationStatus(str, Enum):
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"      # Request failed, local state rolled back
    SKIPPED = "SKIPPED"    # Guard tripped, nothing sent


@dataclass
class MutationResult(Generic[T]):
    """Outcome of a mutation as seen by the caller."""
    status: MutationStatus
    data: Optional[T] = None
    error: Optional[Exception] = None
    reason: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status == MutationStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status == MutationStatus.FAILED

    @property
    def skipped(self) -> bool:
        return self.status == MutationStatus.SKIPPED

    @classmethod
    def skip(cls, reason: str) -> "MutationResult":
        return cls(status=MutationStatus.SKIPPED, reason=reason)


@dataclass
class OptimisticMutation:
    """
    Description of one optimistic action.

    ``patches`` maps each query key to a function from the cached value to
    its optimistically updated copy. Keys with nothing cached are left alone.

    ``revert`` maps a key to ``f(current, before)``, which undoes this
    entity's patch on the current value using the pre-patch snapshot.
    Keys without one get the whole snapshot back.
    """
    entity_id: str
    request: Callable[[], Awaitable[Any]]
    patches: Dict[QueryKey, Callable[[Any], Any]] = field(default_factory=dict)
    revert: Dict[QueryKey, Callable[[Any, Any], Any]] = field(default_factory=dict)
    is_applied: Optional[Callable[[], bool]] = None
    invalidate: Sequence[QueryKey] = ()
    reset: Sequence[QueryKey] = ()
    error_message: str = "No se pudo completar la acción. Inténtalo de nuevo."
    success_message: Optional[str] = None


class ViewScope:
    """
    Lifetime of a view that started requests.

    Closing the scope cancels whatever it still has in flight, so a late
    response cannot land on a view that is gone.
    """

    def __init__(self):
        self.closed = False
        self._tasks: Set[asyncio.Task] = set()

    async def run(self, awaitable: Awaitable[T]) -> T:
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return await task

    def close(self) -> None:
        self.closed = True
        for task in list(self._tasks):
            task.cancel()

    async def __aenter__(self) -> "ViewScope":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()


class OptimisticUpdater:
    """Runs OptimisticMutations against the shared cache."""

    def __init__(self, cache: QueryCache, notifier: Notifier):
        self.cache = cache
        self.notifier = notifier
        self._in_flight: Set[str] = set()

    def is_in_flight(self, entity_id: str) -> bool:
        return entity_id in self._in_flight

    def claim(self, *entity_ids: str) -> bool:
        """Mark entities busy. False (and nothing claimed) if any already is."""
        if any(entity_id in self._in_flight for entity_id in entity_ids):
            return False
        self._in_flight.update(entity_ids)
        return True

    def release(self, *entity_ids: str) -> None:
        self._in_flight.difference_update(entity_ids)

    async def run(self, mutation: OptimisticMutation, scope: ViewScope | None = None) -> MutationResult:
        """
        Execute a mutation with optimistic patching and rollback.

        Args:
            mutation: What to patch and what to send
            scope: Optional view scope; closing it cancels the request

        Returns:
            MutationResult (request failures are reported, never raised)

        Raises:
            asyncio.CancelledError: If the scope was closed mid-request
        """
        entity_id = mutation.entity_id

        if self.is_in_flight(entity_id):
            logger.debug(f"Mutation for {entity_id} already in flight, skipping")
            return MutationResult.skip("in_flight")
        if mutation.is_applied is not None and mutation.is_applied():
            logger.debug(f"{entity_id} already in target state, skipping")
            return MutationResult.skip("already_applied")
        if scope is not None and scope.closed:
            return MutationResult.skip("scope_closed")

        snapshots = self._apply(mutation)
        self.claim(entity_id)
        try:
            if scope is not None:
                data = await scope.run(mutation.request())
            else:
                data = await mutation.request()
        except HekateError as e:
            self._rollback(mutation, snapshots)
            logger.warning(f"Optimistic mutation for {entity_id} failed, rolled back: {e}")
            self.notifier.error(mutation.error_message)
            return MutationResult(status=MutationStatus.FAILED, error=e)
        except BaseException as e:
            self._rollback(mutation, snapshots)
            if isinstance(e, asyncio.CancelledError):
                # Outcome unknown server-side; next read must hit the server
                self.cache.mark_stale(*mutation.invalidate, *mutation.reset)
                logger.info(f"Mutation for {entity_id} cancelled with its view")
            raise
        finally:
            self.release(entity_id)

        if mutation.reset:
            await self.cache.reset_queries(*mutation.reset)
        if mutation.invalidate:
            await self.cache.invalidate_queries(*mutation.invalidate)
        if mutation.success_message:
            self.notifier.success(mutation.success_message)

        return MutationResult(status=MutationStatus.SUCCEEDED, data=data)

    async def send(
        self,
        request: Callable[[], Awaitable[Any]],
        invalidate: Sequence[QueryKey] = (),
        error_message: str | None = None,
        success_message: str | None = None,
    ) -> MutationResult:
        """
        Plain (non-optimistic) mutation: send, then refetch on success.

        On failure ``error_message`` is shown; the server's message only
        when the call site has none.
        """
        try:
            data = await request()
        except HekateError as e:
            logger.warning(f"Mutation failed: {e}")
            self.notifier.error(error_message or str(e) or DEFAULT_ERROR_MESSAGE)
            return MutationResult(status=MutationStatus.FAILED, error=e)

        if invalidate:
            await self.cache.invalidate_queries(*invalidate)
        if success_message:
            self.notifier.success(success_message)
        return MutationResult(status=MutationStatus.SUCCEEDED, data=data)

    def _apply(self, mutation: OptimisticMutation) -> Dict[QueryKey, Any]:
        snapshots: Dict[QueryKey, Any] = {}
        for key, patch in mutation.patches.items():
            if self.cache.get_query_data(key) is None:
                continue
            snapshots[key] = self.cache.snapshot(key)
            self.cache.set_query_data(key, patch)
        return snapshots

    def _rollback(self, mutation: OptimisticMutation, snapshots: Dict[QueryKey, Any]) -> None:
        for key, before in snapshots.items():
            revert = mutation.revert.get(key)
            if revert is None:
                self.cache.restore(key, before)
            elif self.cache.get_query_data(key) is not None:
                self.cache.set_query_data(
                    key, lambda current, revert=revert, before=before: revert(current, before)
                )
