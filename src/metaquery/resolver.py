"""Metadata resolver: turns LIKE patterns into ordered collections and fields."""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from .errors import CollectionLookupError
from .like import LikePattern
from .storage import CollectionDescriptor, FieldDescriptor, MetadataStore

logger = logging.getLogger(__name__)

ColumnMatch = Tuple[CollectionDescriptor, FieldDescriptor]


class MetadataResolver:
    """
    Resolves SHOW and DESCRIBE patterns against a metadata store.

    Store calls run on worker threads. A statement's lookups share one
    deadline of ``timeout`` seconds, so DESCRIBE over many collections is
    bounded as a whole. Fields of all matching collections are fetched
    concurrently, then emitted in collection order and, within a collection,
    in ordinal_position order.
    """

    def __init__(self, store: MetadataStore, timeout: float = 30.0, max_workers: int = 4):
        self.store = store
        self.timeout = timeout
        self.max_workers = max(1, max_workers)

    @contextmanager
    def _executor(self) -> Iterator[ThreadPoolExecutor]:
        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="metaquery-lookup")
        try:
            yield executor
        finally:
            # Never block the request on a lookup that already timed out
            executor.shutdown(wait=False, cancel_futures=True)

    def _await(self, future: Future, description: str, deadline: float):
        try:
            return future.result(timeout=max(0.0, deadline - time.monotonic()))
        except FutureTimeoutError:
            logger.warning(f"Timed out after {self.timeout}s {description}")
            raise CollectionLookupError(f"Timed out after {self.timeout}s {description}")
        except CollectionLookupError:
            raise
        except Exception as e:
            logger.warning(f"Storage failure {description}: {e}")
            raise CollectionLookupError(f"Storage failure {description}: {e}") from e

    def _deadline(self) -> float:
        return time.monotonic() + self.timeout

    def _collections(
        self, executor: ThreadPoolExecutor, pattern: LikePattern, deadline: float
    ) -> List[CollectionDescriptor]:
        candidates = self._await(
            executor.submit(self.store.list_collections, pattern.source),
            "listing collections",
            deadline,
        )
        matched = [c for c in candidates if pattern.matches(c.name)]
        if not self.store.ordered:
            matched.sort(key=lambda c: c.name)
        return matched

    def cluster_name(self) -> str:
        """Return the store's cluster name, bounded and wrapped like any other lookup."""
        with self._executor() as executor:
            return self._await(executor.submit(self.store.cluster_name), "reading cluster name", self._deadline())

    def resolve_show(self, collection_pattern: LikePattern) -> List[CollectionDescriptor]:
        """
        Return the collections whose name matches the pattern.

        Args:
            collection_pattern: Compiled LIKE pattern for collection names

        Returns:
            Matching collections in store order (sorted by name if the store
            order is undefined)
        """
        with self._executor() as executor:
            collections = self._collections(executor, collection_pattern, self._deadline())
        logger.info(f"Pattern '{collection_pattern.source}' matched {len(collections)} collections")
        return collections

    def resolve_describe(
        self,
        collection_pattern: LikePattern,
        column_pattern: Optional[LikePattern] = None,
    ) -> List[ColumnMatch]:
        """
        Return (collection, field) pairs for matching collections and fields.

        Args:
            collection_pattern: Compiled LIKE pattern for collection names
            column_pattern: Compiled LIKE pattern for field names (None = all)

        Returns:
            Pairs ordered by collection, then by field ordinal_position
        """
        deadline = self._deadline()
        with self._executor() as executor:
            collections = self._collections(executor, collection_pattern, deadline)
            futures = [executor.submit(self.store.list_fields, c.name, c.schema) for c in collections]

            matches: List[ColumnMatch] = []
            for collection, future in zip(collections, futures):
                fields = self._await(future, f"listing fields of '{collection.name}'", deadline)
                for field in sorted(fields, key=lambda f: f.ordinal_position):
                    if column_pattern is None or column_pattern.matches(field.name):
                        matches.append((collection, field))

        logger.info(
            f"Pattern '{collection_pattern.source}' matched {len(matches)} fields "
            f"across {len(collections)} collections"
        )
        return matches
