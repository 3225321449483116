"""Per-kind bucket lists with totals, roll-up and view derivation."""

from datetime import date
from enum import Enum
from logging import Logger
from typing import Callable, Hashable, Iterator

from src.domain.errors import DataIntegrityError
from src.domain.models.buckets import (
    Bucket,
    BucketKind,
    add_values,
    adjust_to_base,
    calculate_delta,
    dated_bucket,
    entity_key,
    is_active,
    new_bucket,
    ranged_bucket,
    refresh_delta,
    subtract_values,
)
from src.domain.models.ledger import DateRange
from src.domain.models.values import ValueKind


def _sort_key(key: Hashable):
    if isinstance(key, Enum):
        return list(type(key)).index(key)
    return key


class BucketList:
    """All buckets of one kind within an analysis.

    Buckets are created lazily by ``get_bucket`` while transactions are
    analysed, and iterate in owning-entity order. ``totals`` is rebuilt from
    the leaf buckets by ``produce_totals``; category lists also rebuild one
    roll-up bucket per ancestor category, kept apart from the leaves.
    """

    def __init__(self, kind: BucketKind) -> None:
        self._kind = kind
        self._buckets: dict[Hashable, Bucket] = {}
        self._parents: dict[Hashable, Bucket] = {}
        self._totals = new_bucket(kind)
        self._hidden_base = new_bucket(kind)

    @property
    def kind(self) -> BucketKind:
        return self._kind

    @property
    def totals(self) -> Bucket:
        return self._totals

    @property
    def hidden_base(self) -> Bucket:
        """Opening values of buckets dropped when this view was derived."""
        return self._hidden_base

    @property
    def parents(self) -> tuple[Bucket, ...]:
        """Category roll-up buckets, in category order."""
        return tuple(
            self._parents[key] for key in sorted(self._parents, key=_sort_key)
        )

    def __iter__(self) -> Iterator[Bucket]:
        for key in sorted(self._buckets, key=_sort_key):
            yield self._buckets[key]

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._buckets

    def is_empty(self) -> bool:
        return not self._buckets

    def get_bucket(self, entity) -> Bucket:
        """Return the bucket for ``entity``, creating it on first use."""
        key = entity_key(entity)
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = new_bucket(self._kind, entity)
            self._buckets[key] = bucket
        return bucket

    def find_bucket(self, key: Hashable) -> Bucket | None:
        return self._buckets.get(key)

    def find_parent(self, key: Hashable) -> Bucket | None:
        return self._parents.get(key)

    @classmethod
    def dated(cls, source: "BucketList", cutoff: date) -> "BucketList":
        """Derive the list as it stood at the end of ``cutoff``."""
        return cls._derive(source, lambda bucket: dated_bucket(bucket, cutoff), False)

    @classmethod
    def ranged(cls, source: "BucketList", date_range: DateRange) -> "BucketList":
        """Derive the list re-based over ``date_range``."""
        return cls._derive(
            source,
            lambda bucket: ranged_bucket(bucket, date_range),
            True,
        )

    @classmethod
    def _derive(
        cls,
        source: "BucketList",
        derive: Callable[[Bucket], Bucket],
        rebase: bool,
    ) -> "BucketList":
        derived = cls(source.kind)
        for bucket in source:
            view = derive(bucket)
            if derived._keeps(view):
                if rebase:
                    adjust_to_base(view)
                derived._buckets[view.key] = view
            else:
                derived._hide(view)
        return derived

    def _keeps(self, bucket: Bucket) -> bool:
        if self._kind in (BucketKind.ACCOUNT, BucketKind.SECURITY):
            return is_active(bucket) or not bucket.is_idle()
        return not bucket.is_idle()

    def _hide(self, bucket: Bucket) -> None:
        hidden = self._hidden_base.values
        for attr, value in bucket.base_values:
            if attr.kind is ValueKind.MONEY and value:
                hidden.adjust_counter(attr, value)

    def produce_totals(self) -> Bucket:
        """Compute every bucket's delta and rebuild totals and roll-ups.

        Safe to call repeatedly: the totals and roll-up buckets are rebuilt
        from the leaves each time.

        Returns:
            Bucket: The freshly built totals bucket.
        """
        self._totals = new_bucket(self._kind)
        self._parents = {}
        for bucket in self:
            calculate_delta(bucket)
            if self._kind is BucketKind.TAX_BASIS and bucket.entity.is_expense:
                subtract_values(self._totals, bucket)
            else:
                add_values(self._totals, bucket)
            if self._kind is BucketKind.CATEGORY:
                for ancestor in _ancestors(bucket.entity):
                    add_values(self._parent_bucket(ancestor), bucket)
        for parent in self._parents.values():
            refresh_delta(parent)
        refresh_delta(self._totals)
        return self._totals

    def _parent_bucket(self, category) -> Bucket:
        bucket = self._parents.get(category.id)
        if bucket is None:
            bucket = new_bucket(self._kind, category)
            self._parents[category.id] = bucket
        return bucket

    def prune(self) -> None:
        """Drop buckets whose defining values are all zero."""
        self._buckets = {
            key: bucket
            for key, bucket in self._buckets.items()
            if is_active(bucket)
        }

    def mark_active(self, check_closed: bool, logger: Logger) -> None:
        """Reject closed accounts and securities that still hold value.

        Args:
            check_closed: Whether a closed-but-active owner is fatal.
            logger: Logger used to report the failure.

        Raises:
            DataIntegrityError: The owner of an active bucket is closed and
                ``check_closed`` is set.
        """
        if self._kind not in (BucketKind.ACCOUNT, BucketKind.SECURITY):
            return
        for bucket in self:
            if not is_active(bucket):
                continue
            message = _closure_problem(bucket)
            if message is None:
                continue
            if check_closed:
                logger.error(f"{message}: {bucket.name}")
                raise DataIntegrityError(bucket, message)
            logger.warning(f"{message}: {bucket.name}")


def _closure_problem(bucket: Bucket) -> str | None:
    entity = bucket.entity
    if bucket.kind is BucketKind.ACCOUNT:
        return "Illegally closed account" if entity.closed else None
    if entity.closed:
        return "Illegally closed security"
    if entity.parent is not None and entity.parent.closed:
        return "Illegally closed portfolio"
    return None


def _ancestors(category):
    parent = category.parent
    while parent is not None:
        yield parent
        parent = parent.parent


__all__ = ["BucketList"]
