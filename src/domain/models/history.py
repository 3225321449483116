"""Append-only per-bucket history of value snapshots."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from src.domain.models.ledger import DateRange, Transaction
from src.domain.models.values import BucketAttribute, BucketValues


@dataclass(frozen=True)
class HistoryEntry:
    """Values recorded immediately after a transaction touched a bucket."""

    transaction: Transaction
    values: BucketValues


class BucketHistory:
    """Current/base values plus the snapshots that produced them.

    ``values`` is the live map mutated by the analyser; ``base_values`` holds
    the opening position. Dated and ranged histories are derived copies and
    never mutate their source.
    """

    def __init__(
        self,
        values: BucketValues,
        base_values: BucketValues | None = None,
        entries: list[HistoryEntry] | None = None,
    ) -> None:
        self._values = values
        self._base_values = (
            base_values if base_values is not None else values.snapshot()
        )
        self._entries: list[HistoryEntry] = list(entries or [])
        self._index = {
            entry.transaction.id: position
            for position, entry in enumerate(self._entries)
        }

    @property
    def values(self) -> BucketValues:
        return self._values

    @property
    def base_values(self) -> BucketValues:
        return self._base_values

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    def is_idle(self) -> bool:
        """Return True when no transaction touched the bucket."""
        return not self._entries

    def register_transaction(
        self,
        transaction: Transaction,
        values: BucketValues,
    ) -> BucketValues:
        """Record a snapshot of ``values`` against ``transaction``.

        A transaction touching the bucket more than once keeps only its
        latest snapshot.

        Args:
            transaction: Transaction that changed the values.
            values: Live values to snapshot.

        Returns:
            BucketValues: The stored snapshot, open for further annotation.
        """
        snapshot = values.snapshot()
        position = self._index.get(transaction.id)
        if position is not None:
            self._entries[position] = HistoryEntry(transaction, snapshot)
            return snapshot
        if self._entries and transaction.date < self._entries[-1].transaction.date:
            raise ValueError(
                f"Transaction {transaction.id} dated {transaction.date} "
                "registered out of date order"
            )
        self._index[transaction.id] = len(self._entries)
        self._entries.append(HistoryEntry(transaction, snapshot))
        return snapshot

    def dated(self, cutoff: date) -> "BucketHistory":
        """Return the history truncated at ``cutoff`` (inclusive).

        Args:
            cutoff: Last date to keep.

        Returns:
            BucketHistory: New history whose current values are the last
            surviving snapshot; the base is unchanged.
        """
        kept = [
            entry for entry in self._entries if entry.transaction.date <= cutoff
        ]
        current = kept[-1].values if kept else self._base_values
        return BucketHistory(
            current.snapshot(),
            self._base_values.snapshot(),
            _copy_entries(kept),
        )

    def ranged(self, date_range: DateRange) -> "BucketHistory":
        """Return the history restricted to ``date_range``.

        Args:
            date_range: Half-open range to keep.

        Returns:
            BucketHistory: New history whose base is the snapshot preceding
            the range start and whose current values are the last snapshot
            inside the range.
        """
        base = self._base_values
        kept: list[HistoryEntry] = []
        for entry in self._entries:
            day = entry.transaction.date
            if date_range.start is not None and day < date_range.start:
                base = entry.values
            elif day in date_range:
                kept.append(entry)
        current = kept[-1].values if kept else base
        return BucketHistory(
            current.snapshot(),
            base.snapshot(),
            _copy_entries(kept),
        )

    def values_for_transaction(
        self,
        transaction: Transaction,
    ) -> BucketValues | None:
        position = self._index.get(transaction.id)
        if position is None:
            return None
        return self._entries[position].values

    def previous_values_for_transaction(
        self,
        transaction: Transaction,
    ) -> BucketValues | None:
        """Return the snapshot preceding ``transaction`` (or the base)."""
        position = self._index.get(transaction.id)
        if position is None:
            return None
        if position == 0:
            return self._base_values
        return self._entries[position - 1].values

    def delta_for_transaction(
        self,
        transaction: Transaction,
        attr: BucketAttribute,
    ) -> Decimal | None:
        """Return how much ``attr`` moved because of ``transaction``."""
        values = self.values_for_transaction(transaction)
        if values is None:
            return None
        previous = self.previous_values_for_transaction(transaction)
        return values.delta_against(previous, attr)


def _copy_entries(entries: list[HistoryEntry]) -> list[HistoryEntry]:
    return [
        HistoryEntry(entry.transaction, entry.values.snapshot())
        for entry in entries
    ]


__all__ = ["HistoryEntry", "BucketHistory"]
