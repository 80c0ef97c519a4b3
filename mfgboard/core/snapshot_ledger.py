"""Snapshot ledger — pre-mutation card snapshots for in-flight mutations.

Keeps one MutationSnapshot per optimistic mutation that has not settled
yet, in the order the mutations were applied. Pure Python class (no Qt
dependency).

Rolling back one mutation restores its snapshot and replays the
mutations applied after it, so mutations on disjoint cards stay
independent. The later snapshots are rebased at the same time so a
subsequent rollback never resurrects the failed change.
"""

from __future__ import annotations

from mfgboard.models.card import Card
from mfgboard.models.mutation import CardMutation, MutationSnapshot


class SnapshotLedger:
    """Ordered set of pending mutations and their snapshots.

    Usage::

        ledger = SnapshotLedger()
        ledger.push(mutation, current_cards)       # before applying
        ledger.discard(mutation.id)                # on success
        restored = ledger.rollback(mutation.id)    # on failure
    """

    def __init__(self) -> None:
        self._entries: list[tuple[CardMutation, MutationSnapshot]] = []

    @property
    def pending_count(self) -> int:
        return len(self._entries)

    @property
    def pending_ids(self) -> list[str]:
        return [m.id for m, _ in self._entries]

    def is_pending(self, mutation_id: str) -> bool:
        return self._index(mutation_id) >= 0

    def snapshot_for(self, mutation_id: str) -> MutationSnapshot | None:
        idx = self._index(mutation_id)
        return self._entries[idx][1] if idx >= 0 else None

    def push(self, mutation: CardMutation, cards: tuple[Card, ...]) -> MutationSnapshot:
        """Record the pre-mutation collection for ``mutation``.

        Args:
            mutation: Mutation about to be applied.
            cards: Collection immediately before applying it.
        """
        snapshot = MutationSnapshot(mutation_id=mutation.id, cards=tuple(cards))
        self._entries.append((mutation, snapshot))
        return snapshot

    def discard(self, mutation_id: str) -> bool:
        """Drop a settled-successful mutation's snapshot.

        Returns:
            True if the mutation was pending.
        """
        idx = self._index(mutation_id)
        if idx < 0:
            return False
        del self._entries[idx]
        return True

    def rollback(self, mutation_id: str) -> tuple[Card, ...] | None:
        """Undo a failed mutation.

        Returns:
            The collection to display: the mutation's snapshot with every
            later pending mutation replayed on top. None if the mutation
            is not pending.
        """
        idx = self._index(mutation_id)
        if idx < 0:
            return None
        _, snapshot = self._entries.pop(idx)
        return self._rebase_from(idx, snapshot.cards)

    def rebase(self, cards: tuple[Card, ...]) -> tuple[Card, ...]:
        """Overlay every pending mutation on a fresh server collection."""
        return self._rebase_from(0, tuple(cards))

    def clear(self) -> None:
        self._entries.clear()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _index(self, mutation_id: str) -> int:
        for i, (m, _) in enumerate(self._entries):
            if m.id == mutation_id:
                return i
        return -1

    def _rebase_from(self, start: int, base: tuple[Card, ...]) -> tuple[Card, ...]:
        for i in range(start, len(self._entries)):
            mutation, _ = self._entries[i]
            self._entries[i] = (mutation, MutationSnapshot(mutation.id, base))
            base = mutation.apply(base)
        return base
