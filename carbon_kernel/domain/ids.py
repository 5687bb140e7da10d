"""
Deterministic record identifiers.

Record ids are UUIDv5 values derived from the transaction id, the record
kind and an ordinal that counts ids handed out within the transaction.  Two
executions of the same transaction produce the same ids; two distinct
transactions never do, because transaction ids are unique.
"""

from uuid import UUID, uuid5

# Namespace for all marketplace record ids.
MARKETPLACE_NAMESPACE = UUID("5b0f7c1e-3d6a-5f2b-9c41-8a7e2d0b6f13")


class RecordIdGenerator:
    """Hands out record ids seeded from one transaction id."""

    def __init__(self, tx_id: str):
        self._tx_id = tx_id
        self._ordinal = 0
        self._issued: list[str] = []

    @property
    def tx_id(self) -> str:
        return self._tx_id

    @property
    def issued(self) -> tuple[str, ...]:
        """Ids handed out so far, in order."""
        return tuple(self._issued)

    def next_id(self, kind: str) -> str:
        self._ordinal += 1
        record_id = str(uuid5(MARKETPLACE_NAMESPACE, f"{self._tx_id}:{kind}:{self._ordinal}"))
        self._issued.append(record_id)
        return record_id
