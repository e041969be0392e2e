from dataclasses import dataclass, field


@dataclass
class PaginationState:
    """Continuation token and declared total per partition.

    A partition missing from the table is exhausted.
    """

    tokens: dict[str, str | None] = field(default_factory=dict)
    totals: dict[str, int] = field(default_factory=dict)

    def record_initial(self, partition_id: str, token: str | None, total_count: int | None = None) -> None:
        self.tokens[partition_id] = token or None
        if total_count is not None and total_count > 0:
            self.totals[partition_id] = total_count

    def record_continuation(self, partition_id: str, token: str | None) -> None:
        self.tokens[partition_id] = token or None

    def token_for(self, partition_id: str) -> str | None:
        return self.tokens.get(partition_id)

    def has_more(self) -> bool:
        return any(token is not None for token in self.tokens.values())

    def tokens_needing_continuation(self) -> set[str]:
        return {pid for pid, token in self.tokens.items() if token is not None}

    def declared_total(self, partition_id: str) -> int | None:
        return self.totals.get(partition_id)

    def clear(self) -> None:
        self.tokens.clear()
        self.totals.clear()
