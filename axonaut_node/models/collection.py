"""Models for paged collections, lookups and upserts."""
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class PaginationStrategy(str, Enum):
    """How page/per_page are passed to the API."""
    HEADER = "header"
    QUERY = "query"
    SINGLE = "single"  # Final fallback: one unpaginated call


class PageResult(BaseModel):
    """One page of records as returned by a single call."""

    records: list[Any] = Field(default_factory=list)
    is_terminal: bool = False

    @property
    def size(self) -> int:
        return len(self.records)


class AggregationState(BaseModel):
    """Working state of one `collect_all` call. Never shared across calls."""

    page: int = 1
    per_page: int = 100
    records: list[Any] = Field(default_factory=list)
    strategy: PaginationStrategy = PaginationStrategy.HEADER
    calls: int = 0

    def accept(self, page: PageResult) -> None:
        """Append a page's records in arrival order."""
        self.records.extend(page.records)

    def should_continue(self, page: PageResult, max_pages: int) -> bool:
        """A full, non-terminal page below the safety bound means more may exist."""
        if page.is_terminal or page.size == 0:
            return False
        if page.size != self.per_page:
            return False
        return self.page < max_pages


class MatchKey(BaseModel):
    """Field/value pair identifying the "same logical record"."""

    field: str
    value: Any


class OperationPerformed(str, Enum):
    """Which branch an upsert took."""
    CREATED = "created"
    UPDATED = "updated"


class UpsertResult(BaseModel):
    """Outcome of an upsert: the API's record plus the branch taken."""

    record: dict[str, Any] = Field(default_factory=dict)
    operation_performed: OperationPerformed
    match: MatchKey

    def to_output(self) -> dict[str, Any]:
        """Flatten into the record fields plus `operationPerformed`."""
        return {**self.record, "operationPerformed": self.operation_performed.value}


class SearchOption(BaseModel):
    """An entry of an interactive search-as-you-type list."""

    name: str
    value: str
