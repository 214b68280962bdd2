from __future__ import annotations

from sqlmodel import SQLModel, Field


class ShowRecord(SQLModel, table=True):
    __tablename__ = "shows"

    id: str = Field(primary_key=True)
    company_id: str = Field(foreign_key="companies.id", index=True)
    venue_id: str = Field(foreign_key="venues.id")
    name: str
    status: str = Field(default="Draft", index=True)  # Draft|Scheduled|In Progress|Completed|Cancelled
    show_type: str = "Weekly TV"
    date: str = Field(index=True)  # ISO-8601, UTC
    is_visible: bool = True

    # optimistic concurrency token; bumped on every write
    version: int = 0
    # full Show document (card, attendance, results)
    doc_json: str

    created_at: str
    updated_at: str
