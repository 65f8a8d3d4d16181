"""
Ticket Search

Case-insensitive substring search over plate number, customer name, phone
and email. Terms that look like an ObjectId also match by ticket id: a full
24-hex id exactly, 6+ hex characters as a partial id.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from bson import ObjectId

from repairdesk.models.schemas import Pagination

SEARCH_FIELDS = ["plateNumber", "customerName", "customerPhone", "customerEmail"]

MAX_PAGE_SIZE = 50

FULL_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")
PARTIAL_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{6,}$")


@dataclass(frozen=True)
class TicketSearch:
    term: str

    @property
    def pattern(self) -> str:
        return re.escape(self.term)

    def to_mongo(self) -> Dict[str, Any]:
        conditions: List[Dict[str, Any]] = [
            {field: {"$regex": self.pattern, "$options": "i"}} for field in SEARCH_FIELDS
        ]
        if PARTIAL_ID_PATTERN.match(self.term):
            conditions.insert(0, {
                "$expr": {
                    "$regexMatch": {
                        "input": {"$toString": "$_id"},
                        "regex": self.pattern,
                        "options": "i"
                    }
                }
            })
        if FULL_ID_PATTERN.match(self.term):
            conditions.insert(0, {"_id": ObjectId(self.term)})
        return {"$or": conditions}

    def matches(self, ticket: Dict[str, Any]) -> bool:
        needle = self.term.lower()
        for field in SEARCH_FIELDS:
            value = ticket.get(field)
            if isinstance(value, str) and needle in value.lower():
                return True
        if PARTIAL_ID_PATTERN.match(self.term):
            return needle in str(ticket.get("_id", "")).lower()
        return False


def paginate(page: int, limit: int, total_count: int) -> Tuple[Pagination, int]:
    """Clamp page/limit; returns the pagination block and the number of tickets to skip"""
    page = max(1, page)
    limit = min(max(1, limit), MAX_PAGE_SIZE)
    total_pages = -(-total_count // limit)
    pagination = Pagination(
        current_page=page,
        total_pages=total_pages,
        total_count=total_count,
        limit=limit,
        has_next=page < total_pages,
        has_previous=page > 1,
    )
    return pagination, (page - 1) * limit
