"""
Shared utilities for offset pagination with descriptive cursors.

Positioning is driven by page number and page size only. Each edge carries a
cursor that is the base64 encoding of the document id, so a client can hand
it back for an exact-record lookup; cursors never move the page window.

The page fetch and the total count run concurrently against the same query
but are not read from one snapshot, so a concurrent write may show up in one
and not the other.
"""

import asyncio
import base64
import binascii
import math
from typing import Any

from motor.motor_asyncio import AsyncIOMotorCollection

from app.api.schemas.pagination import Edge, PageInfo, PageRequest, PageResult
from app.core.errors import InvalidInputError
from app.repos.common import storage_operation

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def encode_cursor(id: Any) -> str:
    """Encode a document id as a cursor.

    Args:
        id: Document id (ObjectId or its text form)

    Returns:
        Base64-encoded cursor string
    """
    return base64.b64encode(str(id).encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> str:
    """Decode a cursor back into the id text it was built from.

    Raises:
        InvalidInputError: If the cursor is not valid base64 text
    """
    try:
        decoded = base64.b64decode(cursor.encode("ascii"), validate=True).decode("utf-8")
    except (AttributeError, UnicodeError, binascii.Error, ValueError) as e:
        raise InvalidInputError("Invalid cursor", details={"cursor": str(cursor)}) from e
    if not decoded:
        raise InvalidInputError("Invalid cursor", details={"cursor": cursor})
    return decoded


def normalize_limit(limit: int | None) -> int:
    """Clamp a page size into [1, MAX_PAGE_SIZE]; absent or zero means the default."""
    if not limit:
        return DEFAULT_PAGE_SIZE
    return max(1, min(limit, MAX_PAGE_SIZE))


def normalize_page(page: int | None) -> int:
    if not page or page < 1:
        return 1
    return page


def calculate_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def build_page_result(
    items: list[dict[str, Any]],
    total_count: int,
    page: int,
    limit: int,
) -> PageResult[dict[str, Any]]:
    """Assemble the page envelope from fetched documents and the total count.

    Args:
        items: Documents for this page, in order
        total_count: Number of documents matching the query
        page: Normalized page number
        limit: Normalized page size

    Returns:
        PageResult with one edge per document
    """
    edges = [Edge[dict[str, Any]](node=item, cursor=encode_cursor(item["_id"])) for item in items]
    total_pages = math.ceil(total_count / limit) if total_count else 0

    return PageResult[dict[str, Any]](
        edges=edges,
        page_info=PageInfo(
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
            start_cursor=edges[0].cursor if edges else None,
            end_cursor=edges[-1].cursor if edges else None,
            total_pages=total_pages,
            current_page=page,
        ),
        total_count=total_count,
    )


async def paginate(
    collection: AsyncIOMotorCollection,
    query: dict[str, Any],
    sort: list[tuple[str, int]],
    page_request: PageRequest | None = None,
) -> PageResult[dict[str, Any]]:
    """Fetch one page of documents plus the total count.

    Args:
        collection: Collection to query
        query: Compiled query document
        sort: Sort specification, e.g. from ``build_sort``
        page_request: Requested page; defaults to the first page

    Returns:
        PageResult envelope

    Raises:
        UpstreamError: If either storage operation fails
    """
    page_request = page_request or PageRequest()
    limit = normalize_limit(page_request.requested_limit)
    page = normalize_page(page_request.page)
    offset = calculate_offset(page, limit)

    async def fetch_page() -> list[dict[str, Any]]:
        async with storage_operation(f"find_{collection.name}"):
            cursor = collection.find(query).sort(sort).skip(offset).limit(limit)
            return await cursor.to_list(length=limit)

    async def count_total() -> int:
        async with storage_operation(f"count_{collection.name}"):
            return await collection.count_documents(query)

    items, total_count = await asyncio.gather(fetch_page(), count_total())
    return build_page_result(items, total_count, page, limit)
