"""
Catalog query building: keyword search, filtering and pagination for the
product listing.

Each step returns a new CatalogQuery, so a query can be composed from request
parameters without sharing mutable state between requests:

    query = CatalogQuery().search(params).filter(params).paginate(params, 4)
    products = query.execute(db["product"])
"""
import logging
import math
import re
from dataclasses import dataclass, field, replace
from typing import List, Mapping, Optional

from errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 4
RESERVED_PARAMS = ("keyword", "page")
PRICE_BOUNDS = {"price[gte]": "$gte", "price[lte]": "$lte"}
# MongoDB stores skip as a signed 64-bit integer.
MAX_SKIP = 2 ** 63 - 1


def _parse_number(key: str, value: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid number for {key}: {value!r}")
    if not math.isfinite(number):
        raise ValidationError(f"Invalid number for {key}: {value!r}")
    return number


def _parse_page(value: Optional[str]) -> int:
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


@dataclass(frozen=True)
class CatalogQuery:
    match: Mapping = field(default_factory=dict)
    skip: int = 0
    limit: Optional[int] = None

    def search(self, params: Mapping[str, str]) -> "CatalogQuery":
        keyword = params.get("keyword")
        if not keyword:
            return self
        constraint = {"name": {"$regex": re.escape(keyword), "$options": "i"}}
        return replace(self, match={**self.match, **constraint})

    def filter(self, params: Mapping[str, str]) -> "CatalogQuery":
        residual = {k: v for k, v in params.items() if k not in RESERVED_PARAMS}

        constraints = {}
        price_range = {}
        for key, op in PRICE_BOUNDS.items():
            raw = residual.pop(key, None)
            if raw is not None and raw != "":
                price_range[op] = _parse_number(key, raw)
        if price_range:
            constraints["price"] = price_range

        for key, value in residual.items():
            if "$" in key or "[" in key or "]" in key:
                raise ValidationError(f"Unsupported filter: {key}")
            constraints[key] = value

        return replace(self, match={**self.match, **constraints})

    def paginate(self, params: Mapping[str, str], page_size: int = DEFAULT_PAGE_SIZE) -> "CatalogQuery":
        page = _parse_page(params.get("page"))
        return replace(self, skip=min(page_size * (page - 1), MAX_SKIP), limit=page_size)

    @property
    def page(self) -> int:
        if not self.limit:
            return 1
        return self.skip // self.limit + 1

    def execute(self, collection) -> List[dict]:
        cursor = collection.find(dict(self.match))
        if self.skip:
            cursor = cursor.skip(self.skip)
        if self.limit:
            cursor = cursor.limit(self.limit)
        return list(cursor)


@dataclass
class ProductPage:
    items: List[dict]
    filtered_count: int
    page: int
    page_size: int
    total_count: int


def list_products(collection, params: Mapping[str, str], page_size: int = DEFAULT_PAGE_SIZE) -> ProductPage:
    total_count = collection.count_documents({})
    query = CatalogQuery().search(params).filter(params).paginate(params, page_size)
    logger.debug("Catalog query %s skip=%s limit=%s", query.match, query.skip, query.limit)
    items = query.execute(collection)
    return ProductPage(
        items=items,
        filtered_count=len(items),
        page=query.page,
        page_size=page_size,
        total_count=total_count,
    )
