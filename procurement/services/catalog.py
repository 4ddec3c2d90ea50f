"""
Catalog lookup collaborator.

The procurement core only needs to know whether an item exists, who sells it
and what it costs right now. The answer is copied onto the line item, so later
catalog price changes never reach existing orders.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Protocol
from urllib.parse import quote

import requests
from sqlalchemy.orm import Session

from procurement.app.db.models.models_v1 import CatalogItem
from procurement.services import errors, ledger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogItemSnapshot:
    item_id: str
    supplier: str
    unit_price: Decimal


class CatalogLookup(Protocol):
    def resolve(self, item_id: str) -> CatalogItemSnapshot:
        ...


def _not_found(item_id: str) -> errors.NotFound:
    return errors.NotFound("Catalog item not found", catalog_item_id=item_id)


class DbCatalogLookup:
    """Resolve items from the `catalog_items` table."""

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, item_id: str) -> CatalogItemSnapshot:
        item = self.db.get(CatalogItem, item_id)
        if not item:
            raise _not_found(item_id)
        return CatalogItemSnapshot(
            item_id=item.id,
            supplier=item.supplier,
            unit_price=ledger.to_cents(item.price_usd),
        )


class HttpCatalogLookup:
    """
    Resolve items through the catalog service: GET {base_url}/items/{id}.

    Credentials are given at construction and sent with every request.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str = "",
        timeout: float = 5.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def resolve(self, item_id: str) -> CatalogItemSnapshot:
        url = f"{self.base_url}/items/{quote(item_id, safe='')}"
        try:
            response = self.session.get(url, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("catalog_lookup_failed item_id=%s error=%s", item_id, exc)
            raise errors.Internal("Catalog service unavailable") from exc

        if response.status_code == 404:
            raise _not_found(item_id)
        if not response.ok:
            logger.warning(
                "catalog_lookup_failed item_id=%s status=%s",
                item_id,
                response.status_code,
            )
            raise errors.Internal("Catalog service unavailable")

        try:
            payload = response.json()
            supplier = str(payload["supplier"])
            unit_price = ledger.to_cents(Decimal(str(payload["price_usd"])))
            if unit_price < 0:
                raise ValueError(f"invalid price_usd: {payload['price_usd']!r}")
        except (ValueError, KeyError, TypeError, InvalidOperation) as exc:
            logger.warning("catalog_lookup_bad_payload item_id=%s error=%s", item_id, exc)
            raise errors.Internal("Catalog service returned an invalid item") from exc

        return CatalogItemSnapshot(item_id=item_id, supplier=supplier, unit_price=unit_price)
