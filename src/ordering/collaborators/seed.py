"""Storefront stores for a standalone deployment.

Carts, the catalog, the address book and discount codes belong to the
storefront; this service only reads them through the ports in ``port.py``.
When ``STOREFRONT_SEED_FILE`` names a JSON file, the in-memory adapters are
loaded from it. Without one the stores are empty and every checkout is
rejected until real adapters are wired in.

Seed file layout::

    {
      "products": [{"product_id": "p1", "name": "Brass Lamp", "price": 500.0}],
      "addresses": [{"address_id": "a1", "user_id": "u1", "line1": "...", ...}],
      "discount_codes": [{"code": "WELCOME10", "discount_type": "PERCENTAGE", "value": 10}],
      "carts": {"u1": [{"product_id": "p1", "quantity": 2}]}
    }
"""

import json
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import structlog

from ordering.collaborators.memory import (
    InMemoryAddressBook,
    InMemoryCartStore,
    InMemoryCatalog,
    InMemoryDiscountCodes,
)
from ordering.collaborators.port import AddressRecord, CartLine, DiscountCode, Product

logger = structlog.get_logger(__name__)


@dataclass
class StorefrontStores:
    carts: InMemoryCartStore = field(default_factory=InMemoryCartStore)
    catalog: InMemoryCatalog = field(default_factory=InMemoryCatalog)
    addresses: InMemoryAddressBook = field(default_factory=InMemoryAddressBook)
    discounts: InMemoryDiscountCodes = field(default_factory=InMemoryDiscountCodes)

    @property
    def can_checkout(self) -> bool:
        """An order needs at least one product and one address to be placed."""
        return bool(self.catalog.products) and bool(self.addresses.addresses)


def _discount_code(data: dict) -> DiscountCode:
    data = dict(data)
    for key in ("valid_from", "valid_until"):
        if data.get(key):
            data[key] = datetime.fromisoformat(data[key])
    return DiscountCode(**data)


def load_stores(path) -> StorefrontStores:
    seed = json.loads(Path(path).read_text())

    stores = StorefrontStores(
        catalog=InMemoryCatalog([Product(**p) for p in seed.get("products", [])]),
        addresses=InMemoryAddressBook([AddressRecord(**a) for a in seed.get("addresses", [])]),
        discounts=InMemoryDiscountCodes([_discount_code(d) for d in seed.get("discount_codes", [])]),
    )
    for user_id, lines in seed.get("carts", {}).items():
        stores.carts.put(user_id, [CartLine(**line) for line in lines])

    logger.info(
        "Storefront stores loaded",
        path=str(path),
        products=len(stores.catalog.products),
        addresses=len(stores.addresses.addresses),
        discount_codes=len(stores.discounts.codes),
    )
    return stores


def build_stores(environ=None) -> StorefrontStores:
    env = os.environ if environ is None else environ
    path = env.get("STOREFRONT_SEED_FILE")
    if not path:
        logger.warning("STOREFRONT_SEED_FILE is not set; checkout will reject every order until stores are wired")
        return StorefrontStores()
    return load_stores(path)
