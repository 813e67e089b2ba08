"""In-memory collaborator adapters for development and testing."""

from ordering.collaborators.port import (
    AddressRecord,
    AddressStore,
    AnalyticsRecorder,
    CartLine,
    CartStore,
    CatalogStore,
    DiscountCode,
    DiscountCodeStore,
    Product,
)


class InMemoryCartStore(CartStore):
    def __init__(self) -> None:
        self.carts: dict[str, list[CartLine]] = {}

    def put(self, user_id: str, lines: list[CartLine]) -> None:
        self.carts[user_id] = list(lines)

    def get_cart(self, user_id: str) -> list[CartLine]:
        return list(self.carts.get(user_id, []))

    def clear_cart(self, user_id: str) -> None:
        self.carts.pop(user_id, None)


class InMemoryCatalog(CatalogStore):
    def __init__(self, products: list[Product] | None = None) -> None:
        self.products = {p.product_id: p for p in products or []}

    def add(self, product: Product) -> None:
        self.products[product.product_id] = product

    def get_product(self, product_id: str) -> Product | None:
        return self.products.get(product_id)


class InMemoryAddressBook(AddressStore):
    def __init__(self, addresses: list[AddressRecord] | None = None) -> None:
        self.addresses = {a.address_id: a for a in addresses or []}

    def add(self, address: AddressRecord) -> None:
        self.addresses[address.address_id] = address

    def get_address(self, address_id: str) -> AddressRecord | None:
        return self.addresses.get(address_id)


class InMemoryDiscountCodes(DiscountCodeStore):
    def __init__(self, codes: list[DiscountCode] | None = None) -> None:
        self.codes = {c.code.upper(): c for c in codes or []}

    def add(self, code: DiscountCode) -> None:
        self.codes[code.code.upper()] = code

    def find(self, code: str) -> DiscountCode | None:
        return self.codes.get(code.upper())


class InMemoryAnalytics(AnalyticsRecorder):
    """Records analytics events in memory; can be told to fail for tests."""

    def __init__(self) -> None:
        self.events: list[dict] = []
        self.should_fail = False

    def record(self, event_type: str, user_id: str | None, data: dict) -> None:
        if self.should_fail:
            raise RuntimeError("Analytics backend unavailable")
        self.events.append({"event_type": event_type, "user_id": user_id, "data": data})

    def reset(self) -> None:
        self.events.clear()
        self.should_fail = False
