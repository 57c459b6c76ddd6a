"""
Catalog snapshot consumed by the scanner.

The product and supplier master tables belong to the surrounding
inventory application. The scanner only reads them, in their stored
order, and keeps nothing but ids in its own records.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class Supplier:
    """A supplier (仕入先) as registered in the master table."""
    id: str
    name: str


@dataclass(frozen=True)
class Product:
    """
    A catalog product.

    Attributes:
        id: Product code (品番), unique in the catalog.
        name: Product name (品名).
        supplier_id: Owning supplier, if known.
        unit_price: Registered unit price in yen, if known.
    """
    id: str
    name: str
    supplier_id: Optional[str] = None
    unit_price: Optional[int] = None


@dataclass
class Catalog:
    """
    Read-only view of products and suppliers.

    Iteration order of both lists is significant: supplier detection and
    product matching take the first hit.
    """
    products: List[Product] = field(default_factory=list)
    suppliers: List[Supplier] = field(default_factory=list)

    @classmethod
    def from_records(
        cls,
        products: Iterable[dict] = (),
        suppliers: Iterable[dict] = ()
    ) -> 'Catalog':
        """
        Build a catalog from plain ``{"id": ..., "name": ...}`` records.

        Extra keys other than ``supplier_id`` / ``unit_price`` are ignored.
        """
        return cls(
            products=[
                Product(
                    id=str(p["id"]),
                    name=str(p["name"]),
                    supplier_id=p.get("supplier_id"),
                    unit_price=p.get("unit_price")
                )
                for p in products
            ],
            suppliers=[Supplier(id=str(s["id"]), name=str(s["name"])) for s in suppliers]
        )

    def get_product(self, product_id: str) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def get_supplier(self, supplier_id: str) -> Optional[Supplier]:
        for supplier in self.suppliers:
            if supplier.id == supplier_id:
                return supplier
        return None
