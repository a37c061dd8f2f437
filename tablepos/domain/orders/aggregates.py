from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from tablepos.domain.pricing import LineInput
from tablepos.store.models import Product


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str
    product_id: int | None = None


@dataclass
class CartLine:
    product: Product
    quantity: int = 1
    notes: str | None = None

    def to_line_input(self) -> LineInput:
        return LineInput(
            unit_price=self.product.unit_price,
            quantity=self.quantity,
            tax_rate_percent=self.product.tax_rate,
            ref=f"product:{self.product.id}",
        )


@dataclass
class Cart:
    """Pending lines of one editing session, in the order they were added.

    Quantities stay within 1..stock; a line brought down to zero is dropped.
    """

    lines: list[CartLine] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self.lines)

    def __bool__(self) -> bool:
        return bool(self.lines)

    def find(self, product_id: int) -> CartLine | None:
        for line in self.lines:
            if line.product.id == product_id:
                return line
        return None

    def add(self, product: Product) -> ValidationIssue | None:
        if product.stock <= 0:
            return ValidationIssue("out_of_stock", f"{product.name} is out of stock", product.id)
        line = self.find(product.id)
        if line is None:
            self.lines.append(CartLine(product=product))
            return None
        if line.quantity >= product.stock:
            return ValidationIssue(
                "insufficient_stock",
                f"Only {product.stock} {product.name} left in stock",
                product.id,
            )
        line.quantity += 1
        return None

    def decrement(self, product_id: int) -> None:
        line = self.find(product_id)
        if line is None:
            return
        if line.quantity > 1:
            line.quantity -= 1
        else:
            self.remove(product_id)

    def set_quantity(self, product_id: int, quantity: int) -> ValidationIssue | None:
        line = self.find(product_id)
        if line is None:
            return ValidationIssue("not_in_cart", f"product {product_id} is not in the cart", product_id)
        if quantity <= 0:
            self.remove(product_id)
            return None
        if quantity > line.product.stock:
            return ValidationIssue(
                "insufficient_stock",
                f"Only {line.product.stock} {line.product.name} left in stock",
                product_id,
            )
        line.quantity = quantity
        return None

    def set_notes(self, product_id: int, notes: str | None) -> None:
        line = self.find(product_id)
        if line is not None:
            line.notes = notes or None

    def remove(self, product_id: int) -> None:
        self.lines = [line for line in self.lines if line.product.id != product_id]

    def clear(self) -> None:
        self.lines = []

    def line_inputs(self) -> list[LineInput]:
        return [line.to_line_input() for line in self.lines]
