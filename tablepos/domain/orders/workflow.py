from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from tablepos.core.config import Settings, get_settings
from tablepos.domain.orders.aggregates import Cart, ValidationIssue
from tablepos.domain.orders.commands import (
    create_order_payload,
    new_line_payloads,
    order_header_patch,
    order_totals_patch,
)
from tablepos.domain.pricing import (
    OrderTotals,
    TaxMode,
    aggregate,
    allocate_discount,
    allocation_order,
    floor_amount,
    to_wire,
)
from tablepos.store.base import OrderStore, OrderStoreError
from tablepos.store.cache import (
    ORDER_LINES_KEY,
    ORDERS_KEY,
    PRODUCTS_KEY,
    STORE_SETTINGS_KEY,
    TABLES_KEY,
    ReadModelCache,
)
from tablepos.store.models import DiningTable, ExistingOrderLine, Order, Product

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]


class SessionMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"


class SessionState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUCCESS = "success"


class SubmitStep(str, Enum):
    VALIDATE = "validate"
    CREATE_ORDER = "create_order"
    ADD_ITEMS = "add_items"
    RECALCULATE = "recalculate"
    LINE_DISCOUNTS = "line_discounts"
    UPDATE_ORDER = "update_order"


class SessionError(RuntimeError):
    pass


@dataclass
class SubmitResult:
    ok: bool
    order: Order | None = None
    totals: OrderTotals | None = None
    failed_step: SubmitStep | None = None
    message: str | None = None
    completed_steps: list[SubmitStep] = field(default_factory=list)


def _log_notice(level: str, message: str) -> None:
    logger.log(logging.ERROR if level == "error" else logging.INFO, "notice[%s]: %s", level, message)


class OrderEditSession:
    """One open order dialog: a cart, the order's existing lines and a discount.

    Every figure shown or sent comes from ``quote()``; the submit sequence
    sends the footer captured when submit started, never a recomputation.
    """

    def __init__(
        self,
        store: OrderStore,
        *,
        cache: ReadModelCache | None = None,
        notify: Notifier | None = None,
        settings: Settings | None = None,
    ):
        self.store = store
        self.cache = cache or ReadModelCache()
        self.notify = notify or _log_notice
        self.settings = settings or get_settings()
        self.state = SessionState.IDLE
        self.mode: SessionMode | None = None
        self.last_result: SubmitResult | None = None
        self._reset()

    def _reset(self) -> None:
        self.table: DiningTable | None = None
        self.order: Order | None = None
        self.cart = Cart()
        self.existing_lines: list[ExistingOrderLine] = []
        self.discount = 0
        self.customer_name: str | None = None
        self.customer_count = 1
        self._loaded_discount = 0
        self._removed_lines = 0
        self._lines_stale = False

    # read models

    def products(self) -> dict[int, Product]:
        rows = self.cache.get(PRODUCTS_KEY, self.store.get_products)
        return {product.id: product for product in rows}

    @property
    def tax_mode(self) -> TaxMode:
        return self.cache.get(STORE_SETTINGS_KEY, self.store.get_store_settings).tax_mode

    def _refresh_catalog(self) -> None:
        # Tax rates and the store tax mode may change between dialogs.
        self.cache.invalidate(*PRODUCTS_KEY)
        self.cache.invalidate(*STORE_SETTINGS_KEY)

    def _fetch_existing_lines(self) -> list[ExistingOrderLine]:
        assert self.order is not None
        return self.cache.get(
            (*ORDER_LINES_KEY, self.order.id),
            lambda: self.store.get_order_lines(self.order.id),
            fresh=True,
        )

    # lifecycle

    def open_create(self, table: DiningTable) -> None:
        self._require_closed()
        self._reset()
        self._refresh_catalog()
        self.mode = SessionMode.CREATE
        self.table = table
        self.customer_count = 1
        self.state = SessionState.EDITING

    def open_edit(self, table: DiningTable, order: Order) -> bool:
        """Open an existing order; returns False when its lines could not be loaded."""
        self._require_closed()
        self._reset()
        self._refresh_catalog()
        self.mode = SessionMode.EDIT
        self.table = table
        self.order = order
        self.customer_name = order.customer_name
        self.customer_count = order.customer_count or 1
        self.discount = max(0, floor_amount(order.discount))
        self._loaded_discount = self.discount
        try:
            self.existing_lines = list(self._fetch_existing_lines())
        except OrderStoreError as exc:
            logger.error("load order lines failed: order_id=%s: %s", order.id, exc)
            self._reset()
            self.mode = None
            self.state = SessionState.IDLE
            self.notify("error", f"Failed to load order: {exc.user_message(self.settings.generic_failure_message)}")
            return False
        self.state = SessionState.EDITING
        return True

    def close(self) -> None:
        if self.state is SessionState.SUBMITTING:
            raise SessionError("cannot close while a submit is in progress")
        self._reset()
        self.mode = None
        self.state = SessionState.IDLE

    def _require_closed(self) -> None:
        if self.state in {SessionState.EDITING, SessionState.SUBMITTING}:
            raise SessionError(f"session already open (state={self.state.value})")

    def _require_editing(self) -> None:
        if self.state is not SessionState.EDITING:
            raise SessionError(f"session is not editing (state={self.state.value})")

    # editing

    def _warn(self, issue: ValidationIssue | None) -> ValidationIssue | None:
        if issue is not None:
            self.notify("warning", issue.message)
        return issue

    def add_product(self, product: Product) -> ValidationIssue | None:
        self._require_editing()
        return self._warn(self.cart.add(product))

    def decrement_product(self, product_id: int) -> None:
        self._require_editing()
        self.cart.decrement(product_id)

    def set_quantity(self, product_id: int, quantity: int) -> ValidationIssue | None:
        self._require_editing()
        return self._warn(self.cart.set_quantity(product_id, quantity))

    def set_notes(self, product_id: int, notes: str | None) -> None:
        self._require_editing()
        self.cart.set_notes(product_id, notes)

    def set_discount(self, amount: Any) -> None:
        self._require_editing()
        self.discount = max(0, floor_amount(amount))

    def set_customer(self, name: str | None = None, count: int | None = None) -> None:
        self._require_editing()
        if name is not None:
            self.customer_name = name.strip() or None
        if count is not None:
            self.customer_count = max(1, int(count))

    def remove_existing_line(self, line_id: int) -> bool:
        """Delete a persisted line right away and push the remaining lines' totals.

        The delete cannot be undone by closing the session.
        """
        self._require_editing()
        if self.mode is not SessionMode.EDIT or self.order is None:
            raise SessionError("existing lines can only be removed in edit mode")
        line = next((row for row in self.existing_lines if row.id == line_id), None)
        if line is None:
            raise SessionError(f"order line {line_id} is not part of order {self.order.id}")

        try:
            self.store.delete_order_line(line_id)
        except OrderStoreError as exc:
            logger.error("delete order line failed: order_id=%s line_id=%s: %s", self.order.id, line_id, exc)
            self.notify("error", f"Failed to remove item: {exc.user_message(self.settings.generic_failure_message)}")
            return False

        self._removed_lines += 1
        self.existing_lines = [row for row in self.existing_lines if row.id != line_id]
        try:
            self.existing_lines = list(self._fetch_existing_lines())
            products = self.products()
            totals = aggregate(
                [row.to_line_input(products) for row in self.existing_lines],
                [],
                self.tax_mode,
            )
            self.order = self.store.update_order(self.order.id, order_totals_patch(totals))
        except OrderStoreError as exc:
            logger.error("order totals refresh after delete failed: order_id=%s: %s", self.order.id, exc)
            self.notify("error", f"Item removed but order totals were not updated: {exc.user_message(self.settings.generic_failure_message)}")
            return False

        self._invalidate_read_models()
        self.notify("success", f"Removed {line.product_name or 'item'} from the order")
        return True

    # pricing

    def quote(self) -> OrderTotals:
        """Footer figures and per-line discounts for the current session state."""
        products = self.products()
        existing = [row.to_line_input(products) for row in self.existing_lines]
        return aggregate(existing, self.cart.line_inputs(), self.tax_mode, self.discount)

    def existing_line_discounts(self) -> dict[int, int]:
        products = self.products()
        ordered = allocation_order([row.to_line_input(products) for row in self.existing_lines], [])
        shares = allocate_discount(self.discount, ordered)
        return {row.id: share for row, share in zip(self.existing_lines, shares)}

    # submit

    def submit(self) -> SubmitResult:
        if self.state is SessionState.SUBMITTING:
            raise SessionError("submit already in progress")
        self._require_editing()

        if self.mode is SessionMode.CREATE and not self.cart:
            issue = ValidationIssue("empty_cart", "Add at least one item before placing the order")
            self.notify("warning", issue.message)
            result = SubmitResult(ok=False, failed_step=SubmitStep.VALIDATE, message=issue.message)
            self.last_result = result
            return result

        self.state = SessionState.SUBMITTING
        displayed: OrderTotals | None = None
        completed: list[SubmitStep] = []
        step = SubmitStep.VALIDATE
        try:
            if self._lines_stale:
                self._refresh_existing_lines()
            displayed = self.quote()
            if self.mode is SessionMode.CREATE:
                step = SubmitStep.CREATE_ORDER
                order = self._create_order(displayed)
                completed.append(step)
            else:
                order = None
                for step, action in (
                    (SubmitStep.ADD_ITEMS, self._add_items),
                    (SubmitStep.RECALCULATE, self._request_recalculation),
                    (SubmitStep.LINE_DISCOUNTS, self._push_line_discounts),
                ):
                    if action(displayed):
                        completed.append(step)
                step = SubmitStep.UPDATE_ORDER
                order = self._update_order(displayed)
                completed.append(step)
        except OrderStoreError as exc:
            return self._fail(step, exc, completed, displayed)

        return self._succeed(order, completed, displayed)

    def _create_order(self, displayed: OrderTotals) -> Order:
        assert self.table is not None
        order = create_order_payload(
            self.table.id,
            self.customer_name,
            self.customer_count,
            displayed,
            settings=self.settings,
        )
        lines = new_line_payloads(self.cart.lines, displayed)
        created = self.store.create_order(order, lines)
        logger.info("order created: order_id=%s lines=%s total=%s", created.id, len(lines), displayed.total)
        return created

    def _add_items(self, displayed: OrderTotals) -> bool:
        assert self.order is not None
        if not self.cart:
            return False
        lines = new_line_payloads(self.cart.lines, displayed)
        self.store.add_order_lines(self.order.id, lines)
        logger.info("order lines added: order_id=%s count=%s", self.order.id, len(lines))
        # The added lines are persisted now; a retry must not send them again,
        # and existing_lines is out of date until the next successful fetch.
        self.cart.clear()
        self._lines_stale = True
        return True

    def _refresh_existing_lines(self) -> None:
        self.existing_lines = list(self._fetch_existing_lines())
        self._lines_stale = False

    def _request_recalculation(self, displayed: OrderTotals) -> bool:
        assert self.order is not None
        if not (self._removed_lines or self.discount != self._loaded_discount):
            return False
        try:
            self.store.recalculate_order(self.order.id)
        except OrderStoreError as exc:
            logger.warning("order recalculation hint failed: order_id=%s: %s", self.order.id, exc)
            return False
        return True

    def _push_line_discounts(self, displayed: OrderTotals) -> bool:
        assert self.order is not None
        if self._lines_stale:
            self._refresh_existing_lines()
        pushed = 0
        for line_id, share in self.existing_line_discounts().items():
            line = next(row for row in self.existing_lines if row.id == line_id)
            if line.discount == share:
                continue
            self.store.update_order_line_discount(line_id, to_wire(share))
            pushed += 1
        if pushed:
            logger.info("order line discounts updated: order_id=%s lines=%s", self.order.id, pushed)
        return pushed > 0

    def _update_order(self, displayed: OrderTotals) -> Order:
        assert self.order is not None
        patch = order_header_patch(self.customer_name, self.customer_count, displayed)
        updated = self.store.update_order(self.order.id, patch)
        self.order = updated
        self._loaded_discount = self.discount
        self._removed_lines = 0
        return updated

    def _succeed(self, order: Order, completed: list[SubmitStep], displayed: OrderTotals) -> SubmitResult:
        self._invalidate_read_models(order.id)
        result = SubmitResult(ok=True, order=order, totals=displayed, completed_steps=completed)
        self.last_result = result
        created = self.mode is SessionMode.CREATE
        self._reset()
        self.mode = None
        self.state = SessionState.SUCCESS
        self.notify("success", "Order created" if created else "Order updated")
        return result

    def _fail(
        self,
        step: SubmitStep,
        exc: OrderStoreError,
        completed: list[SubmitStep],
        displayed: OrderTotals | None,
    ) -> SubmitResult:
        logger.error(
            "order submit failed: mode=%s step=%s completed=%s: %s",
            self.mode.value if self.mode else None,
            step.value,
            [item.value for item in completed],
            exc,
        )
        message = exc.user_message(self.settings.generic_failure_message)
        result = SubmitResult(
            ok=False,
            totals=displayed,
            failed_step=step,
            message=message,
            completed_steps=completed,
        )
        self.last_result = result
        self.state = SessionState.EDITING
        prefix = "Failed to create order" if self.mode is SessionMode.CREATE else "Failed to update order"
        self.notify("error", f"{prefix}: {message}")
        return result

    def _invalidate_read_models(self, order_id: int | None = None) -> None:
        self.cache.invalidate(*ORDERS_KEY)
        self.cache.invalidate(*TABLES_KEY)
        target = order_id if order_id is not None else (self.order.id if self.order else None)
        if target is not None:
            self.cache.invalidate(*ORDER_LINES_KEY, target)
        else:
            self.cache.invalidate(*ORDER_LINES_KEY)
