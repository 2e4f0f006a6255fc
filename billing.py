"""
Billing and companion-order collaborator.

Produces the pending order that accompanies every session or queued party,
and the bill when a session closes. The amounts are plain per-minute and
per-item arithmetic.
"""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional

from loguru import logger

from helper import elapsed_minutes
from models import BillDB, CartItem, OrderDB, OrderStatus, TableDB, TableSessionDB
from repository import Repository


def _cart_dicts(cart_items: Optional[Iterable]) -> list[dict]:
    items = []
    for item in cart_items or []:
        if isinstance(item, CartItem):
            item = item.model_dump()
        items.append(CartItem(**item).model_dump())
    return items


class BillingService:

    def __init__(self, repo: Repository, clock: Callable[[], datetime] = datetime.now):
        self.repo = repo
        self.clock = clock

    def create_pending_order(
        self,
        person_name: Optional[str],
        source: str,
        session_id: Optional[int] = None,
        queue_id: Optional[int] = None,
        items: Optional[Iterable] = None,
    ) -> OrderDB:
        return self.repo.create(
            OrderDB,
            person_name=person_name,
            status=OrderStatus.PENDING.value,
            session_id=session_id,
            queue_id=queue_id,
            order_source=source,
            items=_cart_dicts(items) or None,
        )

    def pending_order_for_queue(self, queue_id: int) -> Optional[OrderDB]:
        return self.repo.find_one(OrderDB, queue_id=queue_id, status=OrderStatus.PENDING.value)

    def link_order_to_session(self, order: OrderDB, session_id: int) -> OrderDB:
        return self.repo.update(order, session_id=session_id, order_source="queue")

    def cancel_pending_orders(self, queue_id: int) -> int:
        return self.repo.update_where(
            OrderDB,
            {"status": OrderStatus.CANCELLED.value},
            queue_id=queue_id,
            status=OrderStatus.PENDING.value,
        )

    def bill_for_session(self, session_id: int) -> Optional[BillDB]:
        return self.repo.find_one(BillDB, session_id=session_id)

    def create_bill(
        self,
        session: TableSessionDB,
        table: Optional[TableDB],
        cart_items: Optional[Iterable] = None,
        auto_released: bool = False,
    ) -> BillDB:
        """
        Bills a closed session: the booked duration if it had one, otherwise
        the elapsed wall-clock minutes, plus frame charges and cart items.
        """
        end_time = session.end_time or self.clock()
        minutes = session.duration_minutes or elapsed_minutes(session.start_time, end_time)

        price_per_minute = Decimal(str(table.price_per_minute or 0)) if table else Decimal("0")
        frame_charge = Decimal(str(table.frame_charge or 0)) if table else Decimal("0")
        table_charges = price_per_minute * minutes
        if session.booking_type == "frame" and session.frame_count:
            table_charges += frame_charge * session.frame_count

        bill_items = []
        menu_charges = Decimal("0")
        for item in _cart_dicts(cart_items):
            item_total = Decimal(str(item["price"])) * item["qty"]
            menu_charges += item_total
            bill_items.append({
                "menu_item_id": item["id"],
                "name": item["name"],
                "price": item["price"],
                "quantity": item["qty"],
                "total": float(item_total),
            })

        items_summary = ", ".join(
            [f"Table charges ({minutes} min)"] + [f"{i['name']} x{i['quantity']}" for i in bill_items]
        )

        bill = self.repo.create(
            BillDB,
            bill_number=f"BILL-{end_time:%Y%m%d%H%M%S}-{uuid.uuid4().hex[:9].upper()}",
            session_id=session.id,
            table_id=table.id if table else None,
            customer_name=session.customer_name or "Walk-in Customer",
            minutes=minutes,
            table_charges=table_charges,
            menu_charges=menu_charges,
            total_amount=table_charges + menu_charges,
            bill_items=bill_items or None,
            items_summary=items_summary,
            auto_released=auto_released,
            status="pending",
            created_at=end_time,
        )

        self.repo.update_where(
            OrderDB,
            {"status": OrderStatus.BILLED.value},
            session_id=session.id,
            status=OrderStatus.PENDING.value,
        )
        logger.info(f"Bill {bill.bill_number} for session {session.id}: {minutes} min, total {bill.total_amount}")
        return bill
