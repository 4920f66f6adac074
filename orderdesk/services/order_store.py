import itertools
from datetime import datetime, timezone
from threading import Lock
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import sessionmaker

from orderdesk.core.errors import ValidationError
from orderdesk.core.id_utils import format_order_number, generate_shortuuid
from orderdesk.core.money import to_money
from orderdesk.models.cart import CartItem
from orderdesk.models.contact import ContactSubmission
from orderdesk.models.custom_order import CustomOrder
from orderdesk.models.donation import Donation
from orderdesk.models.order import Order, OrderNumberSequence
from orderdesk.schemas.cart import CartItemCreate, CartItemOut
from orderdesk.schemas.contact import ContactSubmissionCreate, ContactSubmissionOut
from orderdesk.schemas.custom_order import CustomOrderCreate, CustomOrderOut
from orderdesk.schemas.donation import DonationCreate, DonationOut
from orderdesk.schemas.order import MAX_RATING, MIN_RATING, OrderCreate, OrderOut


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validate_rating(rating: int) -> None:
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")


def _validate_quantity(quantity: int) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError("Invalid quantity")


class OrderStore(Protocol):
    backend: str

    def create_order(self, data: OrderCreate) -> OrderOut: ...
    def get_order(self, order_id: str) -> OrderOut | None: ...
    def list_orders(self) -> list[OrderOut]: ...
    def update_order_rating(self, order_id: str, rating: int) -> OrderOut | None: ...

    def create_custom_order(self, data: CustomOrderCreate) -> CustomOrderOut: ...
    def get_custom_order(self, custom_order_id: str) -> CustomOrderOut | None: ...
    def list_custom_orders(self) -> list[CustomOrderOut]: ...

    def create_contact_submission(self, data: ContactSubmissionCreate) -> ContactSubmissionOut: ...
    def list_contact_submissions(self) -> list[ContactSubmissionOut]: ...

    def add_cart_item(self, data: CartItemCreate) -> CartItemOut: ...
    def get_cart_item(self, item_id: str) -> CartItemOut | None: ...
    def list_cart_items(self) -> list[CartItemOut]: ...
    def update_cart_item_quantity(self, item_id: str, quantity: int) -> CartItemOut | None: ...
    def remove_cart_item(self, item_id: str) -> bool: ...
    def clear_cart(self) -> None: ...

    def create_donation(self, data: DonationCreate) -> DonationOut: ...
    def list_donations(self) -> list[DonationOut]: ...


class InMemoryOrderStore:
    backend = "memory"

    def __init__(self) -> None:
        self._lock = Lock()
        self._order_sequence = 0
        self._insertion = itertools.count()
        self._orders: dict[str, tuple[int, OrderOut]] = {}
        self._custom_orders: dict[str, tuple[int, CustomOrderOut]] = {}
        self._contact_submissions: dict[str, tuple[int, ContactSubmissionOut]] = {}
        self._cart_items: dict[str, tuple[int, CartItemOut]] = {}
        self._donations: dict[str, tuple[int, DonationOut]] = {}

    @staticmethod
    def _newest_first(records: dict) -> list:
        ordered = sorted(records.values(), key=lambda entry: (entry[1].created_at, entry[0]), reverse=True)
        return [record for _, record in ordered]

    # Orders
    def create_order(self, data: OrderCreate) -> OrderOut:
        with self._lock:
            self._order_sequence += 1
            order = OrderOut(
                id=generate_shortuuid(),
                order_number=format_order_number(self._order_sequence),
                customer_name=data.customer_name,
                customer_email=data.customer_email,
                amount=to_money(data.amount),
                payment_method=data.payment_method,
                description=data.description,
                rating=None,
                created_at=_utcnow(),
            )
            self._orders[order.id] = (next(self._insertion), order)
            return order

    def get_order(self, order_id: str) -> OrderOut | None:
        with self._lock:
            entry = self._orders.get(order_id)
            return entry[1] if entry else None

    def list_orders(self) -> list[OrderOut]:
        with self._lock:
            return self._newest_first(self._orders)

    def update_order_rating(self, order_id: str, rating: int) -> OrderOut | None:
        _validate_rating(rating)
        with self._lock:
            entry = self._orders.get(order_id)
            if not entry:
                return None
            updated = entry[1].model_copy(update={"rating": str(rating)})
            self._orders[order_id] = (entry[0], updated)
            return updated

    # Custom orders
    def create_custom_order(self, data: CustomOrderCreate) -> CustomOrderOut:
        custom_order = CustomOrderOut(
            id=generate_shortuuid(),
            customer_name=data.customer_name,
            customer_email=str(data.customer_email),
            category=data.category,
            description=data.description,
            estimated_price=data.estimated_price,
            payment_method=data.payment_method,
            image_urls=data.image_urls,
            status="pending",
            created_at=_utcnow(),
        )
        with self._lock:
            self._custom_orders[custom_order.id] = (next(self._insertion), custom_order)
        return custom_order

    def get_custom_order(self, custom_order_id: str) -> CustomOrderOut | None:
        with self._lock:
            entry = self._custom_orders.get(custom_order_id)
            return entry[1] if entry else None

    def list_custom_orders(self) -> list[CustomOrderOut]:
        with self._lock:
            return self._newest_first(self._custom_orders)

    # Contact submissions
    def create_contact_submission(self, data: ContactSubmissionCreate) -> ContactSubmissionOut:
        submission = ContactSubmissionOut(
            id=generate_shortuuid(),
            name=data.name,
            email=str(data.email),
            subject=data.subject,
            message=data.message,
            created_at=_utcnow(),
        )
        with self._lock:
            self._contact_submissions[submission.id] = (next(self._insertion), submission)
        return submission

    def list_contact_submissions(self) -> list[ContactSubmissionOut]:
        with self._lock:
            return self._newest_first(self._contact_submissions)

    # Cart
    def add_cart_item(self, data: CartItemCreate) -> CartItemOut:
        item = CartItemOut(
            id=generate_shortuuid(),
            product_id=data.product_id,
            product_name=data.product_name,
            price=data.price,
            category=data.category,
            image_urls=data.image_urls,
            quantity="1",
            created_at=_utcnow(),
        )
        with self._lock:
            self._cart_items[item.id] = (next(self._insertion), item)
        return item

    def get_cart_item(self, item_id: str) -> CartItemOut | None:
        with self._lock:
            entry = self._cart_items.get(item_id)
            return entry[1] if entry else None

    def list_cart_items(self) -> list[CartItemOut]:
        with self._lock:
            return self._newest_first(self._cart_items)

    def update_cart_item_quantity(self, item_id: str, quantity: int) -> CartItemOut | None:
        _validate_quantity(quantity)
        with self._lock:
            entry = self._cart_items.get(item_id)
            if not entry:
                return None
            updated = entry[1].model_copy(update={"quantity": str(quantity)})
            self._cart_items[item_id] = (entry[0], updated)
            return updated

    def remove_cart_item(self, item_id: str) -> bool:
        with self._lock:
            return self._cart_items.pop(item_id, None) is not None

    def clear_cart(self) -> None:
        with self._lock:
            self._cart_items.clear()

    # Donations
    def create_donation(self, data: DonationCreate) -> DonationOut:
        donation = DonationOut(
            id=generate_shortuuid(),
            donor_name=data.donor_name,
            donor_email=str(data.donor_email),
            amount=to_money(data.amount),
            message=data.message,
            created_at=_utcnow(),
        )
        with self._lock:
            self._donations[donation.id] = (next(self._insertion), donation)
        return donation

    def list_donations(self) -> list[DonationOut]:
        with self._lock:
            entries = sorted(self._donations.values(), key=lambda entry: (entry[1].amount, -entry[0]), reverse=True)
        return [donation for _, donation in entries]


class DatabaseOrderStore:
    backend = "database"

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    # Orders
    def create_order(self, data: OrderCreate) -> OrderOut:
        with self._session_factory() as db:
            sequence = OrderNumberSequence(created_at=_utcnow())
            db.add(sequence)
            db.flush()
            order = Order(
                id=generate_shortuuid(),
                order_number=format_order_number(sequence.id),
                customer_name=data.customer_name,
                customer_email=data.customer_email,
                amount=to_money(data.amount),
                payment_method=data.payment_method,
                description=data.description,
                rating=None,
                created_at=_utcnow(),
            )
            db.add(order)
            db.commit()
            return OrderOut.model_validate(order)

    def get_order(self, order_id: str) -> OrderOut | None:
        with self._session_factory() as db:
            order = db.get(Order, order_id)
            return OrderOut.model_validate(order) if order else None

    def list_orders(self) -> list[OrderOut]:
        with self._session_factory() as db:
            rows = db.execute(
                select(Order).order_by(Order.created_at.desc(), Order.order_number.desc())
            ).scalars().all()
            return [OrderOut.model_validate(row) for row in rows]

    def update_order_rating(self, order_id: str, rating: int) -> OrderOut | None:
        _validate_rating(rating)
        with self._session_factory() as db:
            order = db.get(Order, order_id)
            if not order:
                return None
            order.rating = str(rating)
            db.commit()
            return OrderOut.model_validate(order)

    # Custom orders
    def create_custom_order(self, data: CustomOrderCreate) -> CustomOrderOut:
        with self._session_factory() as db:
            custom_order = CustomOrder(
                id=generate_shortuuid(),
                customer_name=data.customer_name,
                customer_email=str(data.customer_email),
                category=data.category,
                description=data.description,
                estimated_price=data.estimated_price,
                payment_method=data.payment_method,
                image_urls=data.image_urls,
                status="pending",
                created_at=_utcnow(),
            )
            db.add(custom_order)
            db.commit()
            return CustomOrderOut.model_validate(custom_order)

    def get_custom_order(self, custom_order_id: str) -> CustomOrderOut | None:
        with self._session_factory() as db:
            custom_order = db.get(CustomOrder, custom_order_id)
            return CustomOrderOut.model_validate(custom_order) if custom_order else None

    def list_custom_orders(self) -> list[CustomOrderOut]:
        with self._session_factory() as db:
            rows = db.execute(select(CustomOrder).order_by(CustomOrder.created_at.desc())).scalars().all()
            return [CustomOrderOut.model_validate(row) for row in rows]

    # Contact submissions
    def create_contact_submission(self, data: ContactSubmissionCreate) -> ContactSubmissionOut:
        with self._session_factory() as db:
            submission = ContactSubmission(
                id=generate_shortuuid(),
                name=data.name,
                email=str(data.email),
                subject=data.subject,
                message=data.message,
                created_at=_utcnow(),
            )
            db.add(submission)
            db.commit()
            return ContactSubmissionOut.model_validate(submission)

    def list_contact_submissions(self) -> list[ContactSubmissionOut]:
        with self._session_factory() as db:
            rows = db.execute(
                select(ContactSubmission).order_by(ContactSubmission.created_at.desc())
            ).scalars().all()
            return [ContactSubmissionOut.model_validate(row) for row in rows]

    # Cart
    def add_cart_item(self, data: CartItemCreate) -> CartItemOut:
        with self._session_factory() as db:
            item = CartItem(
                id=generate_shortuuid(),
                product_id=data.product_id,
                product_name=data.product_name,
                price=data.price,
                category=data.category,
                image_urls=data.image_urls,
                quantity="1",
                created_at=_utcnow(),
            )
            db.add(item)
            db.commit()
            return CartItemOut.model_validate(item)

    def get_cart_item(self, item_id: str) -> CartItemOut | None:
        with self._session_factory() as db:
            item = db.get(CartItem, item_id)
            return CartItemOut.model_validate(item) if item else None

    def list_cart_items(self) -> list[CartItemOut]:
        with self._session_factory() as db:
            rows = db.execute(select(CartItem).order_by(CartItem.created_at.desc())).scalars().all()
            return [CartItemOut.model_validate(row) for row in rows]

    def update_cart_item_quantity(self, item_id: str, quantity: int) -> CartItemOut | None:
        _validate_quantity(quantity)
        with self._session_factory() as db:
            item = db.get(CartItem, item_id)
            if not item:
                return None
            item.quantity = str(quantity)
            db.commit()
            return CartItemOut.model_validate(item)

    def remove_cart_item(self, item_id: str) -> bool:
        with self._session_factory() as db:
            item = db.get(CartItem, item_id)
            if not item:
                return False
            db.delete(item)
            db.commit()
            return True

    def clear_cart(self) -> None:
        with self._session_factory() as db:
            db.execute(delete(CartItem))
            db.commit()

    # Donations
    def create_donation(self, data: DonationCreate) -> DonationOut:
        with self._session_factory() as db:
            donation = Donation(
                id=generate_shortuuid(),
                donor_name=data.donor_name,
                donor_email=str(data.donor_email),
                amount=to_money(data.amount),
                message=data.message,
                created_at=_utcnow(),
            )
            db.add(donation)
            db.commit()
            return DonationOut.model_validate(donation)

    def list_donations(self) -> list[DonationOut]:
        with self._session_factory() as db:
            rows = db.execute(
                select(Donation).order_by(Donation.amount.desc(), Donation.created_at.asc())
            ).scalars().all()
            return [DonationOut.model_validate(row) for row in rows]


def build_order_store(backend: str, session_factory: sessionmaker | None = None) -> OrderStore:
    normalized = (backend or "").strip().lower()
    if normalized == "memory":
        return InMemoryOrderStore()
    if normalized == "database":
        if session_factory is None:
            raise ValueError("Database order store requires a session factory")
        return DatabaseOrderStore(session_factory)
    raise ValueError(f"Unknown store backend '{backend}'. Available: database, memory")
