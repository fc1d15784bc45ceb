from sqlalchemy.orm import Session, selectinload, joinedload
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, List, Tuple
import math
import logging

from inventory_api.database import transaction, on_commit
from inventory_api.exceptions import (
    ProductNotFoundError,
    InsufficientStockError,
    PersistenceError,
)
from inventory_api.models.lifecycle import RecordStatus
from inventory_api.models.product import Product
from inventory_api.models.purchase import Purchase, PurchaseDetail, PurchaseStatus
from inventory_api.schemas.purchase import PurchaseItem
from inventory_api.utils.cache import cache_service

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


class PurchaseService:
    """
    Service class for purchases with atomic multi-item stock reservation.

    RACE CONDITION HANDLING STRATEGY:
    =================================
    Every product row touched by a purchase is locked with SELECT ... FOR UPDATE
    at the start of the purchase transaction, in ascending id order so two
    purchases of the same products can't deadlock:

    1. The first transaction locks the product rows and proceeds
    2. A concurrent transaction for the same products blocks on the locks
    3. After the first commits, the second reads the new quantities and
       either succeeds or fails with InsufficientStockError

    SQLite ignores FOR UPDATE, so the decrement itself re-checks stock:
    ``Product.reduce_stock`` issues ``UPDATE ... WHERE available_quantity >= q``
    and a purchase that lost the race matches no row. The
    ``available_quantity >= 0`` check constraint is the last guard: a
    violation surfaces as InsufficientStockError, never as negative stock.

    A purchase is all-or-nothing: if any line item fails, the whole
    transaction rolls back and no stock or purchase row changes.
    """

    def __init__(self, db: Session):
        self.db = db

    def create_purchase(self, user_id: int, items: List[PurchaseItem]) -> Purchase:
        """
        Create a purchase for ``user_id`` from the requested line items.

        Algorithm (single transaction):
        1. Lock every referenced product row, in ascending id order
        2. For each item in submitted order: check stock, compute the subtotal,
           snapshot the unit price, decrement stock
        3. Insert the purchase and its detail rows
        4. Commit, or roll back everything on the first failure

        Args:
            user_id: Buyer
            items: Non-empty list of product_id/quantity pairs

        Returns:
            The committed purchase with details and their products loaded

        Raises:
            ProductNotFoundError: If a product doesn't exist or is retired
            InsufficientStockError: If a product lacks the requested stock
            PersistenceError: If the transaction could not be committed
        """
        product_ids = sorted({item.product_id for item in items})

        try:
            with transaction(self.db):
                total_amount = Decimal("0.00")
                line_items = []

                # Pessimistic locking, always in id order
                locked = {
                    product.id: product
                    for product in self.db.query(Product)
                    .filter(Product.id.in_(product_ids))
                    .order_by(Product.id)
                    .with_for_update()
                    .populate_existing()
                    .all()
                }

                for item in items:
                    product = locked.get(item.product_id)

                    if not product or product.status != RecordStatus.ACTIVE:
                        raise ProductNotFoundError(item.product_id)

                    if not product.has_stock(item.quantity):
                        raise InsufficientStockError(
                            f"Insufficient stock for '{product.name}'. "
                            f"Available: {product.available_quantity}, Requested: {item.quantity}"
                        )

                    unit_price = Decimal(product.price).quantize(CENTS)
                    subtotal = (unit_price * item.quantity).quantize(CENTS, rounding=ROUND_HALF_UP)
                    total_amount += subtotal

                    line_items.append(
                        PurchaseDetail(
                            product_id=product.id,
                            quantity=item.quantity,
                            unit_price=unit_price,
                            subtotal=subtotal,
                        )
                    )

                    product.reduce_stock(item.quantity)

                purchase = Purchase(
                    user_id=user_id,
                    total_amount=total_amount,
                    status=PurchaseStatus.COMPLETED,
                    details=line_items,
                )
                self.db.add(purchase)
                self.db.flush()

                # Stock changed, cached product payloads are stale
                on_commit(
                    self.db,
                    lambda: cache_service.delete("product", *(str(pid) for pid in product_ids)),
                )

        except (ProductNotFoundError, InsufficientStockError):
            raise
        except IntegrityError as e:
            # Stock check constraint hit by a concurrent decrement
            logger.error(f"Integrity error creating purchase for user #{user_id}: {e}")
            raise InsufficientStockError(
                "Stock constraint violated - concurrent modification detected"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating purchase for user #{user_id}: {e}")
            raise PersistenceError("Purchase could not be saved") from e

        logger.info(
            f"Purchase #{purchase.id} created for user #{user_id}: "
            f"{len(items)} item(s), total {total_amount}"
        )

        return self.get_purchase(purchase.id)

    def get_purchase(self, purchase_id: int, user_id: Optional[int] = None) -> Optional[Purchase]:
        """Get a purchase by ID, scoped to ``user_id`` when given."""
        query = self._with_details(self.db.query(Purchase)).filter(Purchase.id == purchase_id)
        if user_id is not None:
            query = query.filter(Purchase.user_id == user_id)
        return query.first()

    def get_user_purchases(
        self,
        user_id: int,
        page: int = 1,
        page_size: int = 10
    ) -> Tuple[List[Purchase], int, int]:
        """Get a user's purchases, newest first."""
        query = self.db.query(Purchase).filter(Purchase.user_id == user_id)
        return self._paginate(query, page, page_size)

    def get_purchases(
        self,
        page: int = 1,
        page_size: int = 10,
        status: PurchaseStatus = None
    ) -> Tuple[List[Purchase], int, int]:
        """
        Get paginated list of all purchases.

        Args:
            page: Page number
            page_size: Items per page
            status: Filter by purchase status

        Returns:
            Tuple of (purchases list, total count, total pages)
        """
        query = self.db.query(Purchase)

        if status:
            query = query.filter(Purchase.status == status)

        return self._paginate(query, page, page_size)

    def _paginate(self, query, page: int, page_size: int) -> Tuple[List[Purchase], int, int]:
        total = query.count()
        total_pages = math.ceil(total / page_size) if total > 0 else 0

        offset = (page - 1) * page_size
        purchases = (
            self._with_details(query)
            .order_by(Purchase.purchase_date.desc(), Purchase.id.desc())
            .offset(offset)
            .limit(page_size)
            .all()
        )

        return purchases, total, total_pages

    @staticmethod
    def _with_details(query):
        return query.options(
            selectinload(Purchase.details).joinedload(PurchaseDetail.product)
        )
