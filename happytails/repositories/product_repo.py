# happytails/repositories/product_repo.py
import uuid

from sqlalchemy import delete, func, update
from sqlmodel import Session, select

from happytails.models.order import Order, OrderItem
from happytails.models.product import Product, ProductVariant
from happytails.models.user import User


class ProductRepository:
    """
    Data access layer for Product & ProductVariant.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    - No commits; the service owns the transaction.
    """

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        """Live (not soft-deleted) product by id."""
        product = session.get(Product, product_id)
        if product is None or product.is_deleted:
            return None
        return product

    def list_for_vendor(
        self,
        session: Session,
        vendor_id: uuid.UUID,
        include_deleted: bool = False,
    ) -> list[Product]:
        stmt = select(Product).where(Product.vendor_id == vendor_id)
        if not include_deleted:
            stmt = stmt.where(Product.is_deleted == False)  # noqa: E712
        return list(session.exec(stmt.order_by(Product.created_at.desc())).all())

    def list_with_vendor(self, session: Session) -> list[tuple[Product, User]]:
        """Live products with their vendor, newest first."""
        stmt = (
            select(Product, User)
            .join(User, User.id == Product.vendor_id)
            .where(Product.is_deleted == False)  # noqa: E712
            .order_by(Product.created_at.desc())
        )
        return list(session.exec(stmt).all())

    def stock_totals(self, session: Session) -> dict[uuid.UUID, int]:
        """Summed variant stock per live product (0 for a product with no stock rows)."""
        stmt = (
            select(Product.id, func.coalesce(func.sum(ProductVariant.stock_quantity), 0))
            .select_from(Product)
            .outerjoin(ProductVariant, ProductVariant.product_id == Product.id)
            .where(Product.is_deleted == False)  # noqa: E712
            .group_by(Product.id)
        )
        return {pid: int(stock or 0) for pid, stock in session.exec(stmt).all()}

    def save(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.flush()
        session.refresh(product)
        return product

    def soft_delete(self, session: Session, product: Product) -> None:
        product.is_deleted = True
        session.add(product)
        session.flush()

    def delete_with_variants(self, session: Session, product: Product) -> None:
        """
        Hard delete. Order lines keep their snapshot (name, size, color,
        price) but lose the references to the removed rows.
        """
        session.exec(
            update(OrderItem)
            .where(OrderItem.product_id == product.id)
            .values(product_id=None, variant_id=None)
        )
        session.exec(delete(ProductVariant).where(ProductVariant.product_id == product.id))
        session.delete(product)
        session.flush()

    # ----- Variants -----

    def list_variants(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> list[ProductVariant]:
        """Variants in declaration (insertion) order."""
        stmt = (
            select(ProductVariant)
            .where(ProductVariant.product_id == product_id)
            .order_by(ProductVariant.position)
        )
        return list(session.exec(stmt).all())

    def get_variant(
        self,
        session: Session,
        variant_id: uuid.UUID,
    ) -> ProductVariant | None:
        return session.get(ProductVariant, variant_id)

    def replace_variants(
        self,
        session: Session,
        product_id: uuid.UUID,
        variants: list[ProductVariant],
    ) -> list[ProductVariant]:
        old_variants = self.list_variants(session, product_id)
        if old_variants:
            session.exec(
                update(OrderItem)
                .where(OrderItem.variant_id.in_([v.id for v in old_variants]))
                .values(variant_id=None)
            )
        for old in old_variants:
            session.delete(old)
        session.flush()
        for position, variant in enumerate(variants):
            variant.product_id = product_id
            variant.position = position
        session.add_all(variants)
        session.flush()
        return variants

    def update_variant(self, session: Session, variant: ProductVariant) -> ProductVariant:
        session.add(variant)
        session.flush()
        return variant

    # ----- Sales aggregates -----

    def sales_totals(self, session: Session, product_id: uuid.UUID) -> tuple:
        """
        (units sold, gross sales, distinct customers) over non-canceled orders.
        """
        stmt = (
            select(
                func.coalesce(func.sum(OrderItem.quantity), 0),
                func.coalesce(func.sum(OrderItem.quantity * OrderItem.price), 0.0),
                func.count(func.distinct(Order.customer_id)),
            )
            .join(Order, Order.id == OrderItem.order_id)
            .where(OrderItem.product_id == product_id, Order.status != "canceled")
        )
        return session.exec(stmt).one()

    def customers_for_product(self, session: Session, product_id: uuid.UUID) -> list[tuple]:
        """
        Buyers of a product with their quantity, spend and last purchase,
        biggest buyers first.
        """
        qty_sum = func.sum(OrderItem.quantity)
        stmt = (
            select(
                User.id,
                User.name,
                User.email,
                qty_sum.label("total_quantity"),
                func.sum(OrderItem.quantity * OrderItem.price).label("total_spent"),
                func.max(Order.created_at).label("last_purchase"),
            )
            .join(Order, Order.id == OrderItem.order_id)
            .join(User, User.id == Order.customer_id)
            .where(OrderItem.product_id == product_id, Order.status != "canceled")
            .group_by(User.id, User.name, User.email)
            .order_by(qty_sum.desc())
        )
        return list(session.exec(stmt).all())

    def units_sold_by_product(
        self,
        session: Session,
        product_ids: list[uuid.UUID],
    ) -> dict[uuid.UUID, int]:
        if not product_ids:
            return {}
        stmt = (
            select(OrderItem.product_id, func.sum(OrderItem.quantity))
            .join(Order, Order.id == OrderItem.order_id)
            .where(OrderItem.product_id.in_(product_ids), Order.status != "canceled")
            .group_by(OrderItem.product_id)
        )
        return {pid: int(qty or 0) for pid, qty in session.exec(stmt).all()}
