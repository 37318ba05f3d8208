# happytails/services/product_service.py
import logging
import uuid

from sqlmodel import Session

from happytails.core.errors import NotFoundError
from happytails.models.product import Product, ProductVariant
from happytails.repositories.product_repo import ProductRepository
from happytails.schemas.product import (
    ProductCustomer,
    ProductListRow,
    ProductMetrics,
    ProductRead,
    ProductStats,
    ProductUpdate,
    VariantRead,
)
from happytails.services.pricing import effective_price

logger = logging.getLogger(__name__)

# Share of gross product sales reported as platform revenue (94%)
PRODUCT_REVENUE_SHARE = 0.94

# Summed stock at or below this (and above 0) counts as low stock
LOW_STOCK_THRESHOLD = 5


class ProductService:
    """
    Business logic for products.

    Responsibilities:
      - Public product detail (product + variants in declaration order)
      - Admin list with stock figures, detail, sales metrics and buyer list
      - Admin update (fields + full variant replacement) and soft delete
    """

    def __init__(self, product_repo: ProductRepository):
        self.product_repo = product_repo

    # ----- Helpers -----

    def _get_or_404(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.product_repo.get_by_id(session, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def _to_read(self, session: Session, product: Product) -> ProductRead:
        variants = self.product_repo.list_variants(session, product.id)
        return ProductRead(
            **product.model_dump(),
            variants=[VariantRead.model_validate(v) for v in variants],
        )

    # ----- Public -----

    def get_product(self, session: Session, product_id: uuid.UUID) -> ProductRead:
        product = self._get_or_404(session, product_id)
        return self._to_read(session, product)

    # ----- Admin -----

    def list_products(self, session: Session) -> list[ProductListRow]:
        rows = []
        for product, vendor in self.product_repo.list_with_vendor(session):
            variants = self.product_repo.list_variants(session, product.id)
            rows.append(
                ProductListRow(
                    id=product.id,
                    name=product.name,
                    category=product.category,
                    vendor_id=vendor.id,
                    vendor=vendor.store_name or vendor.name,
                    price=min((effective_price(v) for v in variants), default=0.0),
                    stock=sum(v.stock_quantity for v in variants),
                    created_at=product.created_at,
                )
            )
        return rows

    def product_stats(self, session: Session) -> ProductStats:
        stock = list(self.product_repo.stock_totals(session).values())
        return ProductStats(
            total=len(stock),
            in_stock=sum(1 for s in stock if s > 0),
            low_stock=sum(1 for s in stock if 0 < s <= LOW_STOCK_THRESHOLD),
            out_of_stock=sum(1 for s in stock if s == 0),
        )

    def product_metrics(self, session: Session, product_id: uuid.UUID) -> ProductMetrics:
        self._get_or_404(session, product_id)
        units, gross, customers = self.product_repo.sales_totals(session, product_id)
        return ProductMetrics(
            total_sales=int(units or 0),
            revenue=round(float(gross or 0.0) * PRODUCT_REVENUE_SHARE, 2),
            unique_customers=int(customers or 0),
        )

    def product_customers(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> list[ProductCustomer]:
        self._get_or_404(session, product_id)
        rows = self.product_repo.customers_for_product(session, product_id)
        return [
            ProductCustomer(
                id=customer_id,
                name=name,
                email=email,
                total_quantity=int(qty or 0),
                total_spent=float(spent or 0.0),
                last_purchase=last_purchase,
            )
            for customer_id, name, email, qty, spent, last_purchase in rows
        ]

    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> ProductRead:
        """
        Apply a partial update. A `variants` list replaces every existing
        variant, so the product never ends up without one.
        """
        product = self._get_or_404(session, product_id)

        data = payload.model_dump(exclude_unset=True, exclude={"variants"})
        for field, value in data.items():
            setattr(product, field, value)
        self.product_repo.save(session, product)

        if payload.variants is not None:
            self.product_repo.replace_variants(
                session,
                product.id,
                [ProductVariant(product_id=product.id, **v.model_dump()) for v in payload.variants],
            )

        session.commit()
        session.refresh(product)
        logger.info("Product %s updated", product.id)
        return self._to_read(session, product)

    def delete_product(self, session: Session, product_id: uuid.UUID) -> None:
        product = self._get_or_404(session, product_id)
        self.product_repo.soft_delete(session, product)
        session.commit()
        logger.info("Product %s deleted", product_id)
