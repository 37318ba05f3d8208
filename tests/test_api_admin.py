import uuid
from datetime import timedelta

import pytest
from sqlmodel import select

from happytails.core.auth import create_access_token
from happytails.core.money import utcnow
from happytails.models.event import Ticket
from happytails.models.order import Order, OrderItem
from happytails.models.product import Product, ProductVariant


@pytest.fixture
def paid_order(session, seed):
    """Pending order: 2 x M/Red at 499 (subtotal 998, charge 40)."""
    red = seed.variants[0]
    order = Order(
        customer_id=seed.customer.id,
        status="pending",
        subtotal=998,
        charge=40,
        total_amount=1038,
        payment_last_four="1111",
    )
    session.add(order)
    session.flush()
    session.add(
        OrderItem(
            order_id=order.id,
            product_id=seed.product.id,
            variant_id=red.id,
            product_name=seed.product.name,
            quantity=2,
            price=499,
            size="M",
            color="Red",
        )
    )
    red.stock_quantity -= 2
    session.add(red)
    session.commit()
    session.refresh(order)
    return order


@pytest.fixture
def booked_ticket(session, seed):
    ticket = Ticket(
        event_id=seed.event.id,
        customer_id=seed.customer.id,
        contact_name="Priya",
        contact_phone="9876543210",
        contact_email="priya@happytails.test",
        number_of_tickets=2,
        price=5000,
    )
    seed.event.tickets_sold += 2
    session.add_all([ticket, seed.event])
    session.commit()
    session.refresh(ticket)
    return ticket


class TestAdminAccess:
    def test_guest_is_rejected(self, client, seed):
        res = client.get(f"/api/admin/products/{seed.product.id}")

        assert res.status_code == 401

    @pytest.mark.parametrize(
        "path",
        [
            "/api/admin/stats",
            "/api/admin/customers/{id}",
            "/api/admin/events/{id}",
            "/api/admin/events",
            "/api/admin/vendors/stats",
        ],
    )
    def test_non_admin_is_forbidden(self, client, seed, customer_headers, path):
        res = client.get(path.format(id=seed.event.id), headers=customer_headers)

        assert res.status_code == 403
        assert res.json() == {
            "success": False,
            "message": "Admin access required",
            "code": "FORBIDDEN",
        }

    def test_token_for_deleted_user(self, client, session, seed):
        token = create_access_token(seed.admin)
        session.delete(seed.admin)
        session.commit()

        res = client.get("/api/admin/stats", headers={"Authorization": f"Bearer {token}"})

        assert res.status_code == 401
        assert res.json()["message"] == "User not found"


class TestAdminProducts:
    def test_metrics_and_customers(self, client, seed, paid_order, admin_headers):
        base = f"/api/admin/products/{seed.product.id}"

        metrics = client.get(f"{base}/data", headers=admin_headers).json()["metrics"]
        customers = client.get(f"{base}/customers", headers=admin_headers).json()["customers"]

        assert metrics == {"total_sales": 2, "revenue": 938.12, "unique_customers": 1}
        assert len(customers) == 1
        assert customers[0]["name"] == "Priya"
        assert customers[0]["total_quantity"] == 2
        assert customers[0]["total_spent"] == 998

    def test_update_replaces_variants_and_echoes(self, client, seed, admin_headers):
        res = client.put(
            f"/api/admin/products/{seed.product.id}",
            json={
                "name": "Glow Collar",
                "variants": [
                    {"size": "S", "color": "Green", "regular_price": 350, "stock_quantity": 4},
                    {"size": "M", "color": " ", "regular_price": 400, "sale_price": 380},
                ],
            },
            headers=admin_headers,
        )

        assert res.status_code == 200
        body = res.json()
        assert body["message"] == "Product updated successfully"
        product = body["product"]
        assert product["name"] == "Glow Collar"
        assert [(v["size"], v["color"]) for v in product["variants"]] == [
            ("S", "Green"),
            ("M", None),
        ]

    def test_update_detaches_old_variants_from_orders(
        self, client, session, seed, paid_order, admin_headers
    ):
        client.put(
            f"/api/admin/products/{seed.product.id}",
            json={"variants": [{"size": "XL", "regular_price": 899, "stock_quantity": 1}]},
            headers=admin_headers,
        )

        item = session.exec(select(OrderItem)).one()
        session.refresh(item)
        assert item.variant_id is None
        assert (item.size, item.color) == ("M", "Red")

    def test_empty_variant_list_is_rejected(self, client, seed, admin_headers):
        res = client.put(
            f"/api/admin/products/{seed.product.id}",
            json={"variants": []},
            headers=admin_headers,
        )

        assert res.status_code == 422
        assert "At least one variant is required" in res.json()["message"]

    def test_sale_above_regular_is_rejected(self, client, seed, admin_headers):
        res = client.put(
            f"/api/admin/products/{seed.product.id}",
            json={"variants": [{"regular_price": 100, "sale_price": 150}]},
            headers=admin_headers,
        )

        assert res.status_code == 422

    def test_delete_hides_product(self, client, seed, admin_headers):
        res = client.delete(f"/api/admin/products/{seed.product.id}", headers=admin_headers)

        assert res.json() == {"success": True, "message": "Product deleted successfully"}
        assert client.get(f"/api/products/product/{seed.product.id}").status_code == 404


class TestAdminEvents:
    def test_detail_and_attendees(self, client, seed, booked_ticket, admin_headers):
        base = f"/api/admin/events/{seed.event.id}"

        event = client.get(base, headers=admin_headers).json()["event"]
        attendees = client.get(f"{base}/attendees", headers=admin_headers).json()["attendees"]

        assert event["tickets_sold"] == 2
        assert event["tickets_left"] == 8
        assert [(a["name"], a["number_of_tickets"]) for a in attendees] == [("Priya", 2)]

    def test_update_answers_with_message(self, client, session, seed, admin_headers):
        res = client.put(
            f"/api/admin/events/{seed.event.id}",
            json={"venue": "People's Plaza", "total_tickets": 50},
            headers=admin_headers,
        )

        assert res.json() == {"success": True, "message": "Event updated successfully"}
        session.refresh(seed.event)
        assert seed.event.total_tickets == 50

    def test_capacity_below_sold(self, client, seed, booked_ticket, admin_headers):
        res = client.put(
            f"/api/admin/events/{seed.event.id}",
            json={"total_tickets": 1},
            headers=admin_headers,
        )

        assert res.status_code == 400
        assert res.json()["message"] == "Total tickets cannot be less than tickets already sold (2)"

    def test_unknown_field_is_rejected(self, client, seed, admin_headers):
        res = client.put(
            f"/api/admin/events/{seed.event.id}",
            json={"tickets_sold": 0},
            headers=admin_headers,
        )

        assert res.status_code == 422

    def test_delete_removes_tickets(self, client, session, seed, booked_ticket, admin_headers):
        res = client.delete(f"/api/admin/events/{seed.event.id}", headers=admin_headers)

        assert res.json()["success"] is True
        assert session.exec(select(Ticket)).all() == []
        assert client.get(f"/api/events/{seed.event.id}").status_code == 404


class TestAdminCustomers:
    def test_history_and_total_spent(self, client, seed, paid_order, booked_ticket, admin_headers):
        res = client.get(f"/api/admin/customers/{seed.customer.id}", headers=admin_headers)

        customer = res.json()["customer"]
        assert customer["email"] == "priya@happytails.test"
        assert [o["id"] for o in customer["orders"]] == [str(paid_order.id)]
        assert customer["tickets"][0]["event_title"] == "Doggy Day Out"
        assert customer["total_spent"] == 1038 + 5000

    def test_other_roles_are_not_customers(self, client, seed, admin_headers):
        res = client.get(f"/api/admin/customers/{seed.vendor.id}", headers=admin_headers)

        assert res.status_code == 404
        assert res.json()["message"] == "Customer not found"

    def test_update(self, client, session, seed, admin_headers):
        res = client.put(
            f"/api/admin/customers/{seed.customer.id}",
            json={"name": "Priya S", "phone": "+919876543210"},
            headers=admin_headers,
        )

        assert res.json() == {"success": True, "message": "Customer updated successfully"}
        session.refresh(seed.customer)
        assert seed.customer.phone == "+919876543210"

    def test_duplicate_email(self, client, seed, admin_headers):
        res = client.put(
            f"/api/admin/customers/{seed.customer.id}",
            json={"email": "store@happytails.test"},
            headers=admin_headers,
        )

        assert res.status_code == 400
        assert res.json()["message"] == "Email already exists"

    def test_invalid_phone(self, client, seed, admin_headers):
        res = client.put(
            f"/api/admin/customers/{seed.customer.id}",
            json={"phone": "12345"},
            headers=admin_headers,
        )

        assert res.status_code == 422

    def test_delete_removes_orders_and_tickets(
        self, client, session, seed, paid_order, booked_ticket, admin_headers
    ):
        res = client.delete(f"/api/admin/customers/{seed.customer.id}", headers=admin_headers)

        assert res.json()["message"] == "Customer deleted successfully"
        assert session.exec(select(Order)).all() == []
        assert session.exec(select(Ticket)).all() == []


class TestAdminVendors:
    def test_detail_products_and_revenue(self, client, seed, paid_order, admin_headers):
        base = f"/api/admin/vendors/{seed.vendor.id}"

        vendor = client.get(base, headers=admin_headers).json()["vendor"]
        products = client.get(f"{base}/products", headers=admin_headers).json()["products"]
        revenue = client.get(f"{base}/revenue", headers=admin_headers).json()["metrics"]

        assert vendor["store_name"] == "Paws Corner"
        assert vendor["product_count"] == 1
        assert products == [
            {
                "id": str(seed.product.id),
                "name": "Reflective Dog Collar",
                "category": "Dog",
                "price": 499,
                "stock": 13,
                "units_sold": 2,
            }
        ]
        assert revenue["today"] == 918.16
        assert revenue["quarterly"] == 918.16
        assert len(revenue["breakdown"]) == 12
        now = utcnow()
        assert revenue["breakdown"][-1] == {
            "month": f"{now.year:04d}-{now.month:02d}",
            "revenue": 918.16,
        }

    def test_store_location_too_short(self, client, seed, admin_headers):
        res = client.put(
            f"/api/admin/vendors/{seed.vendor.id}",
            json={"store_location": "Hyd"},
            headers=admin_headers,
        )

        assert res.status_code == 422

    def test_delete_removes_catalog(self, client, session, seed, paid_order, admin_headers):
        res = client.delete(f"/api/admin/vendors/{seed.vendor.id}", headers=admin_headers)

        assert res.json()["message"] == "Vendor deleted successfully"
        assert session.exec(select(Product)).all() == []
        assert session.exec(select(ProductVariant)).all() == []
        item = session.exec(select(OrderItem)).one()
        session.refresh(item)
        assert item.product_id is None
        assert item.product_name == "Reflective Dog Collar"


class TestAdminEventManagers:
    def test_metrics(self, client, seed, booked_ticket, admin_headers):
        res = client.get(
            f"/api/admin/event-managers/{seed.manager.id}/metrics",
            headers=admin_headers,
        )

        assert res.json()["metrics"] == {
            "total_events": 2,
            "upcoming_events": 1,
            "past_events": 1,
            "tickets_sold": 2,
            "revenue": 5000,
        }

    def test_upcoming_and_past_events(self, client, seed, admin_headers):
        base = f"/api/admin/event-managers/{seed.manager.id}"

        upcoming = client.get(f"{base}/upcoming-events", headers=admin_headers).json()["events"]
        past = client.get(f"{base}/past-events", headers=admin_headers).json()["events"]

        assert [e["title"] for e in upcoming] == ["Doggy Day Out"]
        assert [e["title"] for e in past] == ["Cat Café Meetup"]

    def test_update_echoes_manager(self, client, seed, admin_headers):
        res = client.put(
            f"/api/admin/event-managers/{seed.manager.id}",
            json={"organization": "Paws & Claws Events"},
            headers=admin_headers,
        )

        manager = res.json()["manager"]
        assert manager["organization"] == "Paws & Claws Events"
        assert manager["name"] == "Meera"

    def test_delete_cascades_to_events(self, client, session, seed, booked_ticket, admin_headers):
        res = client.delete(f"/api/admin/event-managers/{seed.manager.id}", headers=admin_headers)

        assert res.json()["success"] is True
        assert client.get("/api/getPublicEvents").json()["events"] == []
        assert session.exec(select(Ticket)).all() == []

    def test_unknown_manager(self, client, seed, admin_headers):
        res = client.get(f"/api/admin/event-managers/{uuid.uuid4()}", headers=admin_headers)

        assert res.status_code == 404
        assert res.json()["message"] == "Event manager not found"


class TestAdminOrders:
    def test_detail_includes_customer_and_items(self, client, seed, paid_order, admin_headers):
        order = client.get(f"/api/admin/orders/{paid_order.id}", headers=admin_headers).json()["order"]

        assert order["customer"]["phone"] == "9876543210"
        assert order["items"][0]["line_total"] == 998

    def test_status_walkthrough(self, client, seed, paid_order, admin_headers):
        url = f"/api/admin/orders/{paid_order.id}"

        for status in ("confirmed", "shipped"):
            res = client.put(url, json={"status": status}, headers=admin_headers)
            assert res.status_code == 200
            assert res.json()["message"] == "Order status updated"
            assert res.json()["order"]["status"] == status

        res = client.put(url, json={"status": "canceled"}, headers=admin_headers)
        assert res.status_code == 400
        assert res.json()["message"] == "Invalid status transition shipped -> canceled"

    def test_cancel_restores_stock(self, client, session, seed, paid_order, admin_headers):
        red = seed.variants[0]
        session.refresh(red)
        assert red.stock_quantity == 3

        client.put(
            f"/api/admin/orders/{paid_order.id}",
            json={"status": "canceled"},
            headers=admin_headers,
        )

        session.refresh(red)
        assert red.stock_quantity == 5

    def test_unknown_status(self, client, seed, paid_order, admin_headers):
        res = client.put(
            f"/api/admin/orders/{paid_order.id}",
            json={"status": "lost"},
            headers=admin_headers,
        )

        assert res.status_code == 422


class TestAdminStats:
    def test_dashboard(self, client, seed, paid_order, booked_ticket, admin_headers):
        res = client.get("/api/admin/stats", headers=admin_headers)

        assert res.status_code == 200
        stats = res.json()["stats"]
        assert stats["total_customers"] == 1
        assert stats["total_vendors"] == 1
        assert stats["total_event_managers"] == 1
        assert stats["total_orders"] == 1
        assert stats["total_revenue"] == 1038
        assert stats["total_tickets_sold"] == 2
        assert stats["ticket_revenue"] == 5000
        assert stats["top_products"][0]["total_quantity"] == 2
        assert stats["latest_orders"][0]["customer_name"] == "Priya"
        assert [d["order_count"] for d in stats["daily_sales"]] == [1]

    def test_month_out_of_range(self, client, seed, admin_headers):
        res = client.get("/api/admin/stats?month=13", headers=admin_headers)

        assert res.status_code == 422

    def test_other_month_has_no_sales(self, client, seed, paid_order, admin_headers):
        res = client.get("/api/admin/stats?year=2001&month=1", headers=admin_headers)

        assert res.json()["stats"]["daily_sales"] == []


class TestAdminLists:
    def test_products(self, client, seed, paid_order, admin_headers):
        res = client.get("/api/admin/products", headers=admin_headers)

        assert res.status_code == 200
        rows = res.json()["products"]
        assert len(rows) == 1
        assert rows[0]["name"] == "Reflective Dog Collar"
        assert rows[0]["vendor"] == "Paws Corner"
        assert rows[0]["price"] == 499
        assert rows[0]["stock"] == 13

    def test_deleted_products_are_hidden(self, client, seed, admin_headers):
        client.delete(f"/api/admin/products/{seed.product.id}", headers=admin_headers)

        res = client.get("/api/admin/products", headers=admin_headers)

        assert res.json()["products"] == []

    def test_events_latest_first(self, client, seed, booked_ticket, admin_headers):
        res = client.get("/api/admin/events", headers=admin_headers)

        assert res.status_code == 200
        rows = res.json()["events"]
        assert [r["title"] for r in rows] == ["Doggy Day Out", "Cat Café Meetup"]
        assert rows[0]["tickets_sold"] == 2
        assert rows[0]["tickets_left"] == 8
        assert rows[0]["manager_name"] == seed.manager.name

    def test_users_by_role(self, client, seed, admin_headers):
        customers = client.get("/api/admin/customers", headers=admin_headers).json()["customers"]
        vendors = client.get("/api/admin/vendors", headers=admin_headers).json()["vendors"]
        managers = client.get("/api/admin/event-managers", headers=admin_headers).json()["managers"]

        assert [c["id"] for c in customers] == [str(seed.customer.id)]
        assert [v["store_name"] for v in vendors] == ["Paws Corner"]
        assert [m["id"] for m in managers] == [str(seed.manager.id)]

    def test_orders(self, client, seed, paid_order, admin_headers):
        res = client.get("/api/admin/orders", headers=admin_headers)

        rows = res.json()["orders"]
        assert [(r["id"], r["customer_name"], r["total_amount"]) for r in rows] == [
            (str(paid_order.id), "Priya", 1038)
        ]


class TestAdminListStats:
    def test_customers_and_orders(self, client, seed, paid_order, admin_headers):
        customers = client.get("/api/admin/customers/stats", headers=admin_headers).json()["stats"]
        orders = client.get("/api/admin/orders/stats", headers=admin_headers).json()["stats"]

        assert customers == {"total": 1, "monthly": 1, "weekly": 1, "daily": 1}
        assert orders == {"total": 1, "monthly": 1, "weekly": 1, "daily": 1}

    def test_old_orders_only_count_in_total(self, client, session, seed, paid_order, admin_headers):
        paid_order.created_at = utcnow() - timedelta(days=40)
        session.add(paid_order)
        session.commit()

        res = client.get("/api/admin/orders/stats", headers=admin_headers)

        assert res.json()["stats"] == {"total": 1, "monthly": 0, "weekly": 0, "daily": 0}

    def test_products(self, client, seed, admin_headers):
        res = client.get("/api/admin/products/stats", headers=admin_headers)

        assert res.json()["stats"] == {
            "total": 1,
            "in_stock": 1,
            "low_stock": 0,
            "out_of_stock": 0,
        }

    def test_low_stock_is_summed_over_variants(self, client, session, seed, admin_headers):
        for variant in seed.variants:
            variant.stock_quantity = 1
            session.add(variant)
        session.commit()

        stats = client.get("/api/admin/products/stats", headers=admin_headers).json()["stats"]

        assert stats["low_stock"] == 1
        assert stats["in_stock"] == 1

    def test_events(self, client, seed, booked_ticket, admin_headers):
        res = client.get("/api/admin/events/stats", headers=admin_headers)

        assert res.json()["stats"] == {
            "total_events": 2,
            "upcoming_events": 1,
            "completed_events": 1,
            "tickets_sold": 2,
        }

    def test_event_revenue(self, client, seed, booked_ticket, admin_headers):
        res = client.get("/api/admin/events/revenue", headers=admin_headers)

        assert res.status_code == 200
        assert res.json()["revenue"] == {
            "total_sales": 5000,
            "revenue": 500,
            "this_month_sales": 5000,
            "last_month_sales": 0,
            "change_percent": 100,
        }

    def test_vendors(self, client, seed, paid_order, admin_headers):
        res = client.get("/api/admin/vendors/stats", headers=admin_headers)

        assert res.json()["stats"] == {
            "total": 1,
            "total_orders": 1,
            "todays_orders": 1,
            "gross_sales": 998,
            "commission": 79.84,
        }

    def test_event_managers(self, client, seed, booked_ticket, admin_headers):
        res = client.get("/api/admin/event-managers/stats", headers=admin_headers)

        assert res.json()["stats"] == {
            "total": 1,
            "new_this_month": 1,
            "total_events": 2,
            "todays_events": 0,
            "ticket_revenue": 5000,
        }


class TestAdminTopLists:
    def test_vendor_top_customers(self, client, seed, paid_order, admin_headers):
        res = client.get(
            f"/api/admin/vendors/{seed.vendor.id}/top-customers",
            headers=admin_headers,
        )

        rows = res.json()["customers"]
        assert len(rows) == 1
        assert rows[0]["customer_id"] == str(seed.customer.id)
        assert rows[0]["customer_name"] == "Priya"
        assert rows[0]["total_orders"] == 1
        assert rows[0]["total_spent"] == 998

    def test_canceled_orders_are_left_out(self, client, seed, paid_order, admin_headers):
        client.put(
            f"/api/admin/orders/{paid_order.id}",
            json={"status": "canceled"},
            headers=admin_headers,
        )

        res = client.get(
            f"/api/admin/vendors/{seed.vendor.id}/top-customers",
            headers=admin_headers,
        )

        assert res.json()["customers"] == []

    def test_customer_top_ordered_and_events(
        self, client, seed, paid_order, booked_ticket, admin_headers
    ):
        base = f"/api/admin/customers/{seed.customer.id}"

        products = client.get(f"{base}/top-ordered", headers=admin_headers).json()["products"]
        events = client.get(f"{base}/top-events", headers=admin_headers).json()["events"]

        assert products == [
            {
                "product_id": str(seed.product.id),
                "product_name": "Reflective Dog Collar",
                "total_quantity": 2,
                "total_spent": 998,
            }
        ]
        assert events == [
            {
                "event_id": str(seed.event.id),
                "title": "Doggy Day Out",
                "tickets": 2,
                "total_spent": 5000,
            }
        ]

    def test_top_lists_need_the_right_role(self, client, seed, admin_headers):
        res = client.get(
            f"/api/admin/vendors/{seed.customer.id}/top-customers",
            headers=admin_headers,
        )

        assert res.status_code == 404
        assert res.json()["message"] == "Vendor not found"
