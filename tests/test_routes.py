from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.exc import OperationalError
from sqlmodel import select

from storefront.models.coupon import Coupon
from storefront.models.order import Order
from storefront.routes import cart as cart_routes
from storefront.routes import coupons as coupon_routes
from storefront.routes.public_settings import clear_settings_cache
from storefront.services import checkout_service
from storefront.services.settings_service import save_setting

D = Decimal


def money(value):
    return D(str(value))


class TestCartQuoteEndpoint:
    def test_quote_without_coupon(self, client, make_product):
        p = make_product(price="1000")

        resp = client.post("/cart/quote", json={"items": [{"product_id": p.id, "quantity": 1}]})

        assert resp.status_code == 200
        body = resp.json()
        assert money(body["quote"]["total"]) == D("1279")
        assert money(body["free_shipping_remaining"]) == D("500")
        assert body["coupon_valid"] is None
        assert body["item_count"] == 1

    def test_quote_with_valid_coupon(self, client, make_product, make_coupon):
        p = make_product(price="1000")
        make_coupon(code="SAVE20")

        resp = client.post(
            "/cart/quote",
            json={"items": [{"product_id": p.id, "quantity": 1}], "coupon_code": "save20"},
        )

        body = resp.json()
        assert body["coupon_valid"] is True
        assert body["coupon_code"] == "SAVE20"
        assert money(body["quote"]["discount_amount"]) == D("200")
        assert money(body["quote"]["total"]) == D("1043")

    def test_rejected_coupon_leaves_quote_undiscounted(self, client, make_product, make_coupon):
        p = make_product(price="1000")
        make_coupon(code="BIG", min_order_amount="1500")

        resp = client.post(
            "/cart/quote",
            json={"items": [{"product_id": p.id, "quantity": 1}], "coupon_code": "BIG"},
        )

        body = resp.json()
        assert resp.status_code == 200
        assert body["coupon_valid"] is False
        assert body["coupon_reason"] == "minimum_not_met"
        assert "1500" in body["coupon_message"]
        assert money(body["quote"]["discount_amount"]) == D("0")
        assert money(body["quote"]["total"]) == D("1279")

    def test_unknown_product(self, client):
        resp = client.post("/cart/quote", json={"items": [{"product_id": 404, "quantity": 1}]})
        assert resp.status_code == 400

    def test_zero_quantity_is_rejected_at_the_boundary(self, client, make_product):
        p = make_product()
        resp = client.post("/cart/quote", json={"items": [{"product_id": p.id, "quantity": 0}]})
        assert resp.status_code == 422


class TestCouponValidateEndpoint:
    def test_valid(self, client, make_coupon):
        make_coupon(code="WELCOME")

        resp = client.post("/coupons/validate", json={"code": "welcome", "subtotal": "100"})

        body = resp.json()
        assert body["valid"] is True
        assert body["coupon"]["code"] == "WELCOME"

    def test_usage_limit(self, client, make_coupon):
        make_coupon(code="ONCE", max_uses=1, used_count=1)

        body = client.post("/coupons/validate", json={"code": "ONCE", "subtotal": "5000"}).json()

        assert body["valid"] is False
        assert body["reason"] == "usage_limit_reached"

    def test_expired(self, client, make_coupon, yesterday):
        make_coupon(code="OLD", expires_at=yesterday)

        body = client.post("/coupons/validate", json={"code": "OLD", "subtotal": "5000"}).json()

        assert body["reason"] == "expired"

    def test_unknown(self, client):
        body = client.post("/coupons/validate", json={"code": "NOPE", "subtotal": "10"}).json()
        assert body == {"valid": False, "reason": "not_found", "message": "Invalid coupon code", "coupon": None}


class TestCheckoutEndpoint:
    def test_guest_checkout(self, client, make_product, address, session):
        p = make_product(price="500")

        resp = client.post(
            "/checkout/place-order",
            json={
                "items": [{"product_id": p.id, "quantity": 4}],
                "address": address,
                "guest_email": "guest@example.com",
            },
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["order_number"].startswith("ORD-")
        assert money(body["total"]) == D("2360")
        assert len(body["items"]) == 1

    def test_signed_in_checkout_shows_in_history(self, client, make_product, make_user, auth_headers, address):
        user = make_user()
        headers = auth_headers(user)
        p = make_product(price="300")

        placed = client.post(
            "/checkout/place-order",
            json={"items": [{"product_id": p.id, "quantity": 1}], "address": address},
            headers=headers,
        ).json()

        history = client.get("/orders/my", headers=headers).json()
        assert history["total_items"] == 1
        assert history["results"][0]["order_number"] == placed["order_number"]

        detail = client.get(f"/orders/{placed['order_id']}", headers=headers).json()
        assert detail["items"][0]["quantity"] == 1
        assert detail["shipping_address"]["postal_code"] == "560001"

    def test_guest_without_email(self, client, make_product, address):
        p = make_product()
        resp = client.post(
            "/checkout/place-order",
            json={"items": [{"product_id": p.id, "quantity": 1}], "address": address},
        )
        assert resp.status_code == 400
        assert "Email is required" in resp.json()["detail"]

    def test_invalid_address(self, client, make_product, address):
        p = make_product()
        address["phone"] = "123"
        resp = client.post(
            "/checkout/place-order",
            json={
                "items": [{"product_id": p.id, "quantity": 1}],
                "address": address,
                "guest_email": "g@example.com",
            },
        )
        assert resp.status_code == 422

    def test_bad_token_is_not_treated_as_guest(self, client, make_product, address):
        p = make_product()
        resp = client.post(
            "/checkout/place-order",
            json={
                "items": [{"product_id": p.id, "quantity": 1}],
                "address": address,
                "guest_email": "g@example.com",
            },
            headers={"Authorization": "Bearer not-a-token"},
        )
        assert resp.status_code == 401

    def test_other_users_order_is_hidden(self, client, make_user, auth_headers, make_product, address):
        owner = make_user(email="owner@example.com")
        other = make_user(email="other@example.com")
        p = make_product()

        placed = client.post(
            "/checkout/place-order",
            json={"items": [{"product_id": p.id, "quantity": 1}], "address": address},
            headers=auth_headers(owner),
        ).json()

        resp = client.get(f"/orders/{placed['order_id']}", headers=auth_headers(other))
        assert resp.status_code == 404


class TestAdminCoupons:
    payload = {
        "code": "diwali30",
        "discount_type": "percentage",
        "discount_value": "30",
        "min_order_amount": "999",
        "max_uses": 100,
    }

    def test_requires_admin(self, client, make_user, auth_headers):
        resp = client.post("/admin/coupons", json=self.payload, headers=auth_headers(make_user()))
        assert resp.status_code == 403

    def test_requires_login(self, client):
        assert client.get("/admin/coupons").status_code == 401

    def test_create_stores_uppercase_code(self, client, admin_headers, session):
        resp = client.post("/admin/coupons", json=self.payload, headers=admin_headers)

        assert resp.status_code == 201
        assert resp.json()["code"] == "DIWALI30"
        assert session.get(Coupon, resp.json()["id"]).used_count == 0

    def test_duplicate_code_conflicts(self, client, admin_headers):
        client.post("/admin/coupons", json=self.payload, headers=admin_headers)
        resp = client.post(
            "/admin/coupons", json={**self.payload, "code": "DIWALI30"}, headers=admin_headers
        )
        assert resp.status_code == 409

    def test_percentage_over_hundred_rejected(self, client, admin_headers):
        resp = client.post(
            "/admin/coupons", json={**self.payload, "discount_value": "150"}, headers=admin_headers
        )
        assert resp.status_code == 422

    def test_update_and_list(self, client, admin_headers):
        created = client.post("/admin/coupons", json=self.payload, headers=admin_headers).json()

        resp = client.put(
            f"/admin/coupons/{created['id']}",
            json={"is_active": False},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["is_active"] is False

        listing = client.get("/admin/coupons?active=false", headers=admin_headers).json()
        assert listing["total_items"] == 1

    def test_update_cannot_switch_large_fixed_to_percentage(self, client, admin_headers):
        created = client.post(
            "/admin/coupons",
            json={"code": "FLAT500", "discount_type": "fixed", "discount_value": "500"},
            headers=admin_headers,
        ).json()

        resp = client.put(
            f"/admin/coupons/{created['id']}",
            json={"discount_type": "percentage"},
            headers=admin_headers,
        )
        assert resp.status_code == 422

    def test_delete(self, client, admin_headers, session):
        created = client.post("/admin/coupons", json=self.payload, headers=admin_headers).json()

        resp = client.delete(f"/admin/coupons/{created['id']}", headers=admin_headers)

        assert resp.status_code == 200
        assert session.get(Coupon, created["id"]) is None

    def test_delete_used_coupon_conflicts(self, client, admin_headers, make_product, address):
        created = client.post(
            "/admin/coupons",
            json={"code": "USED", "discount_type": "fixed", "discount_value": "10"},
            headers=admin_headers,
        ).json()
        p = make_product()
        client.post(
            "/checkout/place-order",
            json={
                "items": [{"product_id": p.id, "quantity": 1}],
                "address": address,
                "guest_email": "g@example.com",
                "coupon_code": "used",
            },
        )

        resp = client.delete(f"/admin/coupons/{created['id']}", headers=admin_headers)
        assert resp.status_code == 409


class TestShippingSettings:
    def test_public_defaults(self, client):
        body = client.get("/settings/shipping").json()
        assert money(body["base_price"]) == D("99")
        assert money(body["free_threshold"]) == D("1500")
        assert money(body["tax_percentage"]) == D("18")

    def test_public_settings_are_cached_until_cleared(self, client, session):
        shipping = {"base_price": "49", "free_threshold": "999", "tax_percentage": "12"}
        save_setting(session, "shipping", shipping)
        assert money(client.get("/settings/shipping").json()["base_price"]) == D("49")

        save_setting(session, "shipping", {**shipping, "base_price": "10"})
        assert money(client.get("/settings/shipping").json()["base_price"]) == D("49")

        clear_settings_cache()
        assert money(client.get("/settings/shipping").json()["base_price"]) == D("10")

    def test_admin_update_changes_quotes(self, client, admin_headers, make_product):
        resp = client.put(
            "/admin/settings/shipping",
            json={"value": {"base_price": 50, "free_threshold": 0, "tax_percentage": 5}},
            headers=admin_headers,
        )
        assert resp.status_code == 200

        assert money(client.get("/settings/shipping").json()["base_price"]) == D("50")

        p = make_product(price="5000")
        quote = client.post(
            "/cart/quote", json={"items": [{"product_id": p.id, "quantity": 1}]}
        ).json()["quote"]
        assert money(quote["shipping_amount"]) == D("50")
        assert money(quote["tax_amount"]) == D("250")

    def test_invalid_shipping_rejected(self, client, admin_headers):
        resp = client.put(
            "/admin/settings/shipping",
            json={"value": {"base_price": -5, "free_threshold": 0, "tax_percentage": 5}},
            headers=admin_headers,
        )
        assert resp.status_code == 422

    def test_other_keys_stored_as_is(self, client, admin_headers):
        resp = client.put(
            "/admin/settings/announcement",
            json={"value": {"text": "Free gift wrap", "enabled": True}},
            headers=admin_headers,
        )
        assert resp.json()["value"] == {"text": "Free gift wrap", "enabled": True}


class TestAdminOrders:
    def _place(self, client, make_product, address):
        p = make_product()
        return client.post(
            "/checkout/place-order",
            json={
                "items": [{"product_id": p.id, "quantity": 1}],
                "address": address,
                "guest_email": "guest@example.com",
            },
        ).json()

    def test_list_includes_guest_orders(self, client, admin_headers, make_product, address):
        placed = self._place(client, make_product, address)

        listing = client.get("/admin/orders", headers=admin_headers).json()

        assert listing["total_items"] == 1
        assert listing["results"][0]["order_number"] == placed["order_number"]
        assert listing["results"][0]["customer"] == "guest@example.com"

    def test_search_by_order_number(self, client, admin_headers, make_product, address):
        placed = self._place(client, make_product, address)

        listing = client.get(
            f"/admin/orders?search={placed['order_number'][-6:]}", headers=admin_headers
        ).json()

        assert listing["total_items"] == 1

    def test_status_transition(self, client, admin_headers, make_product, address, session):
        placed = self._place(client, make_product, address)

        resp = client.patch(
            f"/admin/orders/{placed['order_id']}/status",
            json={"status": "paid"},
            headers=admin_headers,
        )

        assert resp.status_code == 200
        assert resp.json()["payment_status"] == "paid"
        order = session.get(Order, placed["order_id"])
        assert order.status == "paid"
        assert order.total == money(placed["total"])

    def test_illegal_transition(self, client, admin_headers, make_product, address):
        placed = self._place(client, make_product, address)

        resp = client.patch(
            f"/admin/orders/{placed['order_id']}/status",
            json={"status": "delivered"},
            headers=admin_headers,
        )

        assert resp.status_code == 400


class TestAdminDashboard:
    def _order(self, client, product, quantity, address, email):
        return client.post(
            "/checkout/place-order",
            json={
                "items": [{"product_id": product.id, "quantity": quantity}],
                "address": address,
                "guest_email": email,
            },
        ).json()

    def test_requires_admin(self, client, make_user, auth_headers):
        resp = client.get("/admin/dashboard/stats", headers=auth_headers(make_user()))
        assert resp.status_code == 403

    def test_stats(self, client, admin_headers, make_product, make_user, address):
        scarce = make_product(name="Silk Scarf", price="500", stock=3)
        plenty = make_product(name="Cotton Tee", price="500", stock=10)
        make_user(email="customer@example.com")
        self._order(client, scarce, 1, address, "a@example.com")
        self._order(client, plenty, 1, address, "b@example.com")

        stats = client.get("/admin/dashboard/stats", headers=admin_headers).json()

        assert stats["today_orders"] == 2
        assert money(stats["today_sales"]) == D("1378")
        assert stats["total_products"] == 2
        assert stats["low_stock_products"] == 1
        assert stats["pending_orders"] == 2
        assert stats["total_customers"] == 1

    def test_empty_store(self, client, admin_headers):
        stats = client.get("/admin/dashboard/stats", headers=admin_headers).json()
        assert stats["today_orders"] == 0
        assert money(stats["today_sales"]) == D("0")

    def test_recent_orders_newest_first(self, client, admin_headers, make_product, address):
        p = make_product()
        first = self._order(client, p, 1, address, "first@example.com")
        second = self._order(client, p, 1, address, "second@example.com")

        recent = client.get("/admin/dashboard/recent-orders", headers=admin_headers).json()

        assert [r["order_number"] for r in recent] == [second["order_number"], first["order_number"]]
        assert recent[0]["customer_email"] == "second@example.com"

    def test_best_sellers(self, client, admin_headers, make_product, address):
        mug = make_product(name="Mug", price="200")
        tee = make_product(name="Tee", price="400")
        self._order(client, mug, 1, address, "a@example.com")
        self._order(client, tee, 3, address, "b@example.com")

        top = client.get("/admin/dashboard/best-sellers", headers=admin_headers).json()

        assert top[0]["name"] == "Tee"
        assert top[0]["total_sold"] == 3
        assert money(top[0]["revenue"]) == D("1200")
        assert top[1]["name"] == "Mug"


def _db_down(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("connection refused"))


class TestDatabaseFailures:
    def test_checkout_failure_is_a_retryable_error(self, client, make_product, address, session, monkeypatch):
        p = make_product(stock=5)
        monkeypatch.setattr(checkout_service, "_reduce_stock", _db_down)

        resp = client.post(
            "/checkout/place-order",
            json={
                "items": [{"product_id": p.id, "quantity": 1}],
                "address": address,
                "guest_email": "guest@example.com",
            },
        )

        assert resp.status_code == 503
        assert resp.json()["detail"] == "Something went wrong, please try again"
        assert session.exec(select(Order)).all() == []

    def test_coupon_lookup_failure_is_not_a_rejection(self, client, monkeypatch):
        monkeypatch.setattr(coupon_routes, "check_coupon", _db_down)

        resp = client.post("/coupons/validate", json={"code": "SAVE20", "subtotal": "100"})

        assert resp.status_code == 503
        assert "try again" in resp.json()["detail"]

    def test_quote_failure(self, client, make_product, monkeypatch):
        p = make_product()
        monkeypatch.setattr(cart_routes, "get_shipping_config", _db_down)

        resp = client.post("/cart/quote", json={"items": [{"product_id": p.id, "quantity": 1}]})

        assert resp.status_code == 503


class TestHealth:
    def test_health(self, client):
        body = client.get("/health/check").json()
        assert body["database"] == "ok"
