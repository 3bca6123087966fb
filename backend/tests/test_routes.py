# Overview: Pytest coverage for the HTTP API (auth, shop, catalog, invoices, dashboard).

"""
API route tests.

Drive the blueprints through the Flask test client. Each request runs in
its own app context and therefore its own session; call
db_session.expire_all() before reading rows a request has written.
"""

from billing.models import Product, Shop, User
from conftest import TEST_PASSWORD, auth_headers, invoice_payload


class TestPublicEndpoints:
    def test_health(self, client, db_session):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "healthy"

    def test_protected_routes_require_token(self, client, db_session):
        for method, url in [
            ("get", "/api/invoices"),
            ("post", "/api/invoices"),
            ("get", "/api/products"),
            ("get", "/api/customers"),
            ("get", "/api/shop"),
            ("get", "/api/dashboard/stats"),
        ]:
            response = getattr(client, method)(url)
            assert response.status_code == 401, url

    def test_garbage_token_rejected(self, client, db_session):
        response = client.get("/api/auth/me", headers=auth_headers("not-a-real-token"))
        assert response.status_code == 401
        assert response.get_json()["error"] == "Invalid or expired token"


class TestAuthRoutes:
    def test_signup_then_me(self, client, db_session):
        response = client.post("/api/auth/signup", json={
            "email": "New.Owner@Shop.test",
            "password": "Sup3rSecret",
            "full_name": "New Owner",
        })
        assert response.status_code == 201
        body = response.get_json()
        assert body["user"]["email"] == "new.owner@shop.test"
        assert body["token"]
        assert body["expires_at"].endswith("Z")

        me = client.get("/api/auth/me", headers=auth_headers(body["token"]))
        assert me.status_code == 200
        assert me.get_json()["user"]["full_name"] == "New Owner"

    def test_duplicate_signup_conflicts(self, client, db_session, owner_a):
        response = client.post("/api/auth/signup", json={
            "email": owner_a.email,
            "password": "Sup3rSecret",
            "full_name": "Someone Else",
        })
        assert response.status_code == 409

    def test_weak_password_rejected(self, client, db_session):
        response = client.post("/api/auth/signup", json={
            "email": "weak@shop.test",
            "password": "short",
            "full_name": "Weak",
        })
        assert response.status_code == 400
        db_session.expire_all()
        assert db_session.query(User).filter_by(email="weak@shop.test").count() == 0

    def test_login(self, client, db_session, owner_a):
        response = client.post("/api/auth/login", json={"email": owner_a.email, "password": TEST_PASSWORD})
        assert response.status_code == 200
        assert response.get_json()["user"]["id"] == owner_a.id

    def test_login_wrong_password(self, client, db_session, owner_a):
        response = client.post("/api/auth/login", json={"email": owner_a.email, "password": "WrongPass123"})
        assert response.status_code == 401
        assert response.get_json()["error"] == "Invalid credentials"

    def test_login_missing_fields(self, client, db_session):
        response = client.post("/api/auth/login", json={"email": "x@y.test"})
        assert response.status_code == 400

    def test_logout_revokes_token(self, client, db_session, headers_a):
        assert client.post("/api/auth/logout", headers=headers_a).status_code == 200
        assert client.get("/api/auth/me", headers=headers_a).status_code == 401


class TestShopRoutes:
    def test_setup_shop(self, client, db_session, owner_b, headers_b):
        response = client.post("/api/shop", headers=headers_b, json={
            "shop_name": "Beta Mart",
            "tax_rate": "5.00",
            "invoice_prefix": "BM",
        })
        assert response.status_code == 201
        body = response.get_json()
        assert body["tax_rate"] == "5.00"
        assert body["currency"] == "INR"
        assert body["next_invoice_number"] == 1

        assert client.get("/api/shop", headers=headers_b).get_json()["shop_name"] == "Beta Mart"

    def test_second_shop_conflicts(self, client, db_session, shop_a, headers_a):
        response = client.post("/api/shop", headers=headers_a, json={"shop_name": "Another"})
        assert response.status_code == 409

    def test_counter_is_not_client_writable(self, client, db_session, shop_a, headers_a):
        response = client.put("/api/shop", headers=headers_a, json={"next_invoice_number": 500})
        assert response.status_code == 400
        db_session.expire_all()
        assert db_session.get(Shop, shop_a.id).next_invoice_number == 1

    def test_update_prefix(self, client, db_session, shop_a, headers_a):
        response = client.put("/api/shop", headers=headers_a, json={"invoice_prefix": "ACME"})
        assert response.status_code == 200
        assert response.get_json()["invoice_prefix"] == "ACME"

    def test_get_shop_without_one(self, client, db_session, owner_b, headers_b):
        response = client.get("/api/shop", headers=headers_b)
        assert response.status_code == 404
        assert response.get_json()["error"] == "Shop not found"


class TestCatalogRoutes:
    def test_product_crud(self, client, db_session, shop_a, headers_a, category_a):
        created = client.post("/api/products", headers=headers_a, json={
            "name": "Stapler",
            "selling_price": 149.5,
            "sku": "ST-01",
            "category_id": category_a.id,
            "current_stock": 12,
        })
        assert created.status_code == 201
        product = created.get_json()
        assert product["selling_price"] == "149.50"

        updated = client.put(f"/api/products/{product['id']}", headers=headers_a, json={"selling_price": "155.00"})
        assert updated.status_code == 200
        assert updated.get_json()["selling_price"] == "155.00"

        stock = client.patch(f"/api/products/{product['id']}/stock", headers=headers_a, json={"quantity": 3})
        assert stock.status_code == 200
        assert stock.get_json()["current_stock"] == 3

        low = client.get("/api/products/low-stock", headers=headers_a).get_json()
        assert [p["name"] for p in low] == ["Stapler"]

        assert client.delete(f"/api/products/{product['id']}", headers=headers_a).status_code == 200
        assert client.get(f"/api/products/{product['id']}", headers=headers_a).status_code == 404

    def test_product_validation(self, client, db_session, shop_a, headers_a):
        response = client.post("/api/products", headers=headers_a, json={"name": "Broken"})
        assert response.status_code == 400

        response = client.patch("/api/products/1/stock", headers=headers_a, json={"quantity": 2.5})
        assert response.status_code == 400

    def test_product_list_search(self, client, db_session, shop_a, headers_a, product_a, service_product_a):
        response = client.get("/api/products?search=nb-0", headers=headers_a)
        assert response.status_code == 200
        body = response.get_json()
        assert [p["name"] for p in body["content"]] == ["Notebook"]
        assert body["total_elements"] == 1

    def test_customer_crud(self, client, db_session, shop_a, headers_a):
        created = client.post("/api/customers", headers=headers_a, json={"name": "Anita", "phone_number": "99999"})
        assert created.status_code == 201
        customer_id = created.get_json()["id"]

        listing = client.get("/api/customers?search=999", headers=headers_a).get_json()
        assert [c["id"] for c in listing["content"]] == [customer_id]

        assert client.delete(f"/api/customers/{customer_id}", headers=headers_a).status_code == 200
        assert client.get(f"/api/customers/{customer_id}", headers=headers_a).status_code == 404

    def test_all_lists_are_unpaginated_and_shop_scoped(
        self, client, db_session, shop_a, headers_a, product_a, service_product_a, product_b,
        customer_a, customer_b,
    ):
        client.delete(f"/api/products/{service_product_a.id}", headers=headers_a)
        extra = client.post("/api/customers", headers=headers_a, json={"name": "Anita"}).get_json()

        products = client.get("/api/products/all", headers=headers_a)
        assert products.status_code == 200
        assert [p["name"] for p in products.get_json()] == ["Notebook"]

        customers = client.get("/api/customers/all", headers=headers_a)
        assert customers.status_code == 200
        assert [c["id"] for c in customers.get_json()] == [extra["id"], customer_a.id]

    def test_stock_correction_is_patch(self, client, db_session, shop_a, headers_a, product_a):
        response = client.put(f"/api/products/{product_a.id}/stock", headers=headers_a, json={"quantity": 3})
        assert response.status_code == 405

        response = client.patch(
            f"/api/products/{product_a.id}/stock",
            headers={**headers_a, "Origin": "http://localhost:5173"},
            json={"quantity": 3},
        )
        assert response.status_code == 200
        assert "PATCH" in response.headers["Access-Control-Allow-Methods"]

    def test_category_name_unique(self, client, db_session, shop_a, headers_a, category_a):
        response = client.post("/api/categories", headers=headers_a, json={"name": "stationery"})
        assert response.status_code == 409


class TestInvoiceRoutes:
    def test_create_invoice(self, client, db_session, shop_a, headers_a, product_a):
        response = client.post("/api/invoices", headers=headers_a, json=invoice_payload((product_a.id, 2)))
        assert response.status_code == 201
        body = response.get_json()
        assert body["invoice_number"] == "INV-00001"
        assert body["total_amount"] == "236.00"

        db_session.expire_all()
        assert db_session.get(Product, product_a.id).current_stock == 48

    def test_json_numbers_keep_exact_cents(self, client, db_session, shop_a, headers_a, product_a):
        response = client.post("/api/invoices", headers=headers_a, json=invoice_payload(
            {"product_id": product_a.id, "quantity": 3, "unit_price": 0.1},
            discount_amount=0.2,
        ))
        assert response.status_code == 201
        body = response.get_json()
        assert body["subtotal"] == "0.30"
        assert body["tax_amount"] == "0.02"
        assert body["total_amount"] == "0.12"

    def test_empty_items_rejected(self, client, db_session, shop_a, headers_a):
        response = client.post("/api/invoices", headers=headers_a, json=invoice_payload())
        assert response.status_code == 400
        assert "error" in response.get_json()

    def test_mark_paid_twice(self, client, db_session, shop_a, headers_a, product_a):
        invoice_id = client.post(
            "/api/invoices", headers=headers_a, json=invoice_payload((product_a.id, 1))
        ).get_json()["id"]

        first = client.post(f"/api/invoices/{invoice_id}/mark-paid", headers=headers_a, json={"payment_method": "UPI"})
        assert first.status_code == 200
        assert first.get_json()["payment_status"] == "PAID"

        second = client.post(f"/api/invoices/{invoice_id}/mark-paid", headers=headers_a, json={"payment_method": "UPI"})
        assert second.status_code == 409

    def test_record_payment_requires_amount(self, client, db_session, shop_a, headers_a, product_a):
        invoice_id = client.post(
            "/api/invoices", headers=headers_a, json=invoice_payload((product_a.id, 1))
        ).get_json()["id"]

        response = client.post(f"/api/invoices/{invoice_id}/payment", headers=headers_a, json={"payment_method": "CASH"})
        assert response.status_code == 400

        response = client.post(
            f"/api/invoices/{invoice_id}/payment", headers=headers_a, json={"amount": "18.00", "payment_method": "CASH"}
        )
        assert response.status_code == 200
        assert response.get_json()["payment_status"] == "PARTIAL"
        assert response.get_json()["balance_due"] == "100.00"

    def test_cancel_and_list(self, client, db_session, shop_a, headers_a, product_a):
        invoice_id = client.post(
            "/api/invoices", headers=headers_a, json=invoice_payload((product_a.id, 5))
        ).get_json()["id"]

        response = client.post(f"/api/invoices/{invoice_id}/cancel", headers=headers_a)
        assert response.status_code == 200
        assert response.get_json()["payment_status"] == "CANCELLED"

        listing = client.get("/api/invoices", headers=headers_a).get_json()
        assert listing["total_elements"] == 0
        assert client.get(f"/api/invoices/{invoice_id}", headers=headers_a).status_code == 200

        db_session.expire_all()
        assert db_session.get(Product, product_a.id).current_stock == 50

    def test_cross_shop_invoice_is_404(self, client, db_session, shop_a, headers_a, product_a, shop_b, headers_b):
        invoice_id = client.post(
            "/api/invoices", headers=headers_a, json=invoice_payload((product_a.id, 1))
        ).get_json()["id"]

        for method, url in [
            ("get", f"/api/invoices/{invoice_id}"),
            ("post", f"/api/invoices/{invoice_id}/mark-paid"),
            ("post", f"/api/invoices/{invoice_id}/cancel"),
        ]:
            response = getattr(client, method)(url, headers=headers_b, json={"payment_method": "CASH"})
            assert response.status_code == 404, url
            assert response.get_json()["error"] == "Invoice not found"

    def test_list_bad_paging(self, client, db_session, shop_a, headers_a):
        assert client.get("/api/invoices?page=-1", headers=headers_a).status_code == 400
        assert client.get("/api/invoices?status=NOPE", headers=headers_a).status_code == 400


class TestDashboardRoute:
    def test_stats(self, client, db_session, shop_a, headers_a, product_a, customer_a):
        client.post("/api/invoices", headers=headers_a, json=invoice_payload(
            (product_a.id, 2), customer_id=customer_a.id, mark_as_paid=True, payment_method="CASH"
        ))
        client.post("/api/invoices", headers=headers_a, json=invoice_payload((product_a.id, 1)))

        response = client.get("/api/dashboard/stats", headers=headers_a)
        assert response.status_code == 200
        stats = response.get_json()
        assert stats["total_invoices"] == 2
        assert stats["paid_invoices"] == 1
        assert stats["pending_invoices"] == 1
        assert stats["total_customers"] == 1
        assert stats["total_products"] == 1
        assert stats["total_sales"] == "236.00"
