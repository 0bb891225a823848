# Overview: Pytest coverage for store administration, product management and dashboards.

import pytest

from storepos.extensions import db
from storepos.models import Store, User, Product, Sale
from storepos.services import store_service, products_service, sales_service, user_service
from storepos.services.sales_service import CartLine
from storepos.validation import (
    ServiceError, ValidationError, NotFoundError, ConflictError, MAX_QUANTITY, parse_int,
)

from conftest import PASSWORD


# =============================================================================
# STORE SERVICE
# =============================================================================


class TestStoreService:

    def test_create_and_duplicate(self, db_session):
        store = store_service.create_store("  downtown ")
        assert store.name == "downtown"
        with pytest.raises(ConflictError):
            store_service.create_store("downtown")

    def test_blank_name(self, db_session):
        with pytest.raises(ValidationError):
            store_service.create_store("   ")

    @pytest.mark.parametrize("name", ["POS Admins", "pos admins", "  POS ADMINS "])
    def test_admin_store_name_is_reserved(self, db_session, name):
        with pytest.raises(ValidationError) as excinfo:
            store_service.create_store(name)
        assert excinfo.value.message == "Store name is reserved"
        assert db.session.query(Store).count() == 0

    def test_rename_lowercases_and_detects_clash(self, store_alpha, store_beta):
        assert store_service.rename_store(store_alpha.id, "Uptown").name == "uptown"
        with pytest.raises(ConflictError):
            store_service.rename_store(store_alpha.id, "BETA")

    def test_admin_store_is_protected(self, admin_store):
        with pytest.raises(ValidationError):
            store_service.rename_store(admin_store.id, "other")
        with pytest.raises(ValidationError):
            store_service.delete_store(admin_store.id)

    def test_listing_hides_admin_store(self, admin_store, store_alpha, store_beta):
        names = [s.name for s in store_service.list_stores()]
        assert admin_store.name not in names
        assert sorted(names) == ["alpha", "beta"]
        assert admin_store.name in [s.name for s in store_service.list_stores(include_admin_store=True)]

    def test_delete_cascades(self, store_alpha, cashier, widget):
        sales_service.checkout(store_alpha.id, cashier.id, [CartLine(widget.id, 1)])
        store_id = store_alpha.id

        store_service.delete_store(store_id)

        assert db.session.get(Store, store_id) is None
        assert db.session.query(User).filter_by(store_id=store_id).count() == 0
        assert db.session.query(Product).filter_by(store_id=store_id).count() == 0
        assert db.session.query(Sale).filter_by(store_id=store_id).count() == 0

    def test_delete_unknown(self, db_session):
        with pytest.raises(NotFoundError):
            store_service.delete_store(4242)


# =============================================================================
# PRODUCT SERVICE
# =============================================================================


class TestProductService:

    def test_create_requires_all_fields(self, store_alpha):
        with pytest.raises(ValidationError) as excinfo:
            products_service.create_product(store_id=store_alpha.id, payload={"name": "Nut", "price": "1.00"})
        assert excinfo.value.message == "All fields are required"

    def test_create_parses_price_to_cents(self, store_alpha):
        product = products_service.create_product(store_id=store_alpha.id, payload={
            "name": "Nut", "description": "M6 nut", "price": "0.105", "stock": "12",
        })
        assert product.price_cents == 11
        assert product.stock == 12

    @pytest.mark.parametrize("patch", [{"price": "0"}, {"price": "abc"}, {"stock": -1}, {"stock": "1.5"}])
    def test_update_rejects_bad_values(self, widget, patch):
        with pytest.raises(ValidationError):
            products_service.update_product(product_id=widget.id, store_id=widget.store_id, payload=patch)

    def test_update_other_store_is_not_found(self, widget, store_beta):
        with pytest.raises(NotFoundError):
            products_service.update_product(product_id=widget.id, store_id=store_beta.id, payload={"stock": 9})

    def test_empty_patch(self, widget):
        with pytest.raises(ValidationError):
            products_service.update_product(product_id=widget.id, store_id=widget.store_id, payload={})

    def test_low_stock(self, app, widget, gadget):
        assert [p.name for p in products_service.list_low_stock(widget.store_id)] == ["Widget"]

    @pytest.mark.parametrize("stock", [10**20, MAX_QUANTITY + 1, "9" * 25])
    def test_stock_ceiling(self, widget, stock):
        with pytest.raises(ValidationError):
            products_service.update_product(product_id=widget.id, store_id=widget.store_id, payload={"stock": stock})

    def test_stock_at_ceiling_is_accepted(self, widget):
        product = products_service.update_product(
            product_id=widget.id, store_id=widget.store_id, payload={"stock": MAX_QUANTITY},
        )
        assert product.stock == MAX_QUANTITY


class TestParseInt:

    @pytest.mark.parametrize("value, expected", [(7, 7), ("42", 42), (3.0, 3), (" 5 ", 5)])
    def test_accepts_plain_integers(self, value, expected):
        assert parse_int(value, label="n") == expected

    @pytest.mark.parametrize("value", [10**20, -(10**20), 2**63, 1e30, "1" + "0" * 40])
    def test_rejects_values_beyond_64_bits(self, value):
        with pytest.raises(ValidationError):
            parse_int(value, label="n")

    def test_explicit_maximum(self):
        assert parse_int(10, label="n", maximum=10) == 10
        with pytest.raises(ValidationError) as excinfo:
            parse_int(11, label="n", maximum=10)
        assert excinfo.value.message == "n must be <= 10"


# =============================================================================
# ROUTES
# =============================================================================


class TestAdminRoutes:

    def test_dashboard(self, login_as, admin, store_alpha, cashier, manager, widget):
        sales_service.checkout(store_alpha.id, cashier.id, [CartLine(widget.id, 2)])
        body = login_as(admin).get("/admin/dashboard").get_json()

        assert [s["name"] for s in body["stores"]] == ["alpha"]
        assert [u["email"] for u in body["users"]] == [manager.email]
        assert body["salesByStore"] == [{
            "store_id": store_alpha.id, "store_name": "alpha", "sale_count": 1, "total_cents": 2000,
        }]
        assert body["sales"][0]["store"]["name"] == "alpha"

    def test_create_rename_delete_store(self, login_as, admin):
        client = login_as(admin)
        resp = client.post("/admin/dashboard/create_store", data={"storeName": "harbor"})
        assert resp.status_code == 201
        store_id = resp.get_json()["store"]["id"]

        resp = client.post("/admin/dashboard/create_store", data={"storeName": "harbor"})
        assert resp.status_code == 409

        resp = client.post("/admin/dashboard/stores", json={"actionType": "edit", "storeId": store_id, "newName": "Pier"})
        assert resp.get_json()["store"]["name"] == "pier"

        resp = client.post("/admin/dashboard/stores", json={"actionType": "delete", "storeId": store_id})
        assert resp.status_code == 200
        assert store_service.get_store(store_id) is None

    def test_create_store_with_admin_store_name_is_400(self, login_as, admin, admin_store):
        resp = login_as(admin).post("/admin/dashboard/create_store", data={"storeName": "pos ADMINS"})
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Store name is reserved"}

    def test_unknown_store_action(self, login_as, admin, store_alpha):
        resp = login_as(admin).post("/admin/dashboard/stores", json={"actionType": "merge", "storeId": store_alpha.id})
        assert resp.status_code == 400

    def test_password_confirmation(self, login_as, admin):
        client = login_as(admin)
        assert client.post("/admin/dashboard/adminStore", json={"password": PASSWORD}).status_code == 200
        assert client.post("/admin/dashboard/adminStore", json={"password": "wrong-one"}).status_code == 401
        assert client.post("/admin/dashboard/store_managers", json={}).status_code == 400

    def test_admin_store_listing(self, login_as, admin):
        body = login_as(admin).get("/admin/dashboard/adminStore").get_json()
        assert [u["email"] for u in body["adminStore"]["users"]] == [admin.email]

    def test_admin_adds_product_to_named_store(self, login_as, admin, store_alpha):
        client = login_as(admin)
        payload = {"name": "Nut", "description": "M6 nut", "price": "0.25", "stock": 3}
        assert client.post("/products/add", json=payload).status_code == 400

        resp = client.post("/products/add", json=dict(payload, store_id=store_alpha.id))
        assert resp.status_code == 201
        assert resp.get_json()["product"]["store_id"] == store_alpha.id


class TestStoreManagerRoutes:

    def test_dashboard_scoped_to_own_store(self, login_as, manager, cashier, widget, beta_product):
        body = login_as(manager).get("/store/dashboard").get_json()
        assert body["store"]["name"] == "alpha"
        assert [c["email"] for c in body["cashiers"]] == [cashier.email]
        assert body["lowStockProducts"] == [{"name": "Widget", "stock": 2}]

    def test_add_product_uses_session_store(self, login_as, manager, store_alpha, store_beta):
        resp = login_as(manager).post("/products/add", json={
            "name": "Nut", "description": "M6 nut", "price": "0.25", "stock": 3,
            "store_id": store_beta.id,
        })
        assert resp.status_code == 201
        assert resp.get_json()["product"]["store_id"] == store_alpha.id

    def test_edit_and_delete_own_product(self, login_as, manager, widget):
        client = login_as(manager)
        resp = client.post(f"/products/{widget.id}/edit", json={"price": "12.5", "stock": 7, "store_id": 999})
        assert resp.status_code == 200
        product = resp.get_json()["product"]
        assert (product["price"], product["stock"], product["store_id"]) == ("12.50", 7, widget.store_id)

        assert client.post(f"/products/{widget.id}/delete").get_json() == {"ok": True}
        assert client.get(f"/products/{widget.id}/edit").status_code == 404

    def test_cannot_touch_other_store_product(self, login_as, manager, beta_product):
        client = login_as(manager)
        assert client.get(f"/products/{beta_product.id}/edit").status_code == 404
        assert client.post(f"/products/{beta_product.id}/edit", json={"stock": 0}).status_code == 404
        assert client.post(f"/products/{beta_product.id}/delete").status_code == 404
        assert client.post("/store/dashboard/products", json={"productId": beta_product.id}).status_code == 404

    @pytest.mark.parametrize("stock", [10**20, -(10**20), MAX_QUANTITY + 1])
    def test_edit_out_of_range_stock_is_400(self, login_as, manager, widget, stock):
        resp = login_as(manager).post(f"/products/{widget.id}/edit", json={"stock": stock})

        assert resp.status_code == 400
        assert "error" in resp.get_json()
        db.session.expire_all()
        assert db.session.get(Product, widget.id).stock == 2

    @pytest.mark.parametrize("stock", [10**20, MAX_QUANTITY + 1])
    def test_add_out_of_range_stock_is_400(self, login_as, manager, store_alpha, stock):
        resp = login_as(manager).post("/products/add", json={
            "name": "Nut", "description": "M6 nut", "price": "0.25", "stock": stock,
        })
        assert resp.status_code == 400
        assert db.session.query(Product).filter_by(store_id=store_alpha.id).count() == 0

    def test_routes_answer_their_own_errors(self, app, login_as, manager, widget):
        app_handlers = app.error_handler_spec.get(None, {})
        assert all(ServiceError not in handlers for handlers in app_handlers.values())

        resp = login_as(manager).post(f"/products/{widget.id}/edit", json={"price": "0"})
        assert resp.status_code == 400
        assert resp.get_json()["error"].endswith("must be greater than 0")

    def test_unexpected_failure_is_500_json(self, monkeypatch, login_as, manager, widget):
        def boom(**kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(products_service, "update_product", boom)
        resp = login_as(manager).post(f"/products/{widget.id}/edit", json={"stock": 1})

        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error"}

    def test_deactivate_and_reactivate_cashier(self, login_as, manager, cashier):
        client = login_as(manager)
        resp = client.post("/store/dashboard/manage_cashiers", json={
            "password": PASSWORD, "actionType": "delete", "cashierId": cashier.id,
        })
        assert resp.status_code == 200
        assert resp.get_json()["cashier"]["active"] is False

        resp = client.post("/store/dashboard/manage_cashiers", json={
            "password": PASSWORD, "actionType": "reactivate", "cashierId": cashier.id,
        })
        assert resp.get_json()["cashier"]["active"] is True

    def test_manage_cashiers_requires_password(self, login_as, manager, cashier):
        resp = login_as(manager).post("/store/dashboard/manage_cashiers", json={
            "password": "wrong-one", "actionType": "delete", "cashierId": cashier.id,
        })
        assert resp.status_code == 401

    def test_add_action_points_at_signup(self, login_as, manager, store_alpha):
        resp = login_as(manager).post("/store/dashboard/manage_cashiers", json={
            "password": PASSWORD, "actionType": "add",
        })
        assert resp.get_json() == {"redirect": f"/auth/signup?store={store_alpha.id}"}

    def test_cannot_deactivate_other_store_cashier(self, manager, beta_cashier):
        with pytest.raises(NotFoundError):
            user_service.set_cashier_active(manager.store_id, beta_cashier.id, active=False)


class TestHealth:

    def test_healthy_once_bootstrapped(self, client, admin):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["bootstrap"]["admin_users"] == 1

    def test_degraded_without_admin_store(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "degraded"
