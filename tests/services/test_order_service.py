from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from storefront.data.models import OrderModel
from storefront.domain.errors import (
    AuthenticationRequiredError,
    AuthorizationError,
    EmptyCartError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from storefront.domain.identity import Identity
from storefront.domain.schemas import ProductUpdate
from storefront.repos.cart_repo import CartRepo
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService
from storefront.services.order_service import OrderService, validate_addresses
from tests.factories import ADDRESS


def member(user):
    return Identity(user_id=user.id, is_admin=user.is_admin)


@pytest.fixture()
def notifier():
    return MagicMock()


@pytest.fixture()
def orders(db, notifier):
    return OrderService(db, notification_service=notifier)


def order_count(db):
    return len(db.execute(select(OrderModel)).scalars().all())


class TestPlaceOrder:
    def test_places_order_and_empties_cart(self, db, users, catalog, orders, notifier):
        alice = member(users["alice"])
        carts = CartService(db)
        carts.add_item(alice, catalog["lights"].id, 1)
        carts.add_item(alice, catalog["bottle"].id, 2)

        order = orders.place_order(alice, ADDRESS, ADDRESS)

        assert order.status == "pending"
        assert order.user_id == users["alice"].id
        assert order.subtotal == Decimal("100.00")
        assert order.shipping == Decimal("0.00")
        assert order.tax == Decimal("8.00")
        assert order.total == Decimal("108.00")
        assert order.payment_method == "credit_card"
        assert order.shipping_address["city"] == "Boulder"
        assert sorted((i.product_id, i.quantity, i.price) for i in order.items) == sorted([
            (catalog["lights"].id, 1, Decimal("50.00")),
            (catalog["bottle"].id, 2, Decimal("25.00")),
        ])
        assert carts.get_cart(alice)["items"] == []
        notifier.send_order_notification.assert_called_once_with(users["alice"].id, order.id, "pending")

    def test_empty_cart_is_rejected(self, db, users, orders, notifier):
        with pytest.raises(EmptyCartError):
            orders.place_order(member(users["alice"]), ADDRESS, ADDRESS)

        assert order_count(db) == 0
        notifier.send_order_notification.assert_not_called()

    def test_guest_checkout(self, db, catalog, orders):
        anon = Identity(session_id="guest-1")
        CartService(db).add_item(anon, catalog["helmet"].id, 1)

        order = orders.place_order(anon, ADDRESS, ADDRESS, payment_method="paypal")

        assert order.user_id is None
        assert order.payment_method == "paypal"
        assert order.total == Decimal("108.00")

    def test_promo_code_is_applied(self, db, users, catalog, orders):
        alice = member(users["alice"])
        CartService(db).add_item(alice, catalog["helmet"].id, 2)

        order = orders.place_order(alice, ADDRESS, ADDRESS, promo_code="trailblazer")

        assert order.discount == Decimal("40.00")
        assert order.tax == Decimal("12.80")
        assert order.total == Decimal("172.80")
        assert order.promo_code == "TRAILBLAZER"

    def test_unknown_promo_code_keeps_the_cart(self, db, users, catalog, orders):
        alice = member(users["alice"])
        CartService(db).add_item(alice, catalog["helmet"].id, 1)

        with pytest.raises(ValidationError) as exc:
            orders.place_order(alice, ADDRESS, ADDRESS, promo_code="FREESTUFF")

        assert "promo_code" in exc.value.fields
        assert order_count(db) == 0
        assert len(CartService(db).get_cart(alice)["items"]) == 1

    def test_invalid_address_reports_fields(self, db, users, catalog, orders):
        alice = member(users["alice"])
        CartService(db).add_item(alice, catalog["helmet"].id, 1)
        bad = {k: v for k, v in ADDRESS.items() if k != "city"}

        with pytest.raises(ValidationError) as exc:
            orders.place_order(alice, bad, {**ADDRESS, "postal_code": ""})

        assert set(exc.value.fields) == {"shipping_address.city", "billing_address.postal_code"}
        assert order_count(db) == 0
        assert len(CartService(db).get_cart(alice)["items"]) == 1

    def test_blank_payment_method(self, db, users, catalog, orders):
        alice = member(users["alice"])
        CartService(db).add_item(alice, catalog["helmet"].id, 1)

        with pytest.raises(ValidationError):
            orders.place_order(alice, ADDRESS, ADDRESS, payment_method="  ")

    def test_order_keeps_price_at_purchase(self, db, users, catalog, orders):
        alice = member(users["alice"])
        CartService(db).add_item(alice, catalog["lights"].id, 2)
        order = orders.place_order(alice, ADDRESS, ADDRESS)

        CatalogService(db).update_product(
            member(users["admin"]), catalog["lights"].id, ProductUpdate(price=Decimal("75.00"))
        )

        detail = orders.get_order(alice, order.id)
        assert detail["order"].total == order.total
        assert detail["items"][0]["price"] == Decimal("50.00")
        assert detail["items"][0]["product"].price == Decimal("75.00")

    def test_failure_leaves_no_order_and_keeps_cart(self, db, users, catalog, orders, monkeypatch, notifier):
        alice = member(users["alice"])
        CartService(db).add_item(alice, catalog["lights"].id, 1)

        def broken_clear(self, cart_id):
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(CartRepo, "clear_items", broken_clear)

        with pytest.raises(StorageError):
            orders.place_order(alice, ADDRESS, ADDRESS)

        monkeypatch.undo()
        assert order_count(db) == 0
        assert len(CartService(db).get_cart(alice)["items"]) == 1
        notifier.send_order_notification.assert_not_called()


class TestValidateAddresses:
    def test_returns_parsed_addresses(self):
        shipping, billing = validate_addresses(ADDRESS, {**ADDRESS, "address2": "Unit 4"})

        assert shipping.city == "Boulder"
        assert billing.address2 == "Unit 4"

    def test_non_dict_address(self):
        with pytest.raises(ValidationError) as exc:
            validate_addresses("1 Velo Way", ADDRESS)

        assert list(exc.value.fields) == ["shipping_address"]


class TestReadOrders:
    @pytest.fixture()
    def order(self, db, users, catalog, orders):
        alice = member(users["alice"])
        CartService(db).add_item(alice, catalog["bottle"].id, 1)
        return orders.place_order(alice, ADDRESS, ADDRESS)

    def test_owner_and_admin_can_read(self, users, orders, order):
        assert orders.get_order(member(users["alice"]), order.id)["order"].id == order.id
        assert orders.get_order(member(users["admin"]), order.id)["order"].id == order.id

    def test_other_user_cannot_read(self, users, orders, order):
        with pytest.raises(AuthorizationError):
            orders.get_order(member(users["bob"]), order.id)

    def test_anonymous_cannot_read(self, orders, order):
        with pytest.raises(AuthorizationError):
            orders.get_order(Identity(session_id="whoever"), order.id)

    def test_missing_order(self, users, orders):
        with pytest.raises(NotFoundError):
            orders.get_order(member(users["bob"]), 404)

    def test_deleted_product_leaves_snapshot(self, db, users, catalog, orders, order):
        CatalogService(db).delete_product(member(users["admin"]), catalog["bottle"].id)

        items = orders.get_order(member(users["alice"]), order.id)["items"]

        assert items[0]["product"] is None
        assert items[0]["price"] == Decimal("25.00")

    def test_list_orders_is_per_user(self, db, users, catalog, orders, order):
        bob = member(users["bob"])
        CartService(db).add_item(bob, catalog["lights"].id, 1)
        bobs = orders.place_order(bob, ADDRESS, ADDRESS)

        assert [o.id for o in orders.list_orders(member(users["alice"]))] == [order.id]
        assert [o.id for o in orders.list_orders(bob)] == [bobs.id]
        assert [o.id for o in orders.list_all_orders(member(users["admin"]))] == [bobs.id, order.id]

    def test_list_orders_requires_a_user(self, orders):
        with pytest.raises(AuthenticationRequiredError):
            orders.list_orders(Identity(session_id="guest"))

    def test_list_all_orders_requires_admin(self, users, orders):
        with pytest.raises(AuthorizationError):
            orders.list_all_orders(member(users["alice"]))


class TestUpdateStatus:
    @pytest.fixture()
    def order(self, db, users, catalog, orders, notifier):
        alice = member(users["alice"])
        CartService(db).add_item(alice, catalog["bottle"].id, 1)
        order = orders.place_order(alice, ADDRESS, ADDRESS)
        notifier.reset_mock()
        return order

    def test_admin_walks_order_to_completion(self, users, orders, order, notifier):
        admin = member(users["admin"])

        assert orders.update_status(admin, order.id, "processing").status == "processing"
        assert orders.update_status(admin, order.id, "completed").status == "completed"
        assert notifier.send_order_notification.call_count == 2

    def test_cancel_pending(self, users, orders, order):
        assert orders.update_status(member(users["admin"]), order.id, "CANCELLED").status == "cancelled"

    @pytest.mark.parametrize("path", [["completed"], ["processing", "completed", "cancelled"], ["cancelled", "pending"]])
    def test_illegal_transitions(self, users, orders, order, path):
        admin = member(users["admin"])
        for status in path[:-1]:
            orders.update_status(admin, order.id, status)

        with pytest.raises(ValidationError):
            orders.update_status(admin, order.id, path[-1])

    def test_same_status_is_a_no_op(self, users, orders, order, notifier):
        result = orders.update_status(member(users["admin"]), order.id, "pending")

        assert result.status == "pending"
        notifier.send_order_notification.assert_not_called()

    def test_unknown_status(self, users, orders, order):
        with pytest.raises(ValidationError) as exc:
            orders.update_status(member(users["admin"]), order.id, "shipped")

        assert "status" in exc.value.fields

    def test_requires_admin(self, users, orders, order):
        with pytest.raises(AuthorizationError):
            orders.update_status(member(users["alice"]), order.id, "processing")

    def test_missing_order(self, users, orders):
        with pytest.raises(NotFoundError):
            orders.update_status(member(users["admin"]), 999, "processing")
