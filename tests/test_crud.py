from datetime import datetime, timezone

from store_case import StoreTestCase

from db import crud, models
from db import repositories as repo
from db.errors import NotAuthorized, NotFound, ValidationRejected
from db.models import BookingStatus, OrderStatus
from utils.state import AppState


class CrudTestCase(StoreTestCase):
    async def asyncSetUp(self):
        self.state = AppState()
        await self.state.load()

    async def login_as(self, username: str) -> models.User:
        return await crud.login(self.state, username)

    def stock_of(self, product_id: int) -> int:
        return crud.get_product(self.state, product_id).stock

    # ---------- Session ----------

    async def test_login_known_and_unknown_users(self):
        admin = await self.login_as("admin")
        self.assertTrue(admin.is_admin)
        self.assertEqual(self.state.view, "products")

        with self.assertRaises(NotFound):
            await self.login_as("mallory")
        # failed login leaves the previous session alone
        self.assertEqual(self.state.username, "admin")

        await self.login_as(" alice ")
        self.assertEqual(self.state.view, "shop")
        self.assertFalse(self.state.is_admin)

    async def test_register_duplicate_username_rejected(self):
        bob = await crud.register(self.state, "bob", "Bob Builder")
        self.assertEqual(bob.role, models.Role.CUSTOMER)
        self.assertEqual(self.state.username, "bob")

        with self.assertRaises(ValidationRejected):
            await crud.register(self.state, "bob", "Another Bob")
        users = await repo.load_users()
        self.assertEqual([u.username for u in users].count("bob"), 1)
        self.assertEqual(next(u for u in users if u.username == "bob").name, "Bob Builder")

    async def test_register_requires_both_fields(self):
        with self.assertRaises(ValidationRejected):
            await crud.register(self.state, "  ", "Name")
        with self.assertRaises(ValidationRejected):
            await crud.register(self.state, "carol", "")
        self.assertIsNone(self.state.user)

    async def test_logout_keeps_stored_cart_and_switching_users_isolates_carts(self):
        await self.login_as("alice")
        await crud.add_to_cart(self.state, 2, 4)
        crud.logout(self.state)
        self.assertIsNone(self.state.user)
        self.assertEqual(self.state.cart, [])

        await self.login_as("admin")
        self.assertEqual(self.state.cart, [])

        await self.login_as("alice")
        self.assertEqual([(c.id, c.qty) for c in self.state.cart], [(2, 4)])

    # ---------- Cart ----------

    async def test_add_to_cart_requires_session(self):
        with self.assertRaises(NotAuthorized):
            await crud.add_to_cart(self.state, 1, 1)
        self.assertEqual(self.state.cart, [])

    async def test_add_to_cart_merges_lines(self):
        await self.login_as("alice")
        await crud.add_to_cart(self.state, 1, 2)
        await crud.add_to_cart(self.state, 1, 3)
        self.assertEqual(len(self.state.cart), 1)
        self.assertEqual(self.state.cart[0].qty, 5)
        # persisted too
        stored = await repo.load_cart("alice")
        self.assertEqual([(c.id, c.qty) for c in stored], [(1, 5)])

    async def test_add_to_cart_rejects_over_stock_and_unknown(self):
        await self.login_as("alice")
        with self.assertRaises(ValidationRejected):
            await crud.add_to_cart(self.state, 3, 6)  # laptop stock is 5
        with self.assertRaises(ValidationRejected):
            await crud.add_to_cart(self.state, 3, 0)
        with self.assertRaises(NotFound):
            await crud.add_to_cart(self.state, 999, 1)
        self.assertEqual(self.state.cart, [])

    async def test_cart_snapshot_keeps_add_time_fields(self):
        await self.login_as("alice")
        await crud.add_to_cart(self.state, 2, 1)
        self.assertEqual(self.state.cart[0].name, "Headphones")
        self.assertEqual(self.state.cart[0].price, 50.0)
        self.assertEqual(self.state.cart[0].stock, 20)

    async def test_update_cart_qty_sets_and_removes(self):
        await self.login_as("alice")
        await crud.add_to_cart(self.state, 1, 1)
        await crud.add_to_cart(self.state, 2, 1)

        # no stock check at this step
        await crud.update_cart_qty(self.state, 2, 50)
        self.assertEqual({c.id: c.qty for c in self.state.cart}[2], 50)

        before = len(self.state.cart)
        await crud.update_cart_qty(self.state, 1, 0)
        self.assertEqual(len(self.state.cart), before - 1)
        self.assertNotIn(1, {c.id for c in self.state.cart})

        await crud.update_cart_qty(self.state, 2, -3)
        self.assertEqual(self.state.cart, [])

    async def test_fractional_qty_rejected_and_cart_kept(self):
        await self.login_as("alice")
        await crud.add_to_cart(self.state, 2, 3)

        with self.assertRaises(ValidationRejected):
            await crud.add_to_cart(self.state, 1, 1.5)
        with self.assertRaises(ValidationRejected):
            await crud.add_to_cart(self.state, 1, True)
        with self.assertRaises(ValidationRejected):
            await crud.update_cart_qty(self.state, 2, 2.5)

        self.assertEqual([(c.id, c.qty) for c in self.state.cart], [(2, 3)])
        stored = await repo.load_cart("alice")
        self.assertEqual([(c.id, c.qty) for c in stored], [(2, 3)])

    async def test_clear_cart(self):
        await self.login_as("alice")
        await crud.add_to_cart(self.state, 1, 1)
        await crud.clear_cart(self.state)
        self.assertEqual(self.state.cart, [])
        self.assertEqual(await repo.load_cart("alice"), [])

    # ---------- Checkout ----------

    async def test_checkout_scenario(self):
        await repo.replace_products(
            [
                models.Product(
                    id=1, name="Smartphone", description="", price=250, stock=10
                )
            ]
        )
        await self.state.load()
        await self.login_as("alice")

        await crud.add_to_cart(self.state, 1, 3)
        order = await crud.checkout(self.state, {"phone": "555-0100"})

        self.assertEqual(self.stock_of(1), 7)
        self.assertEqual(order.total, 750)
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.customer, "alice")
        self.assertEqual(order.customer_name, "Alice Customer")
        self.assertEqual(order.details, {"phone": "555-0100"})
        self.assertEqual(self.state.cart, [])

        # store agrees with memory
        self.assertEqual((await repo.load_products())[0].stock, 7)
        self.assertEqual(await repo.load_orders(), [order])
        self.assertEqual(await repo.load_cart("alice"), [])

    async def test_checkout_only_touches_ordered_products(self):
        await self.login_as("alice")
        await crud.add_to_cart(self.state, 2, 4)
        await crud.checkout(self.state)
        self.assertEqual(self.stock_of(1), 10)
        self.assertEqual(self.stock_of(2), 16)
        self.assertEqual(self.stock_of(3), 5)

    async def test_checkout_rejects_when_stock_dropped(self):
        await self.login_as("alice")
        await crud.add_to_cart(self.state, 1, 2)
        await crud.add_to_cart(self.state, 3, 4)

        # someone else bought laptops in the meantime
        await self.login_as("admin")
        await crud.update_product(self.state, 3, stock=3)
        await self.login_as("alice")

        with self.assertRaises(ValidationRejected):
            await crud.checkout(self.state)
        self.assertEqual(self.stock_of(1), 10)
        self.assertEqual(self.stock_of(3), 3)
        self.assertEqual(self.state.orders, [])
        self.assertEqual(await repo.load_orders(), [])
        self.assertEqual(len(self.state.cart), 2)

    async def test_checkout_rejects_deleted_product(self):
        await self.login_as("alice")
        await crud.add_to_cart(self.state, 2, 1)
        await self.login_as("admin")
        await crud.delete_product(self.state, 2)
        await self.login_as("alice")

        with self.assertRaises(ValidationRejected):
            await crud.checkout(self.state)
        self.assertEqual(self.state.orders, [])

    async def test_checkout_requires_session_and_items(self):
        with self.assertRaises(NotAuthorized):
            await crud.checkout(self.state)
        await self.login_as("alice")
        with self.assertRaises(ValidationRejected):
            await crud.checkout(self.state)

    async def test_order_total_is_fixed_after_price_change(self):
        await self.login_as("alice")
        await crud.add_to_cart(self.state, 1, 1)
        await crud.add_to_cart(self.state, 2, 2)
        order = await crud.checkout(self.state)
        self.assertEqual(order.total, sum(it.price * it.qty for it in order.items))
        self.assertEqual(order.total, 350)

        await self.login_as("admin")
        await crud.update_product(self.state, 1, price=999.0)
        reloaded = (await repo.load_orders())[0]
        self.assertEqual(reloaded.total, 350)
        self.assertEqual(reloaded.items[0].price, 250)

    async def test_orders_are_newest_first_with_unique_ids(self):
        await self.login_as("alice")
        ids = []
        for _ in range(3):
            await crud.add_to_cart(self.state, 2, 1)
            ids.append((await crud.checkout(self.state)).id)
        self.assertEqual(len(set(ids)), 3)
        self.assertEqual([o.id for o in self.state.orders], list(reversed(ids)))

    # ---------- Order status ----------

    async def _place_order(self, username: str = "alice") -> models.Order:
        await self.login_as(username)
        await crud.add_to_cart(self.state, 2, 1)
        return await crud.checkout(self.state)

    async def test_admin_follows_order_transitions(self):
        order = await self._place_order()
        await self.login_as("admin")

        with self.assertRaises(ValidationRejected):
            await crud.update_order_status(self.state, order.id, "delivered")
        self.assertEqual(self.state.orders[0].status, OrderStatus.PENDING)

        await crud.update_order_status(self.state, order.id, OrderStatus.SHIPPED)
        await crud.update_order_status(self.state, order.id, "delivered")
        self.assertEqual((await repo.load_orders())[0].status, OrderStatus.DELIVERED)

        # terminal
        with self.assertRaises(ValidationRejected):
            await crud.update_order_status(self.state, order.id, "cancelled")

    async def test_admin_can_cancel_shipped_order(self):
        order = await self._place_order()
        await self.login_as("admin")
        await crud.update_order_status(self.state, order.id, "shipped")
        updated = await crud.update_order_status(self.state, order.id, "cancelled")
        self.assertEqual(updated.status, OrderStatus.CANCELLED)

    async def test_owner_may_only_cancel_pending(self):
        order = await self._place_order()
        with self.assertRaises(NotAuthorized):
            await crud.update_order_status(self.state, order.id, "shipped")

        await crud.update_order_status(self.state, order.id, "cancelled")
        self.assertEqual(self.state.orders[0].status, OrderStatus.CANCELLED)

        second = await self._place_order()
        await self.login_as("admin")
        await crud.update_order_status(self.state, second.id, "shipped")
        await self.login_as("alice")
        with self.assertRaises(ValidationRejected):
            await crud.update_order_status(self.state, second.id, "cancelled")

    async def test_other_customer_cannot_touch_order(self):
        order = await self._place_order()
        await crud.register(self.state, "bob", "Bob")
        with self.assertRaises(NotAuthorized):
            await crud.update_order_status(self.state, order.id, "cancelled")
        self.assertEqual(crud.visible_orders(self.state), [])

    async def test_unknown_order_and_status(self):
        await self.login_as("admin")
        with self.assertRaises(NotFound):
            await crud.update_order_status(self.state, 12345, "shipped")
        with self.assertRaises(ValidationRejected):
            await crud.update_order_status(self.state, 12345, "teleported")

    async def test_visible_orders_by_role(self):
        await self._place_order("alice")
        await crud.register(self.state, "bob", "Bob")
        await crud.add_to_cart(self.state, 1, 1)
        await crud.checkout(self.state)

        self.assertEqual([o.customer for o in crud.visible_orders(self.state)], ["bob"])
        await self.login_as("admin")
        self.assertEqual(len(crud.visible_orders(self.state)), 2)
        crud.logout(self.state)
        self.assertEqual(crud.visible_orders(self.state), [])

    # ---------- Notifications ----------

    async def test_notifications_lifecycle(self):
        await self.login_as("admin")
        first = await crud.post_notification(self.state, "Sale", "20% off")
        second = await crud.post_notification(self.state, "Hours", "Closed Sunday")
        self.assertEqual([n.id for n in self.state.notifications], [second.id, first.id])
        self.assertGreater(second.id, first.id)

        await crud.remove_notification(self.state, first.id)
        stored = await repo.load_notifications()
        self.assertEqual([n.title for n in stored], ["Hours"])

        with self.assertRaises(NotFound):
            await crud.remove_notification(self.state, first.id)
        with self.assertRaises(ValidationRejected):
            await crud.post_notification(self.state, "Title only", "  ")

    async def test_customers_cannot_post_notifications(self):
        await self.login_as("alice")
        with self.assertRaises(NotAuthorized):
            await crud.post_notification(self.state, "Hi", "there")
        self.assertEqual(self.state.notifications, [])

    # ---------- Bookings ----------

    async def test_booking_lifecycle(self):
        with self.assertRaises(NotAuthorized):
            await crud.create_booking(self.state, "Repair", "2025-12-01")

        await self.login_as("alice")
        booking = await crud.create_booking(self.state, "Repair", "2025-12-01 10:00")
        self.assertEqual(booking.status, BookingStatus.REQUESTED)
        self.assertEqual(booking.customer_name, "Alice Customer")
        with self.assertRaises(ValidationRejected):
            await crud.create_booking(self.state, "", "2025-12-01")
        with self.assertRaises(NotAuthorized):
            await crud.update_booking_status(self.state, booking.id, "confirmed")

        await self.login_as("admin")
        await crud.update_booking_status(self.state, booking.id, "confirmed")
        self.assertEqual((await repo.load_bookings())[0].status, BookingStatus.CONFIRMED)
        with self.assertRaises(ValidationRejected):
            await crud.update_booking_status(self.state, booking.id, "cancelled")
        with self.assertRaises(NotFound):
            await crud.update_booking_status(self.state, 1, "confirmed")

    async def test_visible_bookings_by_role(self):
        await self.login_as("alice")
        await crud.create_booking(self.state, "Repair", "Mon")
        await crud.register(self.state, "bob", "Bob")
        self.assertEqual(crud.visible_bookings(self.state), [])
        await crud.create_booking(self.state, "Setup", "Tue")
        self.assertEqual(len(crud.visible_bookings(self.state)), 1)

        await self.login_as("admin")
        self.assertEqual(
            [b.service for b in crud.visible_bookings(self.state)], ["Setup", "Repair"]
        )

    # ---------- Products (admin) ----------

    async def test_update_product_strips_text_fields(self):
        await self.login_as("admin")
        updated = await crud.update_product(
            self.state, 2, name="  Earbuds ", description=" Wireless  ", image=" https://y "
        )
        self.assertEqual(
            (updated.name, updated.description, updated.image),
            ("Earbuds", "Wireless", "https://y"),
        )
        self.assertEqual((await repo.load_products())[1].name, "Earbuds")

    async def test_product_admin(self):
        await self.login_as("admin")
        prod = await crud.add_product(
            self.state, "Tablet", "10 inch", price=300, stock=4, image="https://x"
        )
        self.assertGreater(prod.id, 3)
        self.assertEqual(prod.price, 300.0)

        updated = await crud.update_product(self.state, prod.id, stock=0, name="Tablet Pro")
        self.assertEqual((updated.name, updated.stock), ("Tablet Pro", 0))

        with self.assertRaises(ValidationRejected):
            await crud.update_product(self.state, prod.id, price=-1)
        with self.assertRaises(ValidationRejected):
            await crud.update_product(self.state, prod.id, id=1)
        with self.assertRaises(ValidationRejected):
            await crud.add_product(self.state, "", price=1, stock=1)

        await crud.delete_product(self.state, prod.id)
        self.assertEqual([p.id for p in await repo.load_products()], [1, 2, 3])
        with self.assertRaises(NotFound):
            await crud.delete_product(self.state, prod.id)

    async def test_reset_products_and_customer_denied(self):
        await self.login_as("alice")
        with self.assertRaises(NotAuthorized):
            await crud.delete_product(self.state, 1)

        await self.login_as("admin")
        await crud.delete_product(self.state, 1)
        await crud.reset_products(self.state)
        self.assertEqual(self.state.products, repo.SAMPLE_PRODUCTS)

    # ---------- Dashboard & helpers ----------

    async def test_dashboard_excludes_cancelled_sales(self):
        kept = await self._place_order()  # 50
        await crud.add_to_cart(self.state, 1, 1)
        dropped = await crud.checkout(self.state)  # 250
        await crud.update_order_status(self.state, dropped.id, "cancelled")

        summary = crud.dashboard_summary(self.state)
        self.assertEqual(summary["total_sales"], kept.total)
        self.assertEqual(summary["total_orders"], 2)
        self.assertEqual(summary["total_products"], 3)
        self.assertEqual(summary["recent_orders"][0].id, dropped.id)
        self.assertEqual(summary["cart_items"], 0)

        await crud.add_to_cart(self.state, 1, 2)
        await crud.add_to_cart(self.state, 3, 1)
        self.assertEqual(crud.dashboard_summary(self.state)["cart_items"], 2)

    def test_next_id_is_monotonic(self):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        stamp = int(now.timestamp() * 1000)
        self.assertEqual(crud.next_id([], now), stamp)
        self.assertEqual(crud.next_id([stamp], now), stamp + 1)
        self.assertEqual(crud.next_id([stamp + 10, 4], now), stamp + 11)
