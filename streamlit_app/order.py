"""Customer page: menu, cart, checkout and order status."""

import streamlit as st

from canteen.core.config import settings
from canteen.core.errors import ApiError, CanteenError
from canteen.services.cart_service import SyncedCart
from canteen.services.order_status import Bucket, format_order_number
from canteen.services.order_tracker import OrderTracker
from canteen.utils.pricing import format_price
from streamlit_app.common import attempt, now_string, run_with_client

st.set_page_config(page_title="Order", layout="centered")
st.title(f"{settings.app_name} / Order")

user_id = st.session_state.get("user_id", settings.user_id)
if user_id is None:
    user_id = st.number_input("User ID", min_value=1, step=1)
    if not st.button("Continue"):
        st.stop()
    st.session_state["user_id"] = int(user_id)


async def _load(client):
    cart = SyncedCart(client, user_id)
    menu = await client.list_menu_items()
    cart.remember_items(menu)
    await cart.refresh()
    return menu, cart.engine


async def _add(client, item, quantity, note, addon):
    cart = SyncedCart(client, user_id)
    cart.remember_items(menu_items)
    await cart.add_line(item, quantity, note or None, addon)


async def _set_quantity(client, key, quantity):
    cart = SyncedCart(client, user_id)
    cart.remember_items(menu_items)
    await cart.refresh()
    await cart.set_quantity(key, quantity)


async def _checkout(client, payment_method):
    cart = SyncedCart(client, user_id)
    cart.remember_items(menu_items)
    await cart.refresh()
    return await cart.checkout(payment_method)


try:
    menu_items, engine = run_with_client(_load)
except ApiError as exc:
    st.error(f"Could not reach the canteen: {exc.message}")
    st.stop()

st.subheader("Menu")
for item in menu_items:
    with st.form(f"add_{item.item_id}"):
        st.write(f"**{item.name}** - {format_price(item.price)}")
        if item.description:
            st.caption(item.description)
        quantity = st.number_input("Quantity", min_value=1, value=1, step=1, key=f"qty_{item.item_id}")
        note = st.text_input("Note (optional)", key=f"note_{item.item_id}")
        addon = st.checkbox(f"Add rice (+{format_price(engine.addon_price)})", key=f"addon_{item.item_id}")
        submitted = st.form_submit_button("Add to basket", disabled=not item.is_available)
    if submitted and attempt(lambda client, item=item: _add(client, item, int(quantity), note, addon)):
        st.rerun()


st.subheader(f"Basket ({engine.get_item_count()})")
for line in engine.lines:
    label = f"{line.item.name} x{line.quantity}"
    if line.addon:
        label += " + rice"
    if line.note:
        label += f" ({line.note})"
    cols = st.columns([4, 1, 1, 2])
    cols[0].write(label)
    if cols[1].button("-", key=f"dec_{line.cart_item_id}"):
        if attempt(lambda client, line=line: _set_quantity(client, line.key, line.quantity - 1)):
            st.rerun()
    if cols[2].button("+", key=f"inc_{line.cart_item_id}"):
        if attempt(lambda client, line=line: _set_quantity(client, line.key, line.quantity + 1)):
            st.rerun()
    cols[3].write(format_price(engine.compute_line_total(line)))

st.write(f"**Total: {format_price(engine.compute_cart_total())}**")
payment_method = st.selectbox("Payment method", [settings.default_payment_method, "GCash", "Card"])
if st.button("Place order"):
    try:
        order = run_with_client(lambda client: _checkout(client, payment_method))
    except CanteenError as exc:
        st.error(str(exc))
    else:
        st.success(f"Order {format_order_number(order.order_id)} placed. Total: {format_price(order.total_price)}")


@st.fragment(run_every=settings.poll_interval_seconds)
def my_orders() -> None:
    async def _orders(client):
        tracker = OrderTracker(client, user_id)
        await tracker.refresh()
        return tracker

    try:
        tracker = run_with_client(_orders)
    except ApiError as exc:
        st.warning(f"Could not refresh orders: {exc.message}")
        return
    buckets = tracker.buckets()
    st.subheader("My orders")
    st.caption(f"Last refresh: {now_string()}")
    for bucket in (Bucket.ONGOING, Bucket.COMPLETED, Bucket.CANCELLED, Bucket.UNRECOGNIZED):
        orders = buckets.get(bucket)
        if not orders and bucket is Bucket.UNRECOGNIZED:
            continue
        st.markdown(f"**{bucket.value.title()} ({len(orders)})**")
        st.write([
            {"order": format_order_number(o.order_id), "status": o.status, "total": str(o.total_price)}
            for o in orders
        ])


my_orders()
