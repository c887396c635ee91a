"""Staff page: order queue with accept/decline/ready/complete actions."""

import streamlit as st

from canteen.core.config import settings
from canteen.core.errors import ApiError, CanteenError
from canteen.services.order_status import available_actions, format_order_number
from canteen.services.order_tracker import OrderTracker
from canteen.utils.pricing import format_price
from streamlit_app.common import now_string, run_with_client

st.set_page_config(page_title="Staff", layout="wide")
st.title(f"{settings.app_name} / Orders")

ACTION_LABELS = {"accept": "Accept", "decline": "Decline", "ready": "Mark ready", "complete": "Complete"}


async def _load(client):
    tracker = OrderTracker(client)
    await tracker.refresh()
    return tracker


async def _act(client, order, action):
    tracker = OrderTracker(client)
    return await tracker.apply_action(order, action)


@st.fragment(run_every=settings.poll_interval_seconds)
def order_queue() -> None:
    try:
        tracker = run_with_client(_load)
    except ApiError as exc:
        st.error(f"Could not load orders: {exc.message}")
        return

    st.caption(f"Last refresh: {now_string()}")
    tabs = tracker.queue_tabs()
    selected_tab = st.session_state.get("orders_tab", "pending")
    names = list(tabs)
    choice = st.radio(
        "Queue",
        names,
        index=names.index(selected_tab),
        format_func=lambda name: f"{name.title()} ({len(tabs[name])})",
        horizontal=True,
    )
    st.session_state["orders_tab"] = choice

    unrecognized = tracker.buckets().unrecognized
    if unrecognized:
        st.warning(
            "Orders with unknown status: "
            + ", ".join(f"{format_order_number(o.order_id)} ({o.status})" for o in unrecognized)
        )

    for order in tabs[choice]:
        customer = order.user.full_name if order.user and order.user.full_name else f"User {order.user_id}"
        cols = st.columns([2, 3, 2, 2, 4])
        cols[0].write(f"**{format_order_number(order.order_id)}**")
        cols[1].write(customer)
        cols[2].write(order.status)
        cols[3].write(format_price(order.total_price))
        action_cols = cols[4].columns(4)
        for index, action in enumerate(available_actions(order.status)):
            if action_cols[index].button(ACTION_LABELS[action], key=f"{action}_{order.order_id}"):
                try:
                    result = run_with_client(lambda client, order=order, action=action: _act(client, order, action))
                except CanteenError as exc:
                    st.error(f"Failed to update order status: {exc}")
                    continue
                if result.warning:
                    st.warning(result.warning)
                elif result.notified:
                    st.success("Order marked as ready and customer notified")
                else:
                    st.success("Order status updated")
                if result.tab:
                    st.session_state["orders_tab"] = result.tab


order_queue()
