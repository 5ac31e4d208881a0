"""
Streamlit Frontend for ControlGastos

The screens people use day to day: sign in, dashboard, transactions and
the couple wallet.

DESIGN PRINCIPLES:
1. Every number on screen comes from the last fetch of that view
2. After any change, the view re-reads from the server
3. Server error messages are shown exactly as sent
4. Stale data is shown, but always with a warning
5. Buttons are disabled while their action is in flight

One FinanceApp lives in st.session_state per browser session, so two
people using the app never share a session.
"""

import asyncio
import logging
from datetime import date

import streamlit as st

from controlgastos.config import get_settings, validate_all_settings
from controlgastos.controllers import (
    CoupleController,
    DashboardController,
    TransactionsController,
)
from controlgastos.models.finance import LinkState, TransactionScope, TransactionType
from controlgastos.orchestrator import FinanceApp, create_app_components
from controlgastos.presentation import (
    balance_style,
    format_money,
    format_transaction_date,
    navigation_items,
    scope_badge,
    signed_amount,
    transaction_icon,
    transaction_title,
    type_badge,
    user_label,
)


# Page configuration
st.set_page_config(
    page_title="ControlGastos",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .badge {
        padding: 2px 8px;
        border-radius: 8px;
        font-size: 0.8em;
    }
    .badge-couple { background-color: #ede9fe; color: #6d28d9; }
    .badge-neutral { background-color: #f1f5f9; color: #475569; }
    .badge-positive { color: #16a34a; }
    .badge-default { color: #0f172a; }
    .amount-negative { color: #dc2626; }
    .big-number {
        font-size: 2.2em;
        font-weight: bold;
        color: #0f172a;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_app() -> FinanceApp:
    """Get or create this browser session's components."""
    if "finance_app" not in st.session_state:
        try:
            app = create_app_components()
        except ValueError as e:
            st.error(f"Failed to initialize: {e}")
            render_connection_status()
            st.stop()
        run_async(app.start())
        st.session_state.finance_app = app
    return st.session_state.finance_app


def badge_html(badge) -> str:
    return f'<span class="badge badge-{badge.style}">{badge.label}</span>'


def show_view_status(view) -> None:
    """Loading failures are never silent."""
    if view.load_error:
        if view.stale:
            st.warning(f"Showing saved data. {view.load_error}")
        else:
            st.error(view.load_error)
        if st.button("🔄 Retry", key=f"retry_{view.view_name}"):
            run_async(view.load())
            st.rerun()


def main():
    """Main application entry point."""
    settings = get_settings()
    logging.basicConfig(level=settings.app.log_level)

    app = get_app()
    session = app.session

    st.sidebar.title("💰 ControlGastos")
    st.sidebar.markdown("---")

    items = navigation_items(session)
    if not items:
        render_auth_page(app)
        render_connection_status()
        return

    st.sidebar.markdown(f"👤 **{user_label(session)}**")
    page = st.sidebar.radio(
        "Navigate to:",
        items,
        format_func=lambda item: f"{item.icon} {item.label}",
        index=0,
    )
    st.sidebar.markdown("---")
    if st.sidebar.button("🚪 Sign out"):
        run_async(app.sign_out())
        st.rerun()

    if page.page == "dashboard":
        render_dashboard_page(app.dashboard, app.currency_symbol)
    elif page.page == "transactions":
        render_transactions_page(app.transactions, app.currency_symbol)
    elif page.page == "couple":
        render_couple_page(app.couple, app.currency_symbol)


def render_auth_page(app: FinanceApp):
    """Sign in / create account."""
    st.title("Welcome to ControlGastos")
    sign_in_tab, register_tab = st.tabs(["Sign in", "Create account"])

    with sign_in_tab:
        form = app.sign_in_form
        with st.form("sign_in"):
            form.email = st.text_input("Email", value=form.email)
            form.password = st.text_input("Password", type="password")
            submitted = st.form_submit_button(
                "Sign in", type="primary", disabled=form.action.in_flight
            )
        if submitted:
            with st.spinner("Signing in..."):
                session = run_async(form.sign_in())
            if session is not None:
                st.rerun()
        if form.action.error:
            st.error(form.action.error)

    with register_tab:
        registration = app.registration
        if registration.completed:
            st.success(registration.message)
            return
        draft = registration.draft
        with st.form("register"):
            draft.full_name = st.text_input("Full name", value=draft.full_name)
            draft.email = st.text_input("Email", value=draft.email)
            draft.password = st.text_input("Password", type="password")
            submitted = st.form_submit_button(
                "Create account", disabled=registration.action.in_flight
            )
        if submitted:
            with st.spinner("Creating your account..."):
                run_async(registration.register())
            st.rerun()
        if registration.action.error:
            st.error(registration.action.error)


def render_dashboard_page(dashboard: DashboardController, symbol: str):
    """Individual summary and category breakdown."""
    st.title("📊 Dashboard")
    show_view_status(dashboard)

    summary = dashboard.snapshot
    if summary is None:
        if dashboard.loading:
            st.info("Loading...")
        return

    col1, col2, col3 = st.columns(3)
    with col1:
        style = balance_style(summary.balance)
        st.markdown("Balance")
        st.markdown(
            f'<div class="big-number amount-{style}">{format_money(summary.balance, symbol)}</div>',
            unsafe_allow_html=True,
        )
    with col2:
        st.metric("Income", format_money(summary.total_income, symbol))
    with col3:
        st.metric("Expenses", format_money(summary.total_expenses, symbol))

    st.markdown("---")
    st.subheader("Spending by category")

    rows, has_more = dashboard.preview
    show_all = has_more and st.toggle("See all categories")
    if show_all:
        rows = dashboard.breakdown

    if not rows:
        st.info("No expenses yet.")
    for row in rows:
        st.markdown(
            f"{row.icon} **{row.name}** - {format_money(row.total, symbol)} ({row.percent_label})"
        )
        st.progress(row.bar_width / 100)


def render_transactions_page(view: TransactionsController, symbol: str):
    """Transaction list, filter, new-transaction form and delete."""
    st.title("💸 Transactions")
    show_view_status(view)

    filters = [None, TransactionScope.INDIVIDUAL, TransactionScope.COUPLE]
    scope = st.radio(
        "Show",
        filters,
        index=filters.index(view.scope_filter),
        format_func=lambda x: "All" if x is None else scope_badge(x).label,
        horizontal=True,
    )
    if scope != view.scope_filter:
        run_async(view.set_filter(scope))
        st.rerun()

    if st.button("➕ New transaction" if not view.show_form else "✖️ Close form"):
        run_async(view.toggle_form())
        st.rerun()

    if view.show_form:
        render_transaction_form(view)

    st.markdown("---")

    if view.is_empty:
        st.info("No transactions yet. Add your first one above.")
        return

    for tx in view.snapshot:
        col1, col2, col3 = st.columns([6, 2, 1])
        with col1:
            st.markdown(
                f"{transaction_icon(tx)} **{transaction_title(tx)}** "
                f"{badge_html(scope_badge(tx.scope))}<br>"
                f"<small>{format_transaction_date(tx.date)}</small>",
                unsafe_allow_html=True,
            )
        with col2:
            badge = type_badge(tx.type)
            st.markdown(
                f'<span class="badge-{badge.style}">{signed_amount(tx, symbol)}</span>',
                unsafe_allow_html=True,
            )
        with col3:
            if st.button("🗑️", key=f"delete_{tx.id}", disabled=view.delete_action.in_flight):
                view.request_delete(tx.id)
                st.rerun()

        if view.pending_delete == tx.id:
            st.warning("Delete this transaction?")
            confirm, cancel = st.columns(2)
            with confirm:
                if st.button("Yes, delete", key=f"confirm_{tx.id}", type="primary"):
                    run_async(view.confirm_delete())
                    st.rerun()
            with cancel:
                if st.button("Cancel", key=f"cancel_{tx.id}"):
                    run_async(view.cancel_delete())
                    st.rerun()
            if view.delete_action.error:
                st.error(view.delete_action.error)


def render_transaction_form(view: TransactionsController):
    form = view.form
    show_view_status(form)
    draft = form.draft
    categories = form.snapshot.categories

    with st.form("new_transaction"):
        col1, col2 = st.columns(2)
        with col1:
            draft.amount = st.text_input("Amount *", value=draft.amount)
            draft.type = st.selectbox(
                "Type",
                list(TransactionType),
                index=list(TransactionType).index(draft.type),
                format_func=lambda x: x.value.title(),
            )
            options = form.scope_options
            draft.scope = st.selectbox(
                "Who is it for?",
                options,
                index=options.index(draft.scope) if draft.scope in options else 0,
                format_func=lambda x: scope_badge(x).label,
            )
        with col2:
            category_ids = [c.id for c in categories]
            names = {c.id: f"{c.icon} {c.name}" for c in categories}
            selected = st.selectbox(
                "Category *",
                [""] + category_ids,
                index=(category_ids.index(draft.category_id) + 1) if draft.category_id in category_ids else 0,
                format_func=lambda x: names.get(x, "Choose a category"),
            )
            draft.category_id = selected
            picked = st.date_input("Date", value=date.fromisoformat(draft.date))
            draft.date = picked.isoformat()
        draft.description = st.text_input("Description", value=draft.description)

        submitted = st.form_submit_button(
            "Save", type="primary", disabled=form.submit_action.in_flight
        )

    if submitted:
        with st.spinner("Saving..."):
            saved = run_async(form.submit())
        if saved:
            st.rerun()
    if form.submit_action.error:
        st.error(form.submit_action.error)


def render_couple_page(view: CoupleController, symbol: str):
    """Link state, shared wallet and couple history."""
    st.title("💑 Couple")
    show_view_status(view)

    if view.link_state == LinkState.UNLINKED:
        if not view.loaded:
            return
        st.markdown("You are not linked with a partner yet.")
        view.invite_draft.partner_email = st.text_input(
            "Partner's email", value=view.invite_draft.partner_email
        )
        if st.button("Send invitation", type="primary", disabled=not view.can_invite):
            run_async(view.invite())
            st.rerun()
        if view.invite_action.error:
            st.error(view.invite_action.error)
        return

    st.markdown(f"Linked with **{view.partner_name}**")
    style = balance_style(view.balance)
    st.markdown("Shared wallet")
    st.markdown(
        f'<div class="big-number amount-{style}">{format_money(view.balance, symbol)}</div>',
        unsafe_allow_html=True,
    )

    view.fund_draft.amount = st.text_input("Add money", value=view.fund_draft.amount)
    if st.button("Fund wallet", type="primary", disabled=not view.can_fund):
        run_async(view.fund())
        st.rerun()
    if view.fund_action.error:
        st.error(view.fund_action.error)

    st.markdown("---")
    st.subheader("Shared history")
    if not view.snapshot.transactions:
        st.info("No shared transactions yet.")
    for tx in view.snapshot.transactions:
        who = tx.owner.full_name if tx.owner and tx.owner.full_name else ""
        st.markdown(
            f"{transaction_icon(tx)} **{transaction_title(tx)}** - {signed_amount(tx, symbol)}  \n"
            f"<small>{format_transaction_date(tx.date, short=True)} · {who}</small>",
            unsafe_allow_html=True,
        )


def render_connection_status():
    """Configuration check shown on the sign-in screen."""
    with st.sidebar.expander("⚙️ Connection status"):
        status = validate_all_settings()
        for name, key in (("Finance API", "api"), ("Auth provider", "auth"), ("App", "app")):
            if status.get(key, False):
                st.success(f"✅ {name}")
            else:
                st.error(f"❌ {name} - {status.get(f'{key}_error', 'Not configured')}")


if __name__ == "__main__":
    main()
