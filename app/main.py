"""
Streamlit Frontend for ZenFinance

The screens a user works with day to day: sign in, see their balances,
manage accounts, record transactions and ask the AI for advice.

DESIGN PRINCIPLES:
1. Every screen reads from the signed-in user's read model
2. Every write goes through a flow, never straight to the store
3. Clear error messages in simple language
4. Explicit empty states instead of blank charts
5. Offline mode is always visible

The shell holds no business rules: validation, balance changes and the
advice prompt all live in the zenfinance package.
"""

import asyncio
from datetime import date
from decimal import Decimal

import altair as alt
import streamlit as st

from zenfinance.activity import create_correlation_id
from zenfinance.auth import AuthenticationError
from zenfinance.config import validate_all_settings
from zenfinance.ledger import LedgerError
from zenfinance.models.finance import (
    APP_COLORS,
    TransactionType,
    categories_for,
    category_icon,
)
from zenfinance.orchestrator import (
    AppSession,
    DashboardSnapshot,
    create_app_components,
    create_session,
)
from zenfinance.read_model import FinanceReadModel
from zenfinance.services.storage import BalanceAdjustmentError, StorageError


# Page configuration
st.set_page_config(
    page_title="ZenFinance",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .account-card {
        padding: 16px;
        border-radius: 12px;
        color: #ffffff;
        margin: 8px 0;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
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


@st.cache_resource
def get_components():
    """Get or create the shared application components (cached per process)."""
    return run_async(create_app_components())


def get_session() -> AppSession:
    """Get or create this browser session's sign-in state and flows."""
    if "app_session" not in st.session_state:
        st.session_state.app_session = create_session(get_components())
    return st.session_state.app_session


def format_money(value: Decimal) -> str:
    return f"${value:,.2f}"


def main():
    """Main application entry point."""
    session = get_session()
    identity = session.authenticator.current_identity

    if identity is None:
        render_login_page(session)
        return

    read_model = run_async(session.open(identity))

    # Sidebar navigation
    st.sidebar.title("💰 ZenFinance")
    if session.components.offline_mode:
        st.sidebar.warning("Offline mode: demo data, nothing is saved")
    st.sidebar.caption(f"Signed in as {identity.email}")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "🏦 Accounts", "🧾 Transactions", "🤖 AI Analysis", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("🚪 Sign out"):
        run_async(session.authenticator.sign_out())
        session.close()
        st.session_state.advice_text = None
        st.rerun()

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(session, read_model)
    elif page == "🏦 Accounts":
        render_accounts_page(session, read_model)
    elif page == "🧾 Transactions":
        render_transactions_page(session, read_model)
    elif page == "🤖 AI Analysis":
        render_advice_page(session, read_model)
    elif page == "⚙️ Settings":
        render_settings_page(session)


def render_login_page(session: AppSession):
    """Render the sign-in / sign-up page."""
    st.title("💰 ZenFinance")
    st.markdown("Sign in to see your accounts.")

    sign_in_tab, sign_up_tab = st.tabs(["Sign in", "Create account"])

    with sign_in_tab:
        with st.form("sign_in"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign in", type="primary")
        if submitted:
            try:
                run_async(session.authenticator.sign_in(email, password))
                st.rerun()
            except AuthenticationError as e:
                st.error(str(e))
            except StorageError as e:
                st.error(f"Could not reach the data store: {e}")

    with sign_up_tab:
        with st.form("sign_up"):
            email = st.text_input("Email", key="sign_up_email")
            password = st.text_input(
                "Password",
                type="password",
                key="sign_up_password",
                help="At least 6 characters",
            )
            submitted = st.form_submit_button("Create account", type="primary")
        if submitted:
            try:
                run_async(session.authenticator.sign_up(email, password))
                st.rerun()
            except AuthenticationError as e:
                st.error(str(e))
            except StorageError as e:
                st.error(f"Could not reach the data store: {e}")


def render_expense_donut(snapshot: DashboardSnapshot):
    """Donut chart of expense categories over the recent transactions."""
    st.subheader("Expense breakdown")

    if not snapshot.expense_breakdown:
        st.info("No expense records yet")
        return

    data = [
        {
            "category": f"{category_icon(row.category)} {row.category}",
            "amount": float(row.total),
            "amount_label": format_money(row.total),
        }
        for row in snapshot.expense_breakdown
    ]

    chart = alt.Chart(alt.Data(values=data)).mark_arc(
        innerRadius=60,
        cornerRadius=6,
        padAngle=0.02,
    ).encode(
        theta=alt.Theta("amount:Q"),
        color=alt.Color(
            "category:N",
            scale=alt.Scale(range=list(APP_COLORS)),
            legend=alt.Legend(orient="bottom", title=None),
        ),
        order=alt.Order("amount:Q", sort="descending"),
        tooltip=[
            alt.Tooltip("category:N"),
            alt.Tooltip("amount_label:N"),
        ],
    ).properties(
        height=300,
    ).configure_view(
        stroke=None
    )
    st.altair_chart(chart, use_container_width=True)


def render_dashboard_page(session: AppSession, read_model: FinanceReadModel):
    """Render the dashboard page."""
    st.title("📊 Dashboard")
    snapshot = session.components.dashboard_flow.snapshot(read_model)

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("**Total balance**")
        st.markdown(
            f'<div class="big-number">{format_money(snapshot.total_balance)}</div>',
            unsafe_allow_html=True,
        )
    with col2:
        st.metric("Accounts", snapshot.account_count)

    col1, col2 = st.columns(2)
    with col1:
        st.metric("Total income", format_money(snapshot.income_total))
    with col2:
        st.metric("Total expenses", format_money(snapshot.expense_total))

    st.markdown("---")
    col1, col2 = st.columns(2)

    with col1:
        st.subheader("Recent activity")
        if not snapshot.recent_transactions:
            st.info("No transactions yet. Add one on the Transactions page.")
        for transaction in snapshot.recent_transactions:
            sign = "+" if transaction.kind == TransactionType.INCOME else "-"
            st.markdown(
                f"{category_icon(transaction.category)} **{transaction.category}** · "
                f"{read_model.account_name(transaction.account_id)} · "
                f"{transaction.occurred_at:%Y-%m-%d} · "
                f"{sign}{format_money(transaction.amount)}"
            )

    with col2:
        render_expense_donut(snapshot)


def render_accounts_page(session: AppSession, read_model: FinanceReadModel):
    """Render the accounts page."""
    st.title("🏦 Accounts")

    with st.expander("➕ Add account", expanded=not read_model.accounts):
        with st.form("add_account"):
            name = st.text_input("Account name *")
            institution = st.text_input("Bank *")
            balance = st.number_input("Initial balance", value=0.0, step=100.0)
            color = st.selectbox("Card color", options=list(APP_COLORS))
            submitted = st.form_submit_button("Create account", type="primary")

        if submitted:
            try:
                account, result = run_async(
                    session.accounts_flow.create_account(
                        owner_id=read_model.owner_id,
                        name=name,
                        institution=institution,
                        balance=str(balance),
                        color=color,
                    )
                )
                if account is None:
                    st.error(session.components.validator.get_user_friendly_summary(result))
                else:
                    st.success(f"Account '{account.name}' created")
                    st.rerun()
            except StorageError as e:
                st.error(f"Failed to save: {e}")

    if not read_model.accounts:
        st.info("No accounts yet. Add your first account above.")
        return

    for account in read_model.accounts:
        col1, col2 = st.columns([5, 1])
        with col1:
            st.markdown(
                f"""
                <div class="account-card" style="background-color: {account.color};">
                    <strong>{account.name}</strong> · {account.institution}<br/>
                    <span style="font-size: 1.5em;">{format_money(account.balance)}</span>
                </div>
                """,
                unsafe_allow_html=True,
            )
        with col2:
            if st.button("🗑️ Delete", key=f"delete_{account.id}"):
                try:
                    run_async(
                        session.accounts_flow.delete_account(
                            owner_id=read_model.owner_id,
                            account_id=account.id,
                        )
                    )
                    st.rerun()
                except (LedgerError, StorageError) as e:
                    st.error(f"Failed to delete: {e}")


def render_transactions_page(session: AppSession, read_model: FinanceReadModel):
    """Render the transactions page."""
    st.title("🧾 Transactions")

    accounts = read_model.accounts

    with st.expander("➕ Add transaction", expanded=True):
        if not accounts:
            st.warning("Please add an account first")

        kind = st.radio(
            "Type",
            options=list(TransactionType),
            format_func=lambda k: "Expense" if k == TransactionType.EXPENSE else "Income",
            horizontal=True,
            index=1,
        )

        with st.form("add_transaction"):
            account_id = st.selectbox(
                "Account *",
                options=[account.id for account in accounts],
                format_func=read_model.account_name,
            )
            amount = st.number_input("Amount *", value=None, min_value=0.0, step=10.0)
            category = st.selectbox(
                "Category *",
                options=[c.name for c in categories_for(kind)],
                format_func=lambda name: f"{category_icon(name)} {name}",
            )
            occurred_on = st.date_input("Date", value=date.today())
            note = st.text_input("Note (optional)")
            submitted = st.form_submit_button("Save transaction", type="primary")

        if submitted:
            try:
                entry, result = run_async(
                    session.transactions_flow.record_transaction(
                        owner_id=read_model.owner_id,
                        account_id=account_id,
                        amount=None if amount is None else str(amount),
                        kind=kind,
                        category=category,
                        note=note,
                        occurred_on=occurred_on,
                        correlation_id=create_correlation_id(),
                    )
                )
                if entry is None:
                    st.error(session.components.validator.get_user_friendly_summary(result))
                else:
                    st.success(
                        f"Saved. {entry.account.name} balance is now "
                        f"{format_money(entry.account.balance)}"
                    )
            except LedgerError as e:
                st.error(str(e))
            except BalanceAdjustmentError as e:
                st.error(
                    f"The transaction was saved but the balance could not be updated: {e}. "
                    "Please check the account balance."
                )
            except StorageError as e:
                st.error(f"Failed to save: {e}")

    st.markdown("---")

    if not read_model.transactions:
        st.info("No transactions yet.")
        return

    rows = [
        {
            "Date": f"{t.occurred_at:%Y-%m-%d}",
            "Account": read_model.account_name(t.account_id),
            "Category": f"{category_icon(t.category)} {t.category}",
            "Type": "Income" if t.kind == TransactionType.INCOME else "Expense",
            "Amount": format_money(t.signed_amount),
            "Note": t.note or "",
        }
        for t in read_model.transactions
    ]
    st.dataframe(rows, use_container_width=True, hide_index=True)


def render_advice_page(session: AppSession, read_model: FinanceReadModel):
    """Render the AI analysis page."""
    st.title("🤖 AI Analysis")
    st.markdown(
        "Get advice based on your total balance, number of accounts and "
        "most recent transactions."
    )

    if "advice_running" not in st.session_state:
        st.session_state.advice_running = False
    if "advice_text" not in st.session_state:
        st.session_state.advice_text = None

    if not session.components.advice_flow.configured:
        st.warning("No Gemini API key configured. Advice is unavailable.")

    if st.button(
        "✨ Generate advice",
        type="primary",
        disabled=st.session_state.advice_running,
    ):
        st.session_state.advice_running = True
        st.rerun()

    if st.session_state.advice_running:
        with st.spinner("Analyzing your finances..."):
            try:
                st.session_state.advice_text = run_async(
                    session.components.advice_flow.request_advice(read_model)
                )
            finally:
                st.session_state.advice_running = False
        st.rerun()

    if st.session_state.advice_text:
        st.markdown("---")
        st.markdown(st.session_state.advice_text)


def render_settings_page(session: AppSession):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Gemini (AI)", "gemini"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if session.components.offline_mode:
        st.info("Running in offline mode with demo data. Changes are lost on restart.")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
