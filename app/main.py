"""
Streamlit Frontend for Budget Ledger

The screens a person uses to keep their ledger: post income and
expenses, open accounts, browse transactions, import a bank CSV and
check budgets against actual spending.

DESIGN PRINCIPLES:
1. Every page calls one public ledger operation and shows its result
2. Errors are shown in plain words, never swallowed
3. Amounts are rounded only here, when they are displayed

The UI holds no ledger state of its own. Balances, budgets and
transactions always come from the store.
"""

import asyncio
import io
from datetime import date
from decimal import Decimal, InvalidOperation

import streamlit as st

from budget_ledger.config import get_settings, validate_all_settings
from budget_ledger.errors import LedgerError
from budget_ledger.models.ledger import AccountType, TransactionType
from budget_ledger.orchestrator import LedgerComponents, create_app_components
from budget_ledger.services.storage import StorageError
from budget_ledger.validation import format_money, month_bounds


# Page configuration
st.set_page_config(
    page_title="Budget Ledger",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
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
def get_components() -> LedgerComponents:
    """Get or create application components (cached)."""
    return run_async(create_app_components())


def money(amount: Decimal) -> str:
    return format_money(amount, get_settings().ledger.currency_symbol)


def parse_money_input(text: str) -> Decimal:
    """Decimal from a text box; invalid input raises ValueError."""
    try:
        return Decimal(text.strip())
    except InvalidOperation:
        raise ValueError(f"'{text}' is not a valid amount")


def main():
    """Main application entry point."""
    components = get_components()

    # Sidebar navigation
    st.sidebar.title("📒 Budget Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        [
            "➕ Post Transaction",
            "🏦 Accounts",
            "📋 Transactions",
            "📥 Import CSV",
            "🎯 Budgets",
            "⚙️ Settings",
        ],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Open an account
        2. Post transactions or import a CSV
        3. Set monthly budgets per category
        """
    )
    st.sidebar.caption(f"Storage: {components.storage_backend}")

    # Route to appropriate page
    if page == "➕ Post Transaction":
        render_post_page(components)
    elif page == "🏦 Accounts":
        render_accounts_page(components)
    elif page == "📋 Transactions":
        render_transactions_page(components)
    elif page == "📥 Import CSV":
        render_import_page(components)
    elif page == "🎯 Budgets":
        render_budgets_page(components)
    elif page == "⚙️ Settings":
        render_settings_page(components)


def _account_picker(components: LedgerComponents, label: str = "Account"):
    accounts = run_async(components.account_service.list_accounts())
    if not accounts:
        st.info("No accounts yet. Open one on the Accounts page.")
        return None
    return st.selectbox(label, options=accounts, format_func=lambda a: a.name)


def _transaction_rows(components: LedgerComponents, transactions) -> list[dict]:
    accounts = {a.id: a.name for a in run_async(components.account_service.list_accounts())}
    categories = {c.id: c.name for c in run_async(components.category_service.list_categories())}
    return [
        {
            "Date": t.transaction_date.isoformat(),
            "Type": t.transaction_type.display_name,
            "Amount": money(t.signed_amount),
            "Description": t.description or "",
            "Category": categories.get(t.category_id, "Uncategorized"),
            "Account": accounts.get(t.account_id, str(t.account_id)),
        }
        for t in transactions
    ]


def render_post_page(components: LedgerComponents):
    """Render the manual posting page."""
    st.title("➕ Post a Transaction")

    account = _account_picker(components)
    if account is None:
        return

    categories = run_async(components.category_service.list_categories())

    with st.form("post_transaction"):
        col1, col2 = st.columns(2)
        with col1:
            transaction_type = st.radio(
                "Type",
                options=list(TransactionType),
                format_func=lambda t: t.display_name,
                horizontal=True,
            )
            amount_text = st.text_input("Amount", placeholder="125.50")
            transaction_date = st.date_input("Date", value=date.today())
        with col2:
            category = st.selectbox(
                "Category",
                options=[None] + categories,
                format_func=lambda c: "Uncategorized" if c is None else c.name,
            )
            description = st.text_input("Description")

        submitted = st.form_submit_button("Post")

    if submitted:
        try:
            transaction = run_async(components.posting_engine.post(
                parse_money_input(amount_text),
                transaction_type,
                transaction_date,
                description,
                category.id if category else None,
                account_id=account.id,
            ))
            updated = run_async(components.account_service.get_account(account.id))
            st.success(
                f"Posted {transaction.transaction_type.display_name.lower()} of "
                f"{money(transaction.amount)}. New balance of {updated.name}: "
                f"{money(updated.balance)}"
            )
        except (LedgerError, StorageError, ValueError) as e:
            st.error(f"Could not post: {e}")


def render_accounts_page(components: LedgerComponents):
    """Render accounts and balances."""
    st.title("🏦 Accounts")

    accounts = run_async(components.account_service.list_accounts())
    if accounts:
        total = sum((a.balance for a in accounts), Decimal("0.00"))
        st.markdown(f'<div class="big-number">{money(total)}</div>', unsafe_allow_html=True)
        st.caption("Net balance across all accounts")
        st.dataframe(
            [
                {
                    "Name": a.name,
                    "Type": a.account_type.display_name,
                    "Balance": money(a.balance),
                }
                for a in accounts
            ],
            use_container_width=True,
        )
    else:
        st.info("No accounts yet.")

    st.markdown("---")
    st.markdown("### Open an account")
    with st.form("open_account"):
        name = st.text_input("Name")
        account_type = st.selectbox(
            "Type",
            options=list(AccountType),
            format_func=lambda t: t.display_name,
        )
        opening_text = st.text_input("Opening balance", value="0.00")
        submitted = st.form_submit_button("Open account")

    if submitted:
        try:
            account = run_async(components.account_service.open_account(
                name,
                account_type,
                parse_money_input(opening_text),
            ))
            st.success(f"Opened {account.name} with balance {money(account.balance)}")
        except (LedgerError, StorageError, ValueError) as e:
            st.error(f"Could not open account: {e}")


def render_transactions_page(components: LedgerComponents):
    """Render the transaction browser."""
    st.title("📋 Transactions")

    queries = components.transaction_queries
    mode = st.radio(
        "Show",
        ["By account", "By date range", "By type", "Search description"],
        horizontal=True,
    )

    transactions = []
    try:
        if mode == "By account":
            account = _account_picker(components)
            if account is not None:
                transactions = run_async(queries.transactions_for_account(account.id))
        elif mode == "By date range":
            col1, col2 = st.columns(2)
            start = col1.date_input("From", value=date.today().replace(day=1))
            end = col2.date_input("To", value=date.today())
            transactions = run_async(queries.transactions_in_range(start, end))
        elif mode == "By type":
            transaction_type = st.selectbox(
                "Type",
                options=list(TransactionType),
                format_func=lambda t: t.display_name,
            )
            transactions = run_async(queries.transactions_by_type(transaction_type))
        else:
            keyword = st.text_input("Description contains")
            transactions = run_async(queries.search_descriptions(keyword))
    except (LedgerError, StorageError) as e:
        st.error(f"Could not load transactions: {e}")

    if transactions:
        st.dataframe(_transaction_rows(components, transactions), use_container_width=True)
    else:
        st.info("No transactions match.")


def render_import_page(components: LedgerComponents):
    """Render the CSV import page."""
    st.title("📥 Import CSV")
    st.markdown(
        "The file needs a header row with **Date, Description, Category, Amount**. "
        "Dates are YYYY-MM-DD; negative amounts are expenses."
    )

    account = _account_picker(components, "Import into account")
    uploaded = st.file_uploader("CSV file", type=["csv"])

    if account is None or uploaded is None:
        return

    if st.button("Import"):
        buffer = io.BytesIO(uploaded.getvalue())
        buffer.name = uploaded.name
        stream = io.TextIOWrapper(buffer, encoding="utf-8-sig", newline="")
        try:
            summary = run_async(components.import_pipeline.import_csv(stream, account.id))
        except (LedgerError, StorageError) as e:
            st.error(f"Import failed: {e}")
            return

        if summary.structural_failure:
            st.error("The file could not be read as a table.")
        else:
            col1, col2, col3 = st.columns(3)
            col1.metric("Rows read", summary.total_rows_read)
            col2.metric("Imported", summary.successful_imports)
            col3.metric("Failed", summary.failed_imports)

        for message in summary.error_messages:
            st.warning(message)

        updated = run_async(components.account_service.get_account(account.id))
        st.info(f"Balance of {updated.name}: {money(updated.balance)}")


def render_budgets_page(components: LedgerComponents):
    """Render budgets and budget status."""
    st.title("🎯 Budgets")

    engine = components.budget_engine
    today = date.today()
    col1, col2 = st.columns(2)
    year = col1.number_input("Year", min_value=1, max_value=9999, value=today.year, step=1)
    month = col2.number_input("Month", min_value=1, max_value=12, value=today.month, step=1)
    year, month = int(year), int(month)

    first, last = month_bounds(year, month)
    st.caption(f"{first.isoformat()} to {last.isoformat()}")

    try:
        statuses = run_async(engine.status_for_period(year, month))
    except (LedgerError, StorageError) as e:
        st.error(f"Could not load budgets: {e}")
        statuses = []

    if statuses:
        st.dataframe(
            [
                {
                    "Category": s.category_name,
                    "Budgeted": money(s.budgeted_amount),
                    "Spent": money(s.actual_spending),
                    "Remaining": money(s.remaining),
                    "Status": "Overspent" if s.is_overspent else "OK",
                }
                for s in statuses
            ],
            use_container_width=True,
        )
        render_budget_detail(components, statuses, year, month)
    else:
        st.info("No budgets set for this month.")

    st.markdown("---")
    st.markdown("### Set a budget")
    categories = run_async(components.category_service.list_categories())
    if not categories:
        st.info("Create a category first (importing a CSV creates them too).")
        return

    with st.form("set_budget"):
        category = st.selectbox("Category", options=categories, format_func=lambda c: c.name)
        amount_text = st.text_input("Budgeted amount", placeholder="400.00")
        submitted = st.form_submit_button("Save budget")

    if submitted:
        try:
            budget = run_async(engine.set_budget(
                category.id, year, month, parse_money_input(amount_text)
            ))
            st.success(
                f"Budget for {category.name} in {year}-{month:02d}: "
                f"{money(budget.budgeted_amount)}"
            )
        except (LedgerError, StorageError, ValueError) as e:
            st.error(f"Could not save budget: {e}")


def render_budget_detail(components: LedgerComponents, statuses, year: int, month: int):
    """Expenses behind one budget line."""
    status = st.selectbox(
        "Show spending for",
        options=statuses,
        format_func=lambda s: s.category_name,
    )
    first, last = month_bounds(year, month)
    try:
        budget = run_async(components.budget_engine.require_budget(status.category_id, year, month))
        transactions = run_async(components.transaction_queries.transactions_for_category(
            status.category_id, first, last
        ))
    except (LedgerError, StorageError) as e:
        st.error(f"Could not load budget detail: {e}")
        return

    expenses = [t for t in transactions if t.transaction_type is TransactionType.EXPENSE]
    st.caption(f"Budgeted {money(budget.budgeted_amount)}, {len(expenses)} expense(s)")
    if expenses:
        st.dataframe(
            [
                {
                    "Date": t.transaction_date.isoformat(),
                    "Description": t.description or "",
                    "Amount": money(t.amount),
                }
                for t in expenses
            ],
            use_container_width=True,
        )


def render_settings_page(components: LedgerComponents):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")
    status = validate_all_settings()

    services = [
        ("Ledger", "ledger"),
        ("Google Sheets (Storage)", "google_sheets"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown(f"Active storage backend: **{components.storage_backend}**")

    st.markdown("---")
    st.markdown("### Categories")
    with st.form("create_category"):
        name = st.text_input("New category")
        submitted = st.form_submit_button("Create")
    if submitted:
        try:
            category = run_async(components.category_service.create_category(name))
            st.success(f"Created {category.name}")
        except (LedgerError, StorageError, ValueError) as e:
            st.error(f"Could not create category: {e}")

    names = [c.name for c in run_async(components.category_service.list_categories())]
    st.write(", ".join(names) if names else "No categories yet.")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
