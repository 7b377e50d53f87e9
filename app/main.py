"""
Streamlit Frontend for Finance Tracker

The dashboard a signed-in user works in every day: record expenses and
income, keep payment reminders, see where the money went.

DESIGN PRINCIPLES:
1. The UI only talks to the stores and the aggregator
2. Every operation ends in a toast (success or failure)
3. Deletes need an explicit confirmation
4. Totals, breakdowns and calendars are recomputed from the cache on every run
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

import streamlit as st
from pydantic import ValidationError

from finance_tracker.categorization import suggest_expense_category
from finance_tracker.config import get_settings, validate_all_settings
from finance_tracker.models.records import (
    Attachment,
    Currency,
    ExpenseCategory,
    IncomeCategory,
    ReminderCategory,
    ReportPeriod,
    TimeFilter,
    UploadedFile,
    UserSession,
    format_amount,
)
from finance_tracker.filters import submit_filters
from finance_tracker.notifications import Notification, Notifier
from finance_tracker.orchestrator import AppComponents, create_app_components
from finance_tracker.queries import (
    category_breakdown,
    compute_totals,
    month_calendar,
    spending_insights,
    year_calendar,
)
from finance_tracker.services.storage import StorageError
from finance_tracker.stores import RecordStore


# Page configuration
st.set_page_config(
    page_title="Finance Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .day-cell {
        padding: 6px;
        min-height: 70px;
        border: 1px solid #e0e0e0;
        border-radius: 6px;
    }
    .big-number {
        font-size: 2.0em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)

TIME_FILTER_LABELS = {
    TimeFilter.ALL: "All time",
    TimeFilter.WEEK: "Last 7 days",
    TimeFilter.MONTH: "Last month",
    TimeFilter.YEAR: "Last year",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def show_toast(notification: Notification) -> None:
    icon = "❌" if notification.is_error else "✅"
    st.toast(f"**{notification.title}**: {notification.description}", icon=icon)


@st.cache_resource
def get_components(user_id: str, email: str) -> AppComponents:
    """Get or create application components for one user (cached)."""
    session = UserSession(user_id=user_id, email=email or None) if user_id else None
    return create_app_components(session, notifier=Notifier(sink=show_toast))


def to_uploaded_files(files) -> list[UploadedFile]:
    return [
        UploadedFile(
            name=f.name,
            content=f.getvalue(),
            content_type=f.type or "application/octet-stream",
        )
        for f in files or []
    ]


def main():
    """Main application entry point."""
    st.sidebar.title("💰 Finance Tracker")
    st.sidebar.markdown("---")

    user_id = st.sidebar.text_input("User ID", help="Identifier from your sign-in provider")
    email = st.sidebar.text_input("Email")
    components = get_components(user_id.strip(), email.strip())

    page = st.sidebar.radio(
        "Navigate to:",
        [
            "📊 Overview",
            "💸 Expenses",
            "💵 Income",
            "🔔 Reminders",
            "📅 Calendar",
            "📄 Reports",
            "🔗 Links",
            "⚙️ Settings",
        ],
        index=0,
    )

    if components.session is None and page != "⚙️ Settings":
        st.info("Sign in with your user ID in the sidebar to see your finances.")
        return

    # Route to appropriate page
    if page == "📊 Overview":
        render_overview_page(components)
    elif page == "💸 Expenses":
        render_expenses_page(components)
    elif page == "💵 Income":
        render_income_page(components)
    elif page == "🔔 Reminders":
        render_reminders_page(components)
    elif page == "📅 Calendar":
        render_calendar_page(components)
    elif page == "📄 Reports":
        render_reports_page(components)
    elif page == "🔗 Links":
        render_links_page(components)
    elif page == "⚙️ Settings":
        render_settings_page(components)


def filter_controls(components: AppComponents, store: RecordStore, key: str) -> None:
    """Time filter + search box above a list; refetches the store when they change."""
    col1, col2 = st.columns([1, 2])
    with col1:
        time_filter = st.selectbox(
            "Period",
            options=list(TimeFilter),
            format_func=TIME_FILTER_LABELS.get,
            key=f"{key}_time_filter",
        )
    with col2:
        search = st.text_input("Search", key=f"{key}_search", placeholder="Description or category")
    run_async(submit_filters(store, components.search_debouncer(store), time_filter, search))


def attachment_button(store: RecordStore, attachment: Attachment) -> None:
    """Fetch the file only once the user asks for it."""
    loaded_key = f"loaded_{attachment.file_path}"
    if loaded_key not in st.session_state:
        if st.button(f"📎 {attachment.file_name}", key=f"load_{attachment.file_path}"):
            content = run_async(store.load_attachment(attachment.file_path, attachment.file_name))
            if content is not None:
                st.session_state[loaded_key] = content
                st.rerun()
        return

    st.download_button(
        f"⬇️ {attachment.file_name}",
        data=st.session_state[loaded_key],
        file_name=attachment.file_name,
        mime=attachment.file_type,
        key=f"dl_{attachment.file_path}",
    )


def delete_button(store: RecordStore, record_id: str, key: str) -> None:
    confirmed = st.checkbox("Confirm", key=f"{key}_confirm_{record_id}")
    if st.button("🗑️ Delete", key=f"{key}_delete_{record_id}"):
        try:
            if run_async(store.delete(record_id, confirm=lambda: confirmed)):
                st.rerun()
        except StorageError as e:
            st.error(f"Could not delete: {e}")


# =============================================================================
# OVERVIEW
# =============================================================================

def render_overview_page(components: AppComponents):
    st.title("📊 Overview")
    run_async(components.load_all())

    expenses = components.expenses.records
    income = components.income.records
    currency = get_settings().app.default_currency
    totals = compute_totals(expenses, income)

    col1, col2, col3 = st.columns(3)
    col1.metric("Total Income", format_amount(totals.total_income, currency))
    col2.metric("Total Expenses", format_amount(totals.total_expenses, currency))
    col3.metric(
        "Net",
        format_amount(totals.net, currency),
        delta="Overspending" if totals.is_overspending else "On track",
        delta_color="inverse" if totals.is_overspending else "normal",
    )

    st.markdown("---")
    left, right = st.columns(2)

    with left:
        st.subheader("Expenses by category")
        shares = category_breakdown(expenses)
        if not shares:
            st.caption("No expenses yet.")
        for share in shares:
            st.markdown(f"**{share.category}**: {format_amount(share.amount, currency)} ({share.percentage}%)")
            st.progress(share.percentage / 100)

    with right:
        st.subheader("Insights")
        insights = spending_insights(expenses)
        st.markdown(f"Total spent: **{format_amount(insights.total_spent, currency)}**")
        st.markdown(f"Monthly estimate: **{format_amount(insights.monthly_estimate, currency)}**")
        if insights.top_category:
            st.markdown(
                f"Top category: **{insights.top_category}** "
                f"({format_amount(insights.top_category_amount, currency)})"
            )

        st.subheader("Upcoming reminders")
        upcoming = components.reminders.upcoming()
        if not upcoming:
            st.caption("Nothing due.")
        for reminder in upcoming:
            amount = f" · {format_amount(reminder.amount, currency)}" if reminder.has_amount else ""
            st.markdown(f"🔔 {reminder.due_date:%d %b} · **{reminder.title}**{amount}")
        overdue = components.reminders.overdue()
        if overdue:
            st.warning(f"{len(overdue)} reminder(s) overdue.")


# =============================================================================
# EXPENSES
# =============================================================================

def render_expenses_page(components: AppComponents):
    st.title("💸 Expenses")
    store = components.expenses

    with st.expander("➕ Add expense", expanded=False):
        description = st.text_input("Description *", key="expense_description")
        if st.button("✨ Suggest category"):
            suggestion = suggest_expense_category(description)
            st.session_state.expense_category = suggestion
            st.session_state.expense_ai_suggested = True
            components.notifier.success(f"Category set to {suggestion.value}", title="Suggestion applied!")

        col1, col2 = st.columns(2)
        with col1:
            amount = st.number_input("Amount *", min_value=0.0, step=0.01, format="%.2f", key="expense_amount")
            category = st.selectbox(
                "Category *",
                options=list(ExpenseCategory),
                format_func=lambda c: c.value,
                key="expense_category",
            )
        with col2:
            currency = st.selectbox("Currency", options=list(Currency), format_func=lambda c: c.value)
            spent_on = st.date_input("Date", value=date.today(), key="expense_date")
        files = st.file_uploader(
            "Receipts (images or PDF)",
            type=get_settings().app.allowed_types_list,
            accept_multiple_files=True,
            key="expense_files",
        )

        if st.button("Save expense", type="primary"):
            try:
                run_async(store.add(
                    {
                        "amount": Decimal(str(amount)),
                        "description": description,
                        "category": category,
                        "currency": currency,
                        "date": spent_on,
                        "ai_suggested": st.session_state.get("expense_ai_suggested", False),
                    },
                    to_uploaded_files(files),
                ))
                st.session_state.expense_ai_suggested = False
            except ValidationError:
                st.error("Please fill in the description, amount and category.")
            except StorageError as e:
                st.error(f"Could not save: {e}")

    filter_controls(components, store, "expenses")

    if not store.records:
        st.info("No expenses found.")

    for expense in store.records:
        with st.container(border=True):
            col1, col2, col3 = st.columns([3, 1, 1])
            with col1:
                badge = " ✨" if expense.ai_suggested else ""
                st.markdown(f"**{expense.description}**{badge}")
                st.caption(f"{expense.category} · {expense.date:%d %b %Y}")
                for attachment in expense.attachments:
                    attachment_button(store, attachment)
            with col2:
                st.markdown(f"<div class='big-number'>{format_amount(expense.amount, expense.currency)}</div>",
                            unsafe_allow_html=True)
            with col3:
                delete_button(store, expense.id, "expense")


# =============================================================================
# INCOME
# =============================================================================

def render_income_page(components: AppComponents):
    st.title("💵 Income")
    store = components.income

    with st.expander("➕ Add income", expanded=False):
        col1, col2 = st.columns(2)
        with col1:
            description = st.text_input("Description *", key="income_description")
            amount = st.number_input("Amount *", min_value=0.0, step=0.01, format="%.2f", key="income_amount")
            category = st.selectbox("Category *", options=list(IncomeCategory), format_func=lambda c: c.value)
        with col2:
            currency = st.selectbox(
                "Currency",
                options=list(Currency),
                index=list(Currency).index(Currency.USD),
                format_func=lambda c: c.value,
                key="income_currency",
            )
            received_on = st.date_input("Date", value=date.today(), key="income_date")
        files = st.file_uploader(
            "Documents (images or PDF)",
            type=get_settings().app.allowed_types_list,
            accept_multiple_files=True,
            key="income_files",
        )

        if st.button("Save income", type="primary"):
            try:
                run_async(store.add(
                    {
                        "amount": Decimal(str(amount)),
                        "description": description,
                        "category": category,
                        "currency": currency,
                        "date": received_on,
                    },
                    to_uploaded_files(files),
                ))
            except ValidationError:
                st.error("Please fill in the description, amount and category.")
            except StorageError as e:
                st.error(f"Could not save: {e}")

    filter_controls(components, store, "income")

    if not store.records:
        st.info("No income found.")

    for item in store.records:
        with st.container(border=True):
            col1, col2, col3 = st.columns([3, 1, 1])
            with col1:
                st.markdown(f"**{item.description}**")
                st.caption(f"{item.category} · {item.date:%d %b %Y}")
                if item.file_attachments:
                    st.caption(f"📎 {len(item.file_attachments)} attachment(s)")
            with col2:
                st.markdown(f"<div class='big-number'>{format_amount(item.amount, item.currency)}</div>",
                            unsafe_allow_html=True)
            with col3:
                delete_button(store, item.id, "income")


# =============================================================================
# REMINDERS
# =============================================================================

def toggle_reminder(components: AppComponents, reminder_id: str, key: str) -> None:
    """Checkbox callback: store the new flag, undo the tick if that failed."""
    completed = st.session_state[key]
    outcome = run_async(components.bridge.toggle(reminder_id, completed))
    if not outcome.committed:
        st.session_state[key] = not completed


def render_reminders_page(components: AppComponents):
    st.title("🔔 Reminders")
    store = components.reminders

    with st.expander("➕ Add reminder", expanded=False):
        col1, col2 = st.columns(2)
        with col1:
            title = st.text_input("Title *")
            category = st.selectbox(
                "Category *",
                options=list(ReminderCategory),
                format_func=lambda c: c.value.title(),
                key="reminder_category",
            )
            due_date = st.date_input("Due date *", value=date.today(), key="reminder_due")
        with col2:
            amount = st.number_input("Amount (optional)", min_value=0.0, step=0.01, format="%.2f")
            description = st.text_area("Description (optional)")

        if st.button("Save reminder", type="primary"):
            try:
                run_async(store.add({
                    "title": title,
                    "category": category,
                    "due_date": due_date,
                    "amount": Decimal(str(amount)) if amount else None,
                    "description": description or None,
                }))
            except ValidationError:
                st.error("Please fill in the title, category and due date.")
            except StorageError as e:
                st.error(f"Could not save: {e}")

    filter_controls(components, store, "reminders")
    today = store.today()
    if not store.records:
        st.info("No reminders found.")

    for reminder in store.records:
        with st.container(border=True):
            col1, col2, col3 = st.columns([3, 1, 1])
            with col1:
                done_key = f"reminder_done_{reminder.id}"
                # The checkbox always starts from the stored flag
                st.session_state[done_key] = reminder.is_completed
                st.checkbox(
                    f"**{reminder.title}**",
                    key=done_key,
                    on_change=toggle_reminder,
                    args=(components, reminder.id, done_key),
                )
                late = " · ⚠️ overdue" if not reminder.is_completed and reminder.due_date < today else ""
                st.caption(f"{reminder.category} · due {reminder.due_date:%d %b %Y}{late}")
                if reminder.description:
                    st.caption(reminder.description)
            with col2:
                if reminder.has_amount:
                    st.markdown(f"**{format_amount(reminder.amount, get_settings().app.default_currency)}**")
            with col3:
                delete_button(store, reminder.id, "reminder")


# =============================================================================
# CALENDAR
# =============================================================================

def render_calendar_page(components: AppComponents):
    st.title("📅 Calendar")
    run_async(components.load_all())
    expenses = components.expenses.records
    income = components.income.records
    reminders = components.reminders.records
    currency = get_settings().app.default_currency
    today = components.expenses.today()

    view = st.radio("View", ["Month", "Year"], horizontal=True)
    year = st.number_input("Year", min_value=2000, max_value=2100, value=today.year, step=1)

    if view == "Year":
        months = year_calendar(int(year), expenses, income, reminders)
        for row in range(0, 12, 4):
            cols = st.columns(4)
            for col, month in zip(cols, months[row:row + 4]):
                with col, st.container(border=True):
                    st.markdown(f"**{date(int(year), month.month, 1):%B}**")
                    st.caption(f"Spent {format_amount(month.total_expenses, currency)}")
                    st.caption(f"Earned {format_amount(month.total_income, currency)}")
                    if month.reminder_count:
                        st.caption(f"🔔 {month.reminder_count}")
        return

    month = st.selectbox(
        "Month",
        options=list(range(1, 13)),
        index=today.month - 1,
        format_func=lambda m: date(2000, m, 1).strftime("%B"),
    )
    grid = month_calendar(int(year), month, expenses, income, reminders)

    header = st.columns(7)
    for col, name in zip(header, ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]):
        col.markdown(f"**{name}**")

    cells: list[Optional[object]] = [None] * grid.first_weekday + list(grid.days)
    for week in range(0, len(cells), 7):
        cols = st.columns(7)
        for col, day in zip(cols, cells[week:week + 7]):
            if day is None:
                continue
            marks = ("🔴" if day.expenses else "") + ("🟢" if day.income else "") + ("🔔" if day.reminders else "")
            col.markdown(
                f"<div class='day-cell'><b>{day.date.day}</b><br>{marks}</div>",
                unsafe_allow_html=True,
            )

    selected = st.selectbox(
        "Day details",
        options=[d for d in grid.days if d.has_events],
        format_func=lambda d: f"{d.date:%d %B}",
    )
    if selected is not None:
        for e in selected.expenses:
            st.markdown(f"🔴 {e.description}: {format_amount(e.amount, e.currency)} ({e.category})")
        for i in selected.income:
            st.markdown(f"🟢 {i.description}: {format_amount(i.amount, i.currency)} ({i.category})")
        for r in selected.reminders:
            st.markdown(f"🔔 {r.title}{' ✅' if r.is_completed else ''}")


# =============================================================================
# REPORTS
# =============================================================================

def render_reports_page(components: AppComponents):
    st.title("📄 Reports")
    run_async(components.load_all())

    period = st.selectbox(
        "Report type",
        options=list(ReportPeriod),
        format_func=lambda p: p.value.title(),
    )
    requirements = st.text_area(
        "Custom requirements (optional)",
        placeholder="Anything you'd like the report to cover...",
    )

    if st.button("📧 Generate report", type="primary"):
        text = run_async(components.reports.generate(
            components.session,
            period,
            components.expenses.records,
            components.income.records,
            requirements or None,
        ))
        if text:
            st.code(text, language=None)


# =============================================================================
# LINKS
# =============================================================================

def render_links_page(components: AppComponents):
    st.title("🔗 Links")
    store = components.links

    with st.expander("➕ Add link", expanded=False):
        title = st.text_input("Title *", key="link_title")
        url = st.text_input("URL *", placeholder="https://")
        description = st.text_input("Description (optional)", key="link_description")
        category = st.text_input("Category (optional)", key="link_category")
        if st.button("Save link", type="primary"):
            try:
                run_async(store.add({
                    "title": title,
                    "url": url,
                    "description": description or None,
                    "category": category or None,
                }))
            except ValidationError:
                st.error("Please fill in the title and URL.")
            except StorageError as e:
                st.error(f"Could not save: {e}")

    search = st.text_input("Search", key="links_search")
    run_async(store.fetch(search=search.strip() or None))

    for link in store.records:
        with st.container(border=True):
            col1, col2 = st.columns([4, 1])
            with col1:
                st.markdown(f"**[{link.title}]({link.url})**")
                if link.description:
                    st.caption(link.description)
            with col2:
                delete_button(store, link.id, "link")


# =============================================================================
# SETTINGS
# =============================================================================

def render_settings_page(components: AppComponents):
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")
    st.markdown(f"**Storage backend:** {components.backend}")

    status = validate_all_settings()

    services = [
        ("Cloudinary (Attachments)", "cloudinary"),
        ("Google Sheets (Storage)", "google_sheets"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. Set `STORAGE_BACKEND=google_sheets` "
        "together with the `GOOGLE_SHEETS_*` and `CLOUDINARY_*` variables to use hosted storage."
    )


if __name__ == "__main__":
    main()
