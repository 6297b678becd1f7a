"""
Streamlit Frontend for Voice Budget

Simple list/detail screens plus a voice entry page. All state lives in the
LedgerStore created once by get_components(); the UI only calls the
store's commit interface and reads its aggregates.

Run with:  streamlit run app/main.py
"""

import asyncio
from decimal import Decimal

import streamlit as st

from voice_budget.config import get_settings, validate_all_settings
from voice_budget.ledger import InputValidationError, LedgerStore, to_display_amount
from voice_budget.models import EntryStatus, ExpenseCategory, RecurrencePeriod
from voice_budget.orchestrator import VoiceEntryFlow, create_app_components
from voice_budget.recording import BufferedRecordingSession, RecordingTooLargeError


# Page configuration
st.set_page_config(
    page_title="Voice Budget",
    page_icon="💰",
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

INCOME_PERIODS = [RecurrencePeriod.MONTHLY, RecurrencePeriod.YEARLY]
EXPENSE_PERIODS = [RecurrencePeriod.MONTHLY, RecurrencePeriod.STATIC, RecurrencePeriod.YEARLY]
CATEGORIES = [category.value for category in ExpenseCategory]


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> tuple[LedgerStore, VoiceEntryFlow]:
    """Create the ledger and voice flow once per server process."""
    return create_app_components()


def money(amount: Decimal) -> str:
    symbol = get_settings().app.currency_symbol
    value = to_display_amount(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def period_label(period: RecurrencePeriod) -> str:
    return period.value.title()


def main():
    """Main application entry point."""
    ledger, voice_flow = get_components()

    st.sidebar.title("💰 Voice Budget")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Overview", "🎙️ Voice Entry", "💵 Income", "🧾 Expenses", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.metric("Available this month", money(ledger.get_monthly_available()))
    st.sidebar.markdown(
        """
        **Try saying:**
        - "I spent $50 on groceries"
        - "My salary is $2,000 a month"
        - "Car insurance costs $1,200 a year"
        """
    )

    if page == "📊 Overview":
        render_overview_page(ledger)
    elif page == "🎙️ Voice Entry":
        render_voice_page(voice_flow)
    elif page == "💵 Income":
        render_income_page(ledger)
    elif page == "🧾 Expenses":
        render_expenses_page(ledger)
    elif page == "⚙️ Settings":
        render_settings_page(voice_flow)


def render_overview_page(ledger: LedgerStore):
    """Totals and a per-category breakdown."""
    st.title("📊 This Month")

    col1, col2, col3 = st.columns(3)
    col1.metric("Income", money(ledger.get_total_monthly_income()))
    col2.metric("Expenses", money(ledger.get_total_monthly_expenses()))
    col3.metric("Available", money(ledger.get_monthly_available()))

    st.caption("Yearly amounts are counted as one twelfth per month.")

    breakdown = ledger.expenses_by_category()
    if breakdown:
        st.subheader("Expenses by category")
        st.bar_chart({name.title(): float(total) for name, total in breakdown.items()})
    else:
        st.info("No expenses yet. Add one by voice or on the Expenses page.")


def render_voice_page(voice_flow: VoiceEntryFlow):
    """Record or type a sentence and add what it describes."""
    st.title("🎙️ Voice Entry")
    st.markdown("Describe money you earned or spent and we'll add it for you.")

    if not voice_flow.is_online:
        st.warning(
            "Offline mode: recordings can't be transcribed without a Gemini API key. "
            "Typed entries still work using keyword matching."
        )

    audio = st.audio_input("Record a voice note", disabled=voice_flow.is_busy)
    text = st.text_area(
        "...or type it",
        placeholder="I spent $50 on groceries and received my $2000 salary",
    )

    col1, col2 = st.columns(2)
    outcome = None

    with col1:
        if st.button("➕ Add from recording", type="primary", disabled=audio is None or voice_flow.is_busy):
            session = BufferedRecordingSession(
                mime_type=audio.type or "audio/wav",
                max_size_bytes=get_settings().app.max_audio_size_bytes,
            )
            session.start()
            try:
                session.feed(audio.getvalue())
            except RecordingTooLargeError:
                st.error("That recording is too long. Please keep it under a minute or two.")
            else:
                recording = session.stop()
                if recording is None:
                    st.warning("The recording is empty. Please try again.")
                else:
                    with st.spinner("Listening..."):
                        outcome = run_async(voice_flow.process_recording(recording))

    with col2:
        if st.button("➕ Add from text", disabled=not text.strip() or voice_flow.is_busy):
            with st.spinner("Reading..."):
                outcome = run_async(voice_flow.process_text(text))

    if outcome is None:
        return

    if outcome.status == EntryStatus.BUSY:
        st.warning(outcome.message)
        return

    if outcome.transcript:
        st.markdown(f"**Heard:** _{outcome.transcript}_")

    if outcome.records_added:
        st.success(outcome.message)
    else:
        st.info(outcome.message or "Nothing was added.")

    if outcome.status == EntryStatus.FALLEN_BACK and outcome.transcript:
        st.caption("Added using keyword matching. Please check the names and categories.")

    for income in outcome.incomes_added:
        st.markdown(f"💵 **{income.name}** {money(income.amount)} ({period_label(income.period)})")
    for expense in outcome.expenses_added:
        st.markdown(
            f"🧾 **{expense.name}** {money(expense.amount)} "
            f"({period_label(expense.period)}, {expense.category or 'other'})"
        )


def render_income_page(ledger: LedgerStore):
    """List, add, edit and delete income sources."""
    st.title("💵 Income")
    st.metric("Total per month", money(ledger.get_total_monthly_income()))

    with st.expander("➕ Add income"):
        with st.form("add_income", clear_on_submit=True):
            name = st.text_input("Name *")
            amount = st.number_input("Amount *", min_value=0.0, step=0.01, format="%.2f")
            period = st.selectbox("Period", INCOME_PERIODS, format_func=period_label)
            if st.form_submit_button("Add"):
                try:
                    ledger.add_income({"name": name, "amount": Decimal(str(amount)), "period": period})
                    st.rerun()
                except InputValidationError as e:
                    st.error(str(e))

    if not ledger.incomes:
        st.info("No income sources yet.")
        return

    for income in ledger.incomes:
        badge = "🎙️" if income.source.value == "voice" else "✍️"
        with st.expander(f"{badge} {income.name} - {money(income.amount)} {period_label(income.period)}"):
            with st.form(f"edit_income_{income.id}"):
                name = st.text_input("Name", value=income.name)
                amount = st.number_input(
                    "Amount", value=float(income.amount), min_value=0.0, step=0.01, format="%.2f"
                )
                period = st.selectbox(
                    "Period",
                    INCOME_PERIODS,
                    index=INCOME_PERIODS.index(income.period),
                    format_func=period_label,
                )
                save, delete = st.columns(2)
                if save.form_submit_button("💾 Save"):
                    try:
                        ledger.update_income(
                            income.id,
                            {"name": name, "amount": Decimal(str(amount)), "period": period},
                        )
                        st.rerun()
                    except InputValidationError as e:
                        st.error(str(e))
                if delete.form_submit_button("🗑️ Delete"):
                    ledger.delete_income(income.id)
                    st.rerun()


def render_expenses_page(ledger: LedgerStore):
    """List, add, edit and delete expenses."""
    st.title("🧾 Expenses")
    st.metric("Total per month", money(ledger.get_total_monthly_expenses()))

    with st.expander("➕ Add expense"):
        with st.form("add_expense", clear_on_submit=True):
            name = st.text_input("Name *")
            amount = st.number_input("Amount *", min_value=0.0, step=0.01, format="%.2f")
            period = st.selectbox(
                "Period",
                EXPENSE_PERIODS,
                format_func=period_label,
                help="Static = fixed monthly bill such as rent",
            )
            category = st.selectbox("Category", CATEGORIES, index=CATEGORIES.index("other"))
            if st.form_submit_button("Add"):
                try:
                    ledger.add_expense({
                        "name": name,
                        "amount": Decimal(str(amount)),
                        "period": period,
                        "category": category,
                    })
                    st.rerun()
                except InputValidationError as e:
                    st.error(str(e))

    if not ledger.expenses:
        st.info("No expenses yet.")
        return

    for expense in ledger.expenses:
        badge = "🎙️" if expense.source.value == "voice" else "✍️"
        title = f"{badge} {expense.name} - {money(expense.amount)} {period_label(expense.period)}"
        with st.expander(title):
            with st.form(f"edit_expense_{expense.id}"):
                name = st.text_input("Name", value=expense.name)
                amount = st.number_input(
                    "Amount", value=float(expense.amount), min_value=0.0, step=0.01, format="%.2f"
                )
                period = st.selectbox(
                    "Period",
                    EXPENSE_PERIODS,
                    index=EXPENSE_PERIODS.index(expense.period),
                    format_func=period_label,
                )
                category = st.text_input("Category", value=expense.category or "")
                save, delete = st.columns(2)
                if save.form_submit_button("💾 Save"):
                    try:
                        ledger.update_expense(
                            expense.id,
                            {
                                "name": name,
                                "amount": Decimal(str(amount)),
                                "period": period,
                                "category": category.strip() or None,
                            },
                        )
                        st.rerun()
                    except InputValidationError as e:
                        st.error(str(e))
                if delete.form_submit_button("🗑️ Delete"):
                    ledger.delete_expense(expense.id)
                    st.rerun()


def render_settings_page(voice_flow: VoiceEntryFlow):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    if voice_flow.is_online:
        st.success("✅ Gemini (voice) - API key configured")
    else:
        st.warning("⚠️ Gemini (voice) - no API key, running offline")

    backend = get_settings().storage.backend.value
    st.info(f"💾 Storage backend: {backend}")
    if backend == "google_sheets" and not status.get("google_sheets"):
        st.error(f"❌ Google Sheets - {status.get('google_sheets_error', 'Not configured')}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "Create a `.env` file with your settings. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
