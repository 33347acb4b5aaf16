from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from components.transaction_detail import TransactionDetailPanel
from ledger.aggregation import by_currency, by_time_bucket, histogram, seasonal, summarize
from ledger.config import AppConfig, load_config
from ledger.currency import KNOWN_CURRENCIES, currency_name
from ledger.data_loader import list_data_files, load_file
from ledger.diagnostics import Diagnostics, LoggingDiagnostics, timed
from ledger.export import build_export_payload, payload_to_csv, payload_to_json, payload_to_pdf
from ledger.logging import get_logger
from ledger.models import FilterCriteria, Transaction
from ledger.parser import TransactionParser
from ledger.store import TransactionStore, paginate


def get_medieval_colors():
    """Return the dashboard palette."""
    return {
        'primary': '#8B4513',
        'secondary': '#A0522D',
        'tertiary': '#CD853F',
        'quaternary': '#D2691E',
        'accent': '#B8860B',
        'grid': 'rgba(139, 69, 19, 0.1)',
        'sequence': [
            'rgba(139, 69, 19, 0.8)',
            'rgba(160, 82, 45, 0.8)',
            'rgba(205, 133, 63, 0.8)',
            'rgba(210, 105, 30, 0.8)',
            'rgba(184, 134, 11, 0.8)',
            'rgba(101, 67, 33, 0.8)',
            'rgba(222, 184, 135, 0.8)',
        ],
    }


SORT_OPTIONS = {"date": "Date (newest first)", "amount": "Florin value", "text": "Entry text"}
TIMELINE_UNITS = ["day", "week", "month", "year"]
SEASONAL_AXES = ["month", "quarter", "weekday"]


def set_page_config(config: AppConfig) -> None:
    """Configure Streamlit page settings early to avoid layout shifts."""
    st.set_page_config(
        page_title=config.title,
        page_icon="📜",
        layout="wide",
        initial_sidebar_state="expanded",
    )


def init_session_state() -> None:
    """Initialize Streamlit session state variables used across the app."""
    defaults = {
        "store": TransactionStore(),
        "loaded_file": None,
        "skipped": 0,
        "load_duration_ms": 0.0,
        "page": 1,
        "detail_panel": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def render_header(config: AppConfig) -> None:
    """Render the application header."""
    st.markdown(f"## 📜 {config.title}")
    st.caption("Searchable ledger of the Aldersbach monastery account books, valued in florins.")
    st.divider()


def load_selected_file(path: Path, config: AppConfig, diagnostics: Diagnostics) -> None:
    """Parse ``path`` and swap it into the store in one assignment."""
    logger = get_logger()
    parser = TransactionParser(
        diagnostics,
        amount_upper_bound=config.amount_upper_bound,
        min_year=config.min_year,
        max_year=config.max_year,
    )
    try:
        result = load_file(path, parser)
    except Exception as exc:
        logger.error("Data loading failed", extra={"context": {"file": str(path)}}, exc_info=True)
        st.error(f"Error loading data: {exc}")
        return

    st.session_state["store"].replace(result.transactions)
    st.session_state["loaded_file"] = path.name
    st.session_state["skipped"] = result.skipped
    st.session_state["load_duration_ms"] = result.duration_ms
    st.session_state["page"] = 1
    st.session_state["detail_panel"].clear()


def render_sidebar(config: AppConfig, diagnostics: Diagnostics) -> FilterCriteria:
    """Render data selection and filter controls; return the current criteria."""
    store: TransactionStore = st.session_state["store"]
    with st.sidebar:
        st.markdown("### Data")
        files = list_data_files(config.data_dir)
        if not files:
            st.warning(f"No XML files found in {config.data_dir}")
        else:
            selected = st.selectbox("Data file", options=files, format_func=lambda p: p.name)
            if st.button("Load data", type="primary", use_container_width=True):
                with st.spinner("Parsing records..."):
                    load_selected_file(selected, config, diagnostics)

        if st.session_state.get("loaded_file"):
            st.caption(
                f"Loaded {len(store)} transactions from {st.session_state['loaded_file']} "
                f"in {st.session_state['load_duration_ms']:.0f} ms"
            )
            if st.session_state.get("skipped"):
                st.caption(f"{st.session_state['skipped']} records skipped")

        st.markdown("---")
        st.markdown("### Filters")
        search_text = st.text_input("Search entries, people and places", key="search_text")
        codes: List[Optional[str]] = [None] + list(KNOWN_CURRENCIES)
        currency_code = st.selectbox(
            "Currency",
            options=codes,
            format_func=lambda c: "All currencies" if c is None else f"{currency_name(c)} ({c})",
            key="currency_code",
        )
        sort_key = st.selectbox(
            "Sort by",
            options=list(SORT_OPTIONS),
            format_func=SORT_OPTIONS.get,
            key="sort_key",
        )

    return FilterCriteria(search_text=search_text, currency_code=currency_code, sort_key=sort_key)


def render_metrics_row(transactions: List[Transaction]) -> None:
    """Render the summary metric cards."""
    stats = summarize(transactions)
    if stats.date_range is None:
        date_text = "N/A"
    elif stats.date_range.start == stats.date_range.end:
        date_text = stats.date_range.start.isoformat()
    else:
        date_text = f"{stats.date_range.start.isoformat()} to {stats.date_range.end.isoformat()}"

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric(label="Transactions", value=f"{stats.total_count:,}")
    with col2:
        st.metric(label="Total Value", value=f"{stats.total_value:,.0f} f")
    with col3:
        st.metric(label="Date Range", value=date_text)
    with col4:
        st.metric(label="People & Places", value=stats.unique_entities)


def highlight(text: str, search_text: str) -> str:
    """Wrap case-insensitive occurrences of ``search_text`` in bold markers."""
    needle = search_text.strip()
    if not needle:
        return text
    return re.sub(f"({re.escape(needle)})", r"**\1**", text, flags=re.IGNORECASE)


def transactions_to_dataframe(transactions: List[Transaction]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Date": t.date.isoformat() if t.date else "N/A",
                "Entry": t.text,
                "Amount": " + ".join(f"{a.quantity:g}" for a in t.amounts) or "-",
                "Currency": ", ".join(t.currency_codes) or "-",
                "Florins": round(t.base_value, 2),
                "Type": t.category,
            }
            for t in transactions
        ],
        columns=["Date", "Entry", "Amount", "Currency", "Florins", "Type"],
    )


def render_transactions_section(transactions: List[Transaction], config: AppConfig, search_text: str) -> None:
    """Render the paginated transaction table."""
    with st.container(border=True):
        st.markdown("### Transactions")
        if not transactions:
            st.info("No transactions found.")
            return

        page = paginate(transactions, st.session_state["page"], config.page_size)
        df = transactions_to_dataframe(page.items)
        st.dataframe(df, hide_index=True, use_container_width=True)
        if search_text.strip():
            with st.expander("Highlighted matches on this page"):
                for t in page.items:
                    st.markdown(f"- {highlight(t.text, search_text)}")

        col1, col2, col3 = st.columns([1, 2, 1])
        with col1:
            if st.button("◀ Previous", disabled=page.page <= 1, use_container_width=True):
                st.session_state["page"] = page.page - 1
                st.rerun()
        with col2:
            st.markdown(
                f"<div style='text-align:center'>Page {page.page} of {page.total_pages}</div>",
                unsafe_allow_html=True,
            )
        with col3:
            if st.button("Next ▶", disabled=page.page >= page.total_pages, use_container_width=True):
                st.session_state["page"] = page.page + 1
                st.rerun()


def render_timeline_chart(transactions: List[Transaction]) -> None:
    colors = get_medieval_colors()
    unit = st.selectbox("Aggregation", options=TIMELINE_UNITS, index=2, key="timeline_unit")
    buckets = by_time_bucket(transactions, unit)
    if not buckets:
        st.info("No dated transactions to plot.")
        return

    fig = go.Figure(
        go.Scatter(
            x=[b.key for b in buckets],
            y=[b.total for b in buckets],
            customdata=[b.count for b in buckets],
            mode="lines+markers",
            fill="tozeroy",
            line=dict(color=colors['primary'], width=3),
            marker=dict(size=7, color=colors['primary']),
            name="Transaction Value (Florins)",
            hovertemplate="<b>%{x}</b><br>%{y:,.2f} florins (%{customdata} transactions)<extra></extra>",
        )
    )
    fig.update_xaxes(title_text="Date", type="category", showgrid=True, gridcolor=colors['grid'])
    fig.update_yaxes(title_text="Value (Florins)", showgrid=True, gridcolor=colors['grid'])
    fig.update_layout(
        title="Monastery Financial Activity Over Time",
        height=380,
        margin=dict(l=20, r=20, t=50, b=20),
        plot_bgcolor="rgba(0,0,0,0)",
        paper_bgcolor="rgba(0,0,0,0)",
    )
    st.plotly_chart(fig, use_container_width=True)


def render_currency_chart(transactions: List[Transaction]) -> None:
    colors = get_medieval_colors()
    metric = st.radio("Metric", options=["value", "count"], horizontal=True, key="currency_metric")
    totals = by_currency(transactions, metric)
    cur_df = pd.DataFrame(
        [{"Currency": f"{currency_name(code)} ({code})", "Total": total} for code, total in totals.items() if total]
    )
    if cur_df.empty:
        st.info("No amounts to chart.")
        return

    label = "Value Distribution" if metric == "value" else "Transaction Count Distribution"
    cur_fig = px.pie(
        cur_df,
        names="Currency",
        values="Total",
        title=f"Currency {label} in Monastery Records",
        hole=0.4,
        color_discrete_sequence=colors['sequence'],
    )
    cur_fig.update_traces(textposition="inside", textinfo="percent+label")
    cur_fig.update_layout(height=380, margin=dict(l=20, r=20, t=50, b=20))
    st.plotly_chart(cur_fig, use_container_width=True)


def render_histogram_chart(transactions: List[Transaction], config: AppConfig) -> None:
    colors = get_medieval_colors()
    result = histogram([t.base_value for t in transactions], config.histogram_buckets)
    if not result.counts:
        st.info("No valued transactions to bin.")
        return
    fig = px.bar(
        x=result.labels,
        y=result.counts,
        labels={"x": "Florin range", "y": "Transactions"},
        title="Distribution of Transaction Values",
        color_discrete_sequence=[colors['secondary']],
    )
    fig.update_layout(height=380, margin=dict(l=20, r=20, t=50, b=20))
    st.plotly_chart(fig, use_container_width=True)


def render_seasonal_chart(transactions: List[Transaction]) -> None:
    colors = get_medieval_colors()
    axis = st.selectbox("Season axis", options=SEASONAL_AXES, key="seasonal_axis")
    breakdown = seasonal(transactions, axis)
    fig = go.Figure(
        go.Bar(
            x=breakdown.labels,
            y=breakdown.averages,
            customdata=breakdown.counts,
            marker_color=colors['tertiary'],
            hovertemplate="<b>%{x}</b><br>Average: %{y:,.2f} f<br>%{customdata} transactions<extra></extra>",
        )
    )
    fig.update_layout(
        title="Average Transaction Value by Season",
        height=380,
        margin=dict(l=20, r=20, t=50, b=20),
        yaxis_title="Average (Florins)",
    )
    st.plotly_chart(fig, use_container_width=True)


def render_visualizations_section(
    transactions: List[Transaction], config: AppConfig, diagnostics: Diagnostics
) -> None:
    """Render the chart grid over the filtered transactions."""
    with st.container(border=True):
        st.markdown("### Visualizations")
        if not transactions:
            st.info("No data available for visualization.")
            return

        with timed(diagnostics, "chart_update", transactions=len(transactions)):
            left, right = st.columns(2)
            with left:
                render_timeline_chart(transactions)
            with right:
                render_currency_chart(transactions)
            left, right = st.columns(2)
            with left:
                render_histogram_chart(transactions, config)
            with right:
                render_seasonal_chart(transactions)


def render_detail_section(filtered: List[Transaction]) -> None:
    """Render the transaction inspector with related entries."""
    store: TransactionStore = st.session_state["store"]
    panel: TransactionDetailPanel = st.session_state["detail_panel"]
    with st.container(border=True):
        st.markdown("### Transaction Details")
        panel.render_selector(filtered)
        panel.render(store.transactions)


def render_export_section(transactions: List[Transaction], criteria: FilterCriteria) -> None:
    """Offer the filtered view as CSV, JSON and PDF downloads."""
    if not transactions:
        return
    payload = build_export_payload(transactions, criteria)
    with st.container(border=True):
        st.markdown("### Export")
        col1, col2, col3 = st.columns(3)
        with col1:
            st.download_button(
                label="📥 Download CSV",
                data=payload_to_csv(payload).encode("utf-8-sig"),
                file_name="aldersbach_transactions.csv",
                mime="text/csv",
                help="Filtered transactions with florin equivalents",
                use_container_width=True,
            )
        with col2:
            st.download_button(
                label="📥 Download JSON",
                data=payload_to_json(payload),
                file_name="aldersbach_transactions.json",
                mime="application/json",
                help="Filtered transactions with metadata and statistics",
                use_container_width=True,
            )
        with col3:
            st.download_button(
                label="📥 Download PDF",
                data=payload_to_pdf(payload),
                file_name="aldersbach_report.pdf",
                mime="application/pdf",
                help="Printable report with summary, currency distribution and transactions",
                use_container_width=True,
            )


def render_footer() -> None:
    """Render a subtle footer."""
    st.divider()
    st.caption("Built with Streamlit. Florin equivalents use approximate historical rates.")


def main() -> None:
    """Application entry point."""
    config = load_config()
    set_page_config(config)
    logger = get_logger(json_output=config.log_json, level=config.log_level)
    diagnostics = LoggingDiagnostics()
    init_session_state()
    if st.session_state["detail_panel"] is None:
        st.session_state["detail_panel"] = TransactionDetailPanel(top_n=config.related_top_n)

    render_header(config)
    criteria = render_sidebar(config, diagnostics)

    store: TransactionStore = st.session_state["store"]
    if not len(store):
        st.info("Select a data file in the sidebar and press **Load data**.")
        render_footer()
        return

    with timed(diagnostics, "apply_filters", sort=criteria.sort_key) as elapsed:
        filtered = store.apply_filter(criteria)
    logger.debug(
        "Filters applied",
        extra={
            "context": {
                "search": criteria.search_text or "none",
                "currency": criteria.currency_code or "none",
                "sort": criteria.sort_key,
                "results": len(filtered),
                "total": len(store),
                "duration_ms": round(elapsed.duration_ms, 2),
            }
        },
    )

    render_metrics_row(filtered)
    render_transactions_section(filtered, config, criteria.search_text)
    render_visualizations_section(filtered, config, diagnostics)
    render_detail_section(filtered)
    render_export_section(filtered, criteria)
    render_footer()


if __name__ == "__main__":
    main()
