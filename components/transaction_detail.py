"""Transaction detail panel.

Shows the selected ledger entry with its amounts and extracted entities, and
a ranked list of related entries from the loaded collection. The selection is
kept in session state so it survives reruns triggered by other widgets.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import pandas as pd
import streamlit as st

from ledger.currency import currency_name
from ledger.models import RelatedTransaction, Transaction
from ledger.related import score_related


class TransactionDetailPanel:
    """Manages the selected transaction and renders its detail view."""

    def __init__(self, top_n: int = 5):
        self.top_n = top_n
        self._init_session_state()

    def _init_session_state(self) -> None:
        if "selected_transaction_id" not in st.session_state:
            st.session_state.selected_transaction_id = None

    def select(self, transaction_id: Optional[int]) -> None:
        st.session_state.selected_transaction_id = transaction_id

    def clear(self) -> None:
        st.session_state.selected_transaction_id = None

    def get_selected(self, transactions: Sequence[Transaction]) -> Optional[Transaction]:
        selected_id = st.session_state.selected_transaction_id
        if selected_id is None:
            return None
        for t in transactions:
            if t.id == selected_id:
                return t
        return None

    def render_selector(self, candidates: Sequence[Transaction]) -> None:
        """Render a select box over the currently visible transactions."""
        if not candidates:
            return
        options: List[Optional[int]] = [None] + [t.id for t in candidates]
        by_id = {t.id: t for t in candidates}
        current = st.session_state.selected_transaction_id
        index = options.index(current) if current in options else 0
        chosen = st.selectbox(
            "Inspect transaction",
            options=options,
            index=index,
            format_func=lambda tid: "-" if tid is None else _short_label(by_id[tid]),
            key="detail_selector",
        )
        self.select(chosen)

    def render(self, pool: Sequence[Transaction]) -> None:
        """Render the selected transaction and its related entries from ``pool``."""
        transaction = self.get_selected(pool)
        if transaction is None:
            st.info("Select a transaction to see its details and related entries.")
            return

        with st.container(border=True):
            st.markdown(f"#### Transaction {transaction.id}")
            st.write(transaction.text)

            col1, col2, col3 = st.columns(3)
            with col1:
                st.metric("Date", transaction.date.isoformat() if transaction.date else "N/A")
            with col2:
                st.metric("Florin Equivalent", f"{transaction.base_value:,.2f} f")
            with col3:
                st.metric("Type", transaction.category)

            if transaction.amounts:
                st.markdown("**Amounts**")
                st.dataframe(
                    pd.DataFrame(
                        [
                            {
                                "Quantity": a.quantity,
                                "Currency": currency_name(a.currency_code),
                                "Florins": round(a.base_value, 3),
                            }
                            for a in transaction.amounts
                        ]
                    ),
                    hide_index=True,
                    use_container_width=True,
                )

            self._render_entities(transaction)

            if transaction.source_id:
                st.caption(f"Source: {transaction.source_id}")
            with st.expander("Source record"):
                st.code(transaction.raw_source or "", language="xml")

        self._render_related(score_related(transaction, pool, self.top_n))

    def _render_entities(self, transaction: Transaction) -> None:
        col1, col2, col3 = st.columns(3)
        with col1:
            st.markdown("**People**")
            st.write(", ".join(transaction.people) or "-")
        with col2:
            st.markdown("**Places**")
            st.write(", ".join(transaction.places) or "-")
        with col3:
            st.markdown("**Commodities**")
            st.write(", ".join(transaction.commodities) or "-")

    def _render_related(self, related: List[RelatedTransaction]) -> None:
        st.markdown("#### Related Transactions")
        if not related:
            st.caption("No related transactions found.")
            return
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "Score": r.score,
                        "Date": r.transaction.date.isoformat() if r.transaction.date else "N/A",
                        "Entry": r.transaction.text,
                        "Florins": round(r.transaction.base_value, 2),
                    }
                    for r in related
                ]
            ),
            hide_index=True,
            use_container_width=True,
        )


def _short_label(transaction: Transaction, width: int = 60) -> str:
    text = transaction.text if len(transaction.text) <= width else transaction.text[: width - 3] + "..."
    date = transaction.date.isoformat() if transaction.date else "undated"
    return f"#{transaction.id} · {date} · {text}"
