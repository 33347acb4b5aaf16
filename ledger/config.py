from __future__ import annotations

from dataclasses import dataclass

import streamlit as st

from .validation import DEFAULT_AMOUNT_UPPER_BOUND, MAX_YEAR, MIN_YEAR


@dataclass(frozen=True)
class AppConfig:
    title: str = "Aldersbach Monastery Financial Dashboard"
    data_dir: str = "demo-data"
    page_size: int = 50
    histogram_buckets: int = 10
    related_top_n: int = 5
    amount_upper_bound: float = DEFAULT_AMOUNT_UPPER_BOUND
    min_year: int = MIN_YEAR
    max_year: int = MAX_YEAR
    log_level: str = "INFO"
    log_json: bool = True


def load_config() -> AppConfig:
    """Load configuration from Streamlit secrets with safe defaults.

    Handles missing `.streamlit/secrets.toml` gracefully, returning defaults.
    """
    # Accessing st.secrets can raise FileNotFoundError if no secrets file exists.
    try:
        raw_secrets = st.secrets  # type: ignore[attr-defined]
    except FileNotFoundError:
        raw_secrets = {}

    try:
        secrets: dict = dict(raw_secrets) if raw_secrets else {}
    except FileNotFoundError:
        secrets = {}

    app_section = dict(secrets.get("app", {}))
    validation_section = dict(secrets.get("validation", {}))
    logging_section = dict(secrets.get("logging", {}))
    defaults = AppConfig()

    return AppConfig(
        title=str(app_section.get("title", defaults.title)),
        data_dir=str(app_section.get("data_dir", defaults.data_dir)),
        page_size=int(app_section.get("page_size", defaults.page_size)),
        histogram_buckets=int(app_section.get("histogram_buckets", defaults.histogram_buckets)),
        related_top_n=int(app_section.get("related_top_n", defaults.related_top_n)),
        amount_upper_bound=float(validation_section.get("amount_upper_bound", defaults.amount_upper_bound)),
        min_year=int(validation_section.get("min_year", defaults.min_year)),
        max_year=int(validation_section.get("max_year", defaults.max_year)),
        log_level=str(logging_section.get("level", defaults.log_level)).upper(),
        log_json=bool(logging_section.get("json", defaults.log_json)),
    )
