"""Streamlit UI for skill-based listing search."""
from __future__ import annotations

import pandas as pd
import streamlit as st

from skillmatch.config import get_env
from skillmatch.errors import AnalysisError, AnalysisQuotaExceeded, ConfigError, SkillMatchError
from skillmatch.log import get_logger
from skillmatch.models import ListingRecord
from skillmatch.service import MatchService, build_service

log = get_logger(__name__)

QUOTA_MESSAGE = (
    "The analysis service has reached its usage limit. "
    "Please wait a while and try again."
)

_CSS = """
<style>
[data-testid="stAppViewContainer"] {
    background: linear-gradient(135deg, #e8eaf6 0%, #f3e5f5 40%, #e0f2f1 100%);
}
[data-testid="stSidebar"] {
    background: rgba(255,255,255,0.55);
    backdrop-filter: blur(16px);
    border-right: 1px solid rgba(255,255,255,0.3);
}
.block-container {
    padding-top: 2rem;
}
[data-testid="stMetric"],
[data-testid="stExpander"] {
    background: rgba(255,255,255,0.6);
    backdrop-filter: blur(12px);
    border-radius: 12px;
    border: 1px solid rgba(255,255,255,0.4);
    box-shadow: 0 4px 16px rgba(0,0,0,0.06);
}
.listing-meta {
    font-size: 0.85rem; color: #555;
}
</style>
"""

# ── Helpers ──────────────────────────────────────────────────────────────


@st.cache_resource
def _service(strategy: str) -> MatchService:
    return build_service(strategy)


def _get_service(show_error: bool = True) -> MatchService | None:
    strategy = get_env("SEARCH_STRATEGY") or "priority"
    try:
        return _service(strategy)
    except (ConfigError, ValueError) as exc:
        if show_error:
            st.error(f"Service is not configured: {exc}")
        return None


def _listings_frame(records: list[ListingRecord]) -> pd.DataFrame:
    df = pd.DataFrame([r.to_dict() for r in records])
    if df.empty:
        return df
    df["posted_at"] = pd.to_datetime(df["posted_at"], utc=True)
    cols = ["title", "source", "price", "period", "skills", "posted_at", "url"]
    return df[cols]


def _render_listing(record: ListingRecord) -> None:
    with st.expander(record.title):
        st.markdown(
            f"<div class='listing-meta'>{record.source} · {record.posted_at:%Y-%m-%d %H:%M}</div>",
            unsafe_allow_html=True,
        )
        if record.price:
            st.markdown(f"**Price:** {record.price}")
        if record.period:
            st.markdown(f"**Period:** {record.period}")
        if record.skills:
            st.markdown(f"**Skills:** {record.skills}")
        if record.detail:
            st.write(record.detail)
        st.link_button("Open listing", record.url)


# ── Page: Chat ───────────────────────────────────────────────────────────


def page_chat() -> None:
    st.header("Find listings for your skills")

    service = _get_service()
    if service is None:
        return

    message = st.text_area(
        "Describe your skills and experience",
        height=180,
        placeholder="e.g. 6 years of Java and Spring Boot, 3 years on AWS, some React…",
    )
    if st.button("Search", type="primary", use_container_width=True):
        if not message.strip():
            st.warning("Please enter your skills first.")
            return
        with st.spinner("Analysing your skills and searching listings…"):
            try:
                st.session_state["last_chat"] = service.chat(message)
            except AnalysisQuotaExceeded:
                st.error(QUOTA_MESSAGE)
                return
            except AnalysisError as exc:
                st.error(f"Skill analysis failed: {exc}")
                return
            except SkillMatchError as exc:
                log.error("Chat search failed: %s", exc)
                st.error(f"Listing search failed: {exc}")
                return

    result = st.session_state.get("last_chat")
    if not result:
        st.info("Enter your skills above and click **Search**.")
        return

    analysis = result.analysis
    st.divider()
    st.subheader("Analysis")
    c1, c2, c3 = st.columns(3)
    c1.metric("Estimated rate", analysis.estimated_salary or "—")
    c2.metric("Role", analysis.preferred_role or "—")
    c3.metric("Level", analysis.experience_level or "—")
    st.markdown(f"**Key skills:** {', '.join(analysis.key_skills) or '—'}")
    if analysis.strengths:
        st.markdown(f"**Strengths:** {analysis.strengths}")
    if analysis.suggestions:
        st.markdown(f"**Suggestions:** {analysis.suggestions}")

    st.subheader(f"Matched listings ({len(result.listings)})")
    if not result.listings:
        st.info("No listings matched your key skills.")
    for record in result.listings:
        _render_listing(record)


# ── Page: All Listings ───────────────────────────────────────────────────


def page_listings() -> None:
    st.header("All Listings")

    service = _get_service()
    if service is None:
        return

    try:
        records = service.all_listings()
    except SkillMatchError as exc:
        st.error(f"Could not load listings: {exc}")
        return

    if not records:
        st.info("No listings stored yet. Run the daily ingest: `python -m skillmatch.run_daily --once`")
        return

    df = _listings_frame(records)
    c1, c2 = st.columns(2)
    c1.metric("Listings", len(df))
    c2.metric("Sources", df["source"].nunique())

    sources = sorted(df["source"].unique())
    picked = st.multiselect("Sources", sources, default=sources)
    st.dataframe(
        df[df["source"].isin(picked)],
        use_container_width=True,
        column_config={
            "url": st.column_config.LinkColumn("Link"),
            "posted_at": st.column_config.DatetimeColumn("Posted", format="YYYY-MM-DD HH:mm"),
        },
        hide_index=True,
    )


# ── Main ─────────────────────────────────────────────────────────────────


def _check(label: str, ok: bool) -> str:
    icon = "✅" if ok else "⬜"
    return f"{icon}  {label}"


def _sidebar_status() -> None:
    with st.sidebar:
        st.divider()
        st.markdown("**Status**")
        st.markdown(_check("Analysis API key", bool(get_env("OPENROUTER_API_KEY"))))
        service = _get_service(show_error=False)
        health = service.health() if service else {"database": "unconfigured", "listings": None}
        st.markdown(_check(f"Database ({health['database']})", health["database"] == "ok"))
        if health["listings"] is not None:
            st.caption(f"{health['listings']} listings stored")


def _wrap_chat():
    st.markdown(_CSS, unsafe_allow_html=True)
    _sidebar_status()
    page_chat()


def _wrap_listings():
    st.markdown(_CSS, unsafe_allow_html=True)
    _sidebar_status()
    page_listings()


pages = [
    st.Page(_wrap_chat, title="Chat", icon="💬", url_path="chat", default=True),
    st.Page(_wrap_listings, title="All Listings", icon="📋", url_path="listings"),
]

nav = st.navigation(pages)
nav.run()
