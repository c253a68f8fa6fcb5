import asyncio
import html
import re
from typing import Optional, Sequence

import altair as alt
import pandas as pd
import pydeck as pdk
import streamlit as st

from hyderaqi.config.api_config import resolve_model_settings
from hyderaqi.config.logging_config import configure_logging
from hyderaqi.lib.aqi import AQI_BANDS, category_color, category_rgb, classify
from hyderaqi.lib.assistant import AirQualityAssistant, ChatSession
from hyderaqi.lib.dashboard_state import DashboardState, run_search
from hyderaqi.lib.history import history_frame
from hyderaqi.lib.insights import get_insights
from hyderaqi.lib.llm_client import OpenAIModelClient
from hyderaqi.lib.models import Citation, LocationRecord
from hyderaqi.lib.registry import HYDERABAD_LOCATIONS, MAP_COORDINATES, short_label
from hyderaqi.lib.resolver import GroundedAreaResolver

# label, key, unit, bar scale maximum
POLLUTANT_ROWS = [
    ("PM 2.5", "pm25", "µg/m³", 100),
    ("PM 10", "pm10", "µg/m³", 200),
    ("NO2", "no2", "ppb", 50),
    ("SO2", "so2", "ppb", 50),
    ("CO", "co", "ppm", 5),
    ("O3", "o3", "ppb", 100),
]

CHAT_SUGGESTIONS = ["Why is AQI high in Charminar?", "Health tips for Gachibowli?"]

RAINBOW_GRADIENT = "linear-gradient(90deg, #22c55e, #eab308, #f97316, #ef4444, #a855f7)"
BOLD_PATTERN = re.compile(r"\*\*(.*?)\*\*")


def ensure_custom_styles() -> None:
    """Inject reusable CSS styles once per session."""

    flag_key = "_custom_style_injected"
    if st.session_state.get(flag_key):
        return
    st.session_state[flag_key] = True
    st.markdown(
        f"""
        <style>
            .rainbow-heading {{
                font-weight: 800;
                background-image: {RAINBOW_GRADIENT};
                -webkit-background-clip: text;
                color: transparent;
            }}
            .rainbow-divider {{
                background-image: {RAINBOW_GRADIENT};
                border-radius: 999px;
            }}
            .section-gap {{
                margin-top: 1.5rem;
                margin-bottom: 0.75rem;
            }}
            .aqi-banner {{
                border-radius: 24px;
                padding: 1.6rem 1.8rem;
                color: #ffffff;
                box-shadow: 0 10px 24px rgba(17, 17, 17, 0.18);
            }}
            .aqi-banner .aqi-value {{
                font-size: 4.5rem;
                font-weight: 900;
                line-height: 1;
            }}
            .aqi-chip {{
                display: inline-block;
                padding: 4px 12px;
                margin-right: 6px;
                border-radius: 999px;
                font-weight: 700;
                font-size: 0.85rem;
                background: rgba(255, 255, 255, 0.22);
                border: 1px solid rgba(255, 255, 255, 0.35);
            }}
            .frost-card {{
                background: rgba(255, 255, 255, 0.75);
                backdrop-filter: blur(6px);
                border-radius: 14px;
                border: 1px solid rgba(255, 255, 255, 0.45);
                box-shadow: 0 10px 24px rgba(17, 17, 17, 0.08);
                padding: 1rem 1.2rem;
                margin-bottom: 1rem;
                white-space: pre-wrap;
            }}
            .mini-caption {{
                font-size: 0.85rem;
                color: #4a4a4a;
                margin-top: 0.4rem;
            }}
        </style>
        """,
        unsafe_allow_html=True,
    )


def rainbow_heading(text: str, *, level: int = 2, emoji: Optional[str] = None) -> None:
    """Display a gradient heading with a divider."""

    ensure_custom_styles()
    size_map = {1: "2rem", 2: "1.55rem", 3: "1.2rem"}
    bar_height = {1: "5px", 2: "3.5px", 3: "2.5px"}
    label = f"{emoji} {text}" if emoji else text
    st.markdown(
        f"""
        <div class="section-gap">
            <div class="rainbow-heading" style="font-size: {size_map.get(level, '1.45rem')};">
                {label}
            </div>
            <div class="rainbow-divider" style="height: {bar_height.get(level, '3px')};"></div>
        </div>
        """,
        unsafe_allow_html=True,
    )


def markdown_to_html(text: str) -> str:
    """Escape `text` and convert lightweight markdown bold markers into inline HTML."""

    def _bold_repl(match: re.Match[str]) -> str:
        return f"<strong>{match.group(1)}</strong>"

    return BOLD_PATTERN.sub(_bold_repl, html.escape(text))


def render_mini_caption(text: str) -> None:
    ensure_custom_styles()
    st.markdown(f"<div class=\"mini-caption\">{markdown_to_html(text)}</div>", unsafe_allow_html=True)


# ----------------------------------------------------------
# Session-scoped services
# ----------------------------------------------------------
def get_services():
    """Create the provider client, resolver and chat assistant once per browser session."""

    services = st.session_state.get("services")
    if services is None:
        settings = resolve_model_settings()
        configure_logging(settings.log_level)
        client = OpenAIModelClient(settings)
        services = {
            "settings": settings,
            "client": client,
            "resolver": GroundedAreaResolver(client, client, city=settings.city),
            "assistant": AirQualityAssistant(client, ChatSession()),
        }
        st.session_state["services"] = services
    return services


def get_state() -> DashboardState:
    if "dashboard_state" not in st.session_state:
        st.session_state["dashboard_state"] = DashboardState()
    return st.session_state["dashboard_state"]


def refresh_insights(state: DashboardState, services, token: Optional[int] = None) -> None:
    token = state.generation if token is None else token
    with st.spinner("AI is analyzing real-time patterns..."):
        text = asyncio.run(
            get_insights(state.selected, services["client"], city=services["settings"].city)
        )
    state.apply_insights(token, text)
    st.session_state["insights_for"] = token


def select_location(state: DashboardState, services, location: LocationRecord) -> None:
    token = state.select(location)
    refresh_insights(state, services, token)


# ----------------------------------------------------------
# Rendering helpers
# ----------------------------------------------------------
def render_aqi_banner(location: LocationRecord, grounded: bool) -> None:
    ensure_custom_styles()
    label = classify(location.aqi)
    color = category_color(location.aqi)
    chips = f"<span class=\"aqi-chip\">{label}</span>"
    if grounded:
        chips += "<span class=\"aqi-chip\">Grounded Result</span>"
    st.markdown(
        f"""
        <div class="aqi-banner" style="background: linear-gradient(135deg, {color}, #0f172a);">
            <div>Current AQI in {location.name}</div>
            <div class="aqi-value">{location.aqi} <span style="font-size: 1.2rem;">AQI</span></div>
            <div style="margin-top: 0.8rem;">{chips}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )


def render_sources(citations: Sequence[Citation]) -> None:
    if not citations:
        return
    links = [
        f"[{c.display_title}]({c.uri})" if c.uri else c.display_title
        for c in citations
    ]
    st.markdown("**Data sources for this area:** " + " · ".join(links))


def build_location_map(selected_id: str) -> pdk.Deck:
    rows = []
    for loc in HYDERABAD_LOCATIONS:
        lat, lon = MAP_COORDINATES[loc.id]
        rows.append(
            {
                "name": loc.name,
                "aqi": loc.aqi,
                "category": classify(loc.aqi),
                "lat": lat,
                "lon": lon,
                "color": category_rgb(loc.aqi) + [230],
                "radius": 900 if loc.id == selected_id else 550,
            }
        )
    df = pd.DataFrame(rows)

    layer = pdk.Layer(
        "ScatterplotLayer",
        data=df,
        get_position="[lon, lat]",
        get_fill_color="color",
        get_radius="radius",
        stroked=True,
        get_line_color=[255, 255, 255],
        line_width_min_pixels=2,
        pickable=True,
    )
    center_lat = float(df["lat"].mean())
    center_lon = float(df["lon"].mean())
    return pdk.Deck(
        layers=[layer],
        initial_view_state=pdk.ViewState(latitude=center_lat, longitude=center_lon, zoom=10.5, pitch=0),
        tooltip={"text": "{name}\nAQI {aqi} ({category})"},
        map_style=None,
    )


def build_trend_chart(state: DashboardState) -> alt.Chart:
    df = history_frame(state.history)
    return (
        alt.Chart(df)
        .mark_line(color="#3b82f6", strokeWidth=3, point=alt.OverlayMarkDef(color="#3b82f6", size=40))
        .encode(
            x=alt.X("timestamp:T", title="Time", axis=alt.Axis(format="%H:%M")),
            y=alt.Y("aqi:Q", title="AQI"),
            tooltip=[alt.Tooltip("time:N", title="Time"), alt.Tooltip("aqi:Q", title="AQI")],
        )
        .properties(height=300)
    )


def build_pollutant_chart(location: LocationRecord) -> alt.Chart:
    readings = location.pollutants.as_dict()
    rows = []
    for label, key, unit, scale_max in POLLUTANT_ROWS:
        value = readings[key]
        rows.append(
            {
                "pollutant": label,
                "value": value,
                "unit": unit,
                "percent": min(value / scale_max * 100, 100),
            }
        )
    df = pd.DataFrame(rows)
    return (
        alt.Chart(df)
        .mark_bar(cornerRadius=4)
        .encode(
            x=alt.X("percent:Q", title="Share of scale", scale=alt.Scale(domain=[0, 100])),
            y=alt.Y("pollutant:N", sort=None, title=None),
            color=alt.Color("pollutant:N", legend=None),
            tooltip=[
                alt.Tooltip("pollutant:N", title="Pollutant"),
                alt.Tooltip("value:Q", title="Reading", format=".1f"),
                alt.Tooltip("unit:N", title="Unit"),
            ],
        )
        .properties(height=220)
    )


def render_chat(services) -> None:
    assistant: AirQualityAssistant = services["assistant"]
    transcript = st.session_state.setdefault("chat_messages", [])

    rainbow_heading("HyderAQI Assistant", level=3, emoji="💬")
    if not transcript:
        st.caption("Hello! Ask me anything about air quality in Hyderabad.")
        cols = st.columns(len(CHAT_SUGGESTIONS))
        for col, suggestion in zip(cols, CHAT_SUGGESTIONS):
            if col.button(suggestion, key=f"suggest_{suggestion}"):
                st.session_state["pending_chat"] = suggestion

    for msg in transcript:
        with st.chat_message(msg["role"]):
            st.markdown(msg["text"])

    prompt = st.chat_input("Type your question...") or st.session_state.pop("pending_chat", None)
    if prompt and prompt.strip():
        transcript.append({"role": "user", "text": prompt})
        with st.chat_message("user"):
            st.markdown(prompt)
        with st.chat_message("assistant"):
            with st.spinner("Thinking..."):
                reply = asyncio.run(assistant.send(prompt))
            st.markdown(reply)
        transcript.append({"role": "assistant", "text": reply})

    if transcript and st.button("Clear conversation", key="chat_reset"):
        assistant.reset()
        st.session_state["chat_messages"] = []
        st.rerun()


# ----------------------------------------------------------
# Page
# ----------------------------------------------------------
def main() -> None:
    st.set_page_config(page_title="HyderAQI", page_icon="🌫️", layout="wide")
    ensure_custom_styles()

    services = get_services()
    state = get_state()
    if st.session_state.get("insights_for") != state.generation:
        refresh_insights(state, services)

    head_left, head_right = st.columns([2, 3])
    with head_left:
        rainbow_heading("HyderAQI", level=1, emoji="🌬️")
        st.caption("📍 Hyderabad City Air Monitoring")
    with head_right:
        with st.form("area_search", clear_on_submit=True):
            term = st.text_input(
                "Monitor any area",
                placeholder="Monitor any area (e.g. Uppal, Jubilee Hills, Mehdipatnam)...",
            )
            submitted = st.form_submit_button("Search")

    if submitted and term.strip():
        with st.spinner(f"Scanning {term}... fetching live ground data from web search"):
            outcome = asyncio.run(run_search(state, term, services["resolver"]))
        if outcome is not None and not outcome.ok:
            st.error(outcome.error)
        elif outcome is not None:
            refresh_insights(state, services)

    location = state.selected
    main_col, side_col = st.columns([2, 1])

    with main_col:
        banner_col, stats_col = st.columns(2)
        with banner_col:
            render_aqi_banner(location, state.is_grounded)
        with stats_col:
            s1, s2 = st.columns(2)
            s1.metric("🌡️ Temperature", f"{location.temperature:g}°C")
            s2.metric("💧 Humidity", f"{location.humidity:g}%")
            render_mini_caption(f"Last updated: **{location.last_updated:%d %b %Y, %H:%M}**")

        render_sources(state.citations)

        rainbow_heading("Area Monitoring Map", level=2, emoji="🗺️")
        buttons = st.columns(len(HYDERABAD_LOCATIONS))
        for col, loc in zip(buttons, HYDERABAD_LOCATIONS):
            kind = "primary" if loc.id == location.id else "secondary"
            if col.button(short_label(loc), key=f"pick_{loc.id}", type=kind):
                select_location(state, services, loc)
                st.rerun()
        st.pydeck_chart(build_location_map(location.id))
        render_mini_caption("Live-search areas are not plotted on the map.")

        rainbow_heading("24-Hour AQI Trend", level=2, emoji="📈")
        st.altair_chart(build_trend_chart(state), use_container_width=True)

    with side_col:
        rainbow_heading("AI Health Coach", level=2, emoji="🧠")
        st.markdown(f"<div class=\"frost-card\">{markdown_to_html(state.insights)}</div>", unsafe_allow_html=True)
        if st.button("🔄 Refresh insights"):
            refresh_insights(state, services)
            st.rerun()
        render_mini_caption(f"Model: **{services['settings'].model}**")

        rainbow_heading("Pollutant Breakdown", level=2, emoji="🧪")
        st.altair_chart(build_pollutant_chart(location), use_container_width=True)
        legend = " · ".join(
            f"<span style='color:{color}'>●</span> {label}" for _, label, color in AQI_BANDS
        )
        st.markdown(legend, unsafe_allow_html=True)

        render_chat(services)


if __name__ == "__main__":
    main()
