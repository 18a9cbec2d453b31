"""
Session Monitor - Operations Dashboard

Streamlit dashboard for watching live circuits and picking a safe
moment to deploy. Polls the session monitor API.

Widgets:
- Live session metric cards
- Active session history chart
- Ranked deployment windows
- Deploy-now check
- Deployment status and open circuits

Run: streamlit run dashboard.py --server.port 8501
"""

import os
from datetime import datetime, timedelta, UTC
from typing import Optional

import httpx
import pandas as pd
import plotly.express as px
import streamlit as st

# Page configuration
st.set_page_config(
    page_title="Session Monitor",
    page_icon="🛰️",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Configuration
API_URL = os.getenv("SESSION_MONITOR_API_URL", "http://localhost:8000")
API_PREFIX = os.getenv("SESSION_MONITOR_API_PREFIX", "/api/session-monitor")
API_TOKEN = os.getenv("SESSION_MONITOR_API_TOKEN")

st.markdown("""
<style>
    .main .block-container {
        padding-top: 2rem;
        padding-bottom: 2rem;
    }

    .dashboard-header {
        background: linear-gradient(135deg, #594AE2 0%, #3b82f6 100%);
        border-radius: 12px;
        padding: 1.5rem;
        color: white;
        margin-bottom: 1.5rem;
    }

    .deploy-yes {
        background-color: #10b981;
        color: white;
        padding: 0.5rem 1rem;
        border-radius: 9999px;
        font-weight: 600;
        display: inline-block;
    }
    .deploy-no {
        background-color: #ef4444;
        color: white;
        padding: 0.5rem 1rem;
        border-radius: 9999px;
        font-weight: 600;
        display: inline-block;
    }
</style>
""", unsafe_allow_html=True)


# ============================================================================
# Helper Functions
# ============================================================================

def _headers() -> dict:
    return {"X-API-Key": API_TOKEN} if API_TOKEN else {}


def _get(path: str, params: Optional[dict] = None, default=None):
    """GET an API path, returning `default` when the API is unreachable."""
    try:
        response = httpx.get(
            f"{API_URL}{path}", params=params, headers=_headers(), timeout=5.0
        )
        if response.status_code == 200:
            return response.json()
    except httpx.HTTPError:
        pass
    return default


def get_api_health() -> dict:
    return _get("/health", default={"status": "down"})


def get_current_metrics() -> dict:
    return _get(f"{API_PREFIX}/current", default={})


def get_history(hours: int, max_count: int = 10000) -> list:
    since = (datetime.now(UTC) - timedelta(hours=hours)).isoformat()
    return _get(
        f"{API_PREFIX}/history",
        params={"since": since, "maxCount": max_count},
        default=[],
    )


def get_deployment_windows(window_minutes: int, lookback_hours: int) -> list:
    return _get(
        f"{API_PREFIX}/deployment-windows",
        params={"windowMinutes": window_minutes, "lookbackHours": lookback_hours},
        default=[],
    )


def get_can_deploy(max_allowed_sessions: int) -> dict:
    return _get(
        f"{API_PREFIX}/can-deploy",
        params={"maxAllowedSessions": max_allowed_sessions},
        default={},
    )


def get_active_circuits() -> dict:
    return _get(f"{API_PREFIX}/active-circuits", default={"count": 0, "circuit_ids": []})


def get_reconnection_status() -> dict:
    return _get("/reconnection-status.json", default={"status": "normal"})


def format_duration(seconds: float) -> str:
    seconds = int(seconds or 0)
    if seconds < 60:
        return f"{seconds}s"
    minutes, seconds = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {seconds}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m"


def main():
    # Header
    st.markdown("""
    <div class="dashboard-header">
        <h1 style="margin: 0; font-size: 2rem;">🛰️ Session Monitor</h1>
        <p style="margin: 0.5rem 0 0 0; opacity: 0.9;">
            Live circuits and deployment window planning
        </p>
    </div>
    """, unsafe_allow_html=True)

    # Sidebar - System Status
    with st.sidebar:
        st.header("System Status")

        health = get_api_health()
        if health.get("status") == "healthy":
            st.success("● API Healthy")
        else:
            st.error("● API Down")

        status = get_reconnection_status()
        phase = status.get("status", "normal")
        st.subheader("Deployment Status")
        if phase == "normal":
            st.markdown("✅ Normal")
        else:
            st.warning(f"🚧 {phase.capitalize()}")
        if status.get("deploymentMessage"):
            st.caption(status["deploymentMessage"])
        if status.get("version"):
            st.markdown(f"**Version:** `{status['version']}`")
        if status.get("commit"):
            st.markdown(f"**Commit:** `{status['commit'][:12]}`")

        st.divider()

        st.subheader("Settings")
        lookback_hours = st.slider("Lookback (hours)", 1, 168, 24)
        window_minutes = st.slider("Window length (minutes)", 1, 120, 5)
        max_allowed = st.number_input("Max sessions allowed for deploy", 0, 1000, 0)

        if st.button("Refresh"):
            st.rerun()

    # Live metrics
    current = get_current_metrics()
    metric_cols = st.columns(5)
    with metric_cols[0]:
        st.metric("Active Sessions", f"{current.get('active_sessions', 0):,}")
    with metric_cols[1]:
        st.metric("Peak Sessions", f"{current.get('peak_sessions', 0):,}")
    with metric_cols[2]:
        st.metric("Started", f"{current.get('total_sessions_started', 0):,}")
    with metric_cols[3]:
        st.metric("Ended", f"{current.get('total_sessions_ended', 0):,}")
    with metric_cols[4]:
        st.metric(
            "Avg Session",
            format_duration(current.get("average_session_duration_seconds", 0)),
        )

    tabs = st.tabs([
        "📈 Session History",
        "🚀 Deployment Windows",
        "🔌 Active Circuits",
    ])

    # ==========================================================================
    # Tab 1: Session History
    # ==========================================================================
    with tabs[0]:
        history = get_history(lookback_hours)
        if history:
            df = pd.DataFrame(history)
            df["timestamp"] = pd.to_datetime(df["timestamp"])
            fig = px.line(
                df,
                x="timestamp",
                y="active_sessions",
                line_shape="hv",
                color_discrete_sequence=["#594AE2"],
            )
            fig.update_layout(
                margin=dict(l=20, r=20, t=20, b=20),
                xaxis_title="Time",
                yaxis_title="Active Sessions",
                showlegend=False,
            )
            st.plotly_chart(fig, use_container_width=True)
            st.caption(f"{len(df):,} snapshots")
        else:
            st.info("No session history yet")

    # ==========================================================================
    # Tab 2: Deployment Windows
    # ==========================================================================
    with tabs[1]:
        check = get_can_deploy(int(max_allowed))
        if check:
            css = "deploy-yes" if check.get("can_deploy") else "deploy-no"
            label = "Safe to deploy" if check.get("can_deploy") else "Hold deployment"
            st.markdown(f'<span class="{css}">{label}</span>', unsafe_allow_html=True)
            st.caption(check.get("reason", ""))

        windows = get_deployment_windows(window_minutes, lookback_hours)
        if windows:
            df = pd.DataFrame(windows)
            df["start_time"] = pd.to_datetime(df["start_time"])
            df["end_time"] = pd.to_datetime(df["end_time"])
            st.dataframe(
                df[[
                    "start_time",
                    "end_time",
                    "zero_sessions_window",
                    "max_active_sessions",
                    "average_active_sessions",
                    "sample_count",
                ]],
                use_container_width=True,
                hide_index=True,
            )
        else:
            st.info("Not enough history to recommend a deployment window")

    # ==========================================================================
    # Tab 3: Active Circuits
    # ==========================================================================
    with tabs[2]:
        circuits = get_active_circuits()
        st.metric("Open Circuits", circuits.get("count", 0))
        if circuits.get("circuit_ids"):
            st.dataframe(
                pd.DataFrame({"circuit_id": circuits["circuit_ids"]}),
                use_container_width=True,
                hide_index=True,
            )


if __name__ == "__main__":
    main()
