import pandas as pd
import streamlit as st
from st_aggrid import AgGrid, GridOptionsBuilder, GridUpdateMode, ColumnsAutoSizeMode

def setup_style():
    st.markdown("""
    <style>
        :root {
            --kp-bg: #0e1117;
            --kp-card: rgba(255, 255, 255, 0.04);
            --kp-border: rgba(180, 220, 255, 0.22);
            --kp-text: #e6edf5;
            --kp-soft: rgba(230, 237, 245, 0.65);
            --kp-accent: #4fa3e3;
            --kp-warn: #e3a14f;
        }

        .main .block-container {
            padding-top: 1.2rem;
            padding-bottom: 2rem;
            max-width: 96% !important;
        }

        h1, h2, h3, h4 {
            letter-spacing: -0.02em;
            color: var(--kp-text);
        }

        /* Login card */
        [data-testid="stForm"] {
            background: var(--kp-card);
            border: 1px solid var(--kp-border) !important;
            border-radius: 16px !important;
            padding: 1.4rem 1.6rem !important;
            box-shadow: 0 10px 32px rgba(0, 0, 0, 0.35);
        }

        /* Idle timer in the navbar */
        .kp-timer {
            font-family: ui-monospace, SFMono-Regular, Menlo, monospace;
            font-size: 1.05rem;
            padding: 0.35rem 0.7rem;
            border-radius: 999px;
            border: 1px solid var(--kp-border);
            background: var(--kp-card);
            text-align: center;
            color: var(--kp-text);
        }

        /* Group tree buttons read like a list, not a toolbar */
        [data-testid="column"] button[kind="secondary"] {
            justify-content: flex-start;
            border: none;
            background: transparent;
        }

        [data-testid="stCode"] pre {
            margin-bottom: 0;
        }

        header[data-testid="stHeader"] {
            background: transparent !important;
        }
        [data-testid="stDecoration"] {
            display: none !important;
        }
        #MainMenu {visibility: hidden;}

        .kp-loading-overlay {
            position: fixed;
            inset: 0;
            z-index: 9999;
            display: flex;
            align-items: center;
            justify-content: center;
            background: rgba(5, 10, 19, 0.78);
            backdrop-filter: blur(10px);
            -webkit-backdrop-filter: blur(10px);
        }

        .kp-loading-card {
            min-width: 300px;
            border-radius: 18px;
            padding: 22px 26px;
            border: 1px solid var(--kp-border);
            background: var(--kp-card);
            text-align: center;
        }

        .kp-loading-orb {
            width: 48px;
            height: 48px;
            margin: 0 auto 12px;
            border-radius: 999px;
            border: 2px solid rgba(220, 244, 255, 0.3);
            border-top-color: var(--kp-accent);
            animation: kpSpin 0.95s linear infinite;
        }

        .kp-loading-sub {
            color: var(--kp-soft);
            font-size: 0.96rem;
        }

        @keyframes kpSpin {
            0% { transform: rotate(0deg); }
            100% { transform: rotate(360deg); }
        }

        @media (prefers-reduced-motion: reduce) {
            .kp-loading-orb {
                animation: none !important;
            }
        }
    </style>
    """, unsafe_allow_html=True)

def show_loading_overlay(message="Loading"):
    st.markdown(
        f"""
        <div class="kp-loading-overlay">
          <div class="kp-loading-card">
            <div class="kp-loading-orb"></div>
            <div class="kp-loading-sub">{message}</div>
          </div>
        </div>
        """,
        unsafe_allow_html=True
    )

def _first_selected(selected):
    # st_aggrid returns a DataFrame on recent releases, a list of dicts on older ones
    if selected is None:
        return None
    if isinstance(selected, pd.DataFrame):
        if selected.empty:
            return None
        return selected.iloc[0].to_dict()
    if len(selected) == 0:
        return None
    return dict(selected[0])

def render_aggrid(df, height=400, hidden_columns=None, selectable=False, key="entries_grid", theme="balham"):
    """Entry table. With selectable=True returns the clicked row as a dict (or None)."""
    if df.empty:
        st.info("No entries")
        return None

    gb = GridOptionsBuilder.from_dataframe(df)
    gb.configure_default_column(filterable=True, sortable=True, resizable=True)

    for col in df.columns:
        if hidden_columns and col in hidden_columns:
            gb.configure_column(col, hide=True)
        else:
            gb.configure_column(col, minWidth=120, flex=1)

    if selectable:
        gb.configure_selection(selection_mode="single", use_checkbox=False)

    gridOptions = gb.build()

    valid_themes = ["streamlit", "alpine", "balham", "material"]
    safe_theme = theme if theme in valid_themes else "balham"

    response = AgGrid(
        df,
        gridOptions=gridOptions,
        height=height,
        theme=safe_theme,
        key=key,
        columns_auto_size_mode=ColumnsAutoSizeMode.FIT_CONTENTS,
        custom_css={
            ".ag-root-wrapper": {
                "border-radius": "12px",
                "overflow": "hidden",
                "border": "1px solid rgba(180, 220, 255, 0.22)",
            },
            ".ag-row-selected": {"background-color": "rgba(79, 163, 227, 0.35) !important"},
        },
        update_mode=GridUpdateMode.SELECTION_CHANGED if selectable else GridUpdateMode.NO_UPDATE,
    )
    if not selectable:
        return None
    return _first_selected(response.selected_rows)
