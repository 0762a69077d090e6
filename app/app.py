import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import os, json
import streamlit as st
import pandas as pd
from pydantic import ValidationError

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from floodsim.config import get_config
from floodsim.reference.catalogs import get_reference_data
from floodsim.schemas.contracts import FeatureCategory
from floodsim.schemas.inputs import BuildingDesignInput
from floodsim.simulation.orchestrator import SimulationOrchestrator


def _bridge_streamlit_secrets_to_env(keys=("OPENAI_API_KEY", "FLOODSIM_RECOMMENDATION_MODEL")):
    try:
        # Accessing st.secrets can raise FileNotFoundError if no secrets.toml exists.
        secrets = st.secrets
        for key in keys:
            val = secrets.get(key, None)
            if val is not None and val != "":
                os.environ[key] = str(val)
    except FileNotFoundError:
        # No secrets.toml in local dev; .env (dotenv) will cover it.
        pass
    except Exception as e:
        print("[secrets->env] Skipped bridging Streamlit secrets:", repr(e))


def _score_caption(score: int) -> str:
    if score >= 80:
        return "Excellent resilience!"
    if score >= 50:
        return "Moderate resilience, consider improvements."
    return "Low resilience, significant adaptations needed."


_bridge_streamlit_secrets_to_env()

cfg = get_config()
reference = get_reference_data(cfg.get("data_dir"))
features = reference.features

st.set_page_config(page_title="Flood Resilience Simulator", layout="wide")
st.title("Flood Resilience Simulator")
st.caption(
    f"Scores a building design through {cfg['target_year']} under the "
    f"'{cfg['climate_scenario']}' scenario and prices AI recommendations."
)

# ---- LLM status ----
with st.sidebar:
    from floodsim.utils.llm_status import get_llm_status

    llm_info = get_llm_status()
    st.markdown("### LLM Status")
    if llm_info["api_key_set"]:
        st.success("API key set")
    else:
        st.error("No API key; recommendations will be a placeholder")
    st.write(f"**Model:** {llm_info['model']}")
    st.write(f"**Last Call:** {llm_info['last_call'] or '-'}")
    st.write(f"**Duration:** {llm_info['last_duration'] or '-'}s")
    if llm_info["last_success"] is True:
        st.success("Last call succeeded")
    elif llm_info["last_success"] is False:
        st.error(f"Last call failed: {llm_info.get('last_error') or 'unknown error'}")
    else:
        st.info("No calls yet")

# ---- Design form ----
with st.form("design"):
    foundation = st.selectbox("Foundation type", features.names(FeatureCategory.FOUNDATION))
    elevation = st.number_input(
        "Elevation of lowest floor (ft above datum)", value=12.0, step=0.5, format="%.1f"
    )
    materials = st.multiselect("Materials in flood-vulnerable areas", features.names(FeatureCategory.MATERIALS))
    mitigation = st.multiselect(
        "Flood mitigation features",
        features.names(FeatureCategory.MITIGATION) + features.names(FeatureCategory.SITE_DRAINAGE),
    )
    submitted = st.form_submit_button("Run simulation")

if submitted:
    try:
        design = BuildingDesignInput(
            foundationType=foundation,
            elevationHeight=elevation,
            materials=materials,
            floodMitigationFeatures=mitigation,
        ).to_design()
    except ValidationError as e:
        for err in e.errors():
            st.error(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}")
        st.stop()

    with st.spinner("Simulating..."):
        result = SimulationOrchestrator(reference=reference, config=cfg).run(design)

    st.sidebar.caption(f"Run: `{result.id[:8]}`")

    st.metric(f"Overall Resilience Score ({cfg['target_year']})", f"{result.overall_resilience_score}%")
    st.write(_score_caption(result.overall_resilience_score))

    st.subheader("Performance Timeline")
    df = pd.DataFrame(
        [
            {
                "Year": e.year,
                "Projected Flood Level (ft)": e.projected_flood_level_feet,
                "Resilience Score (%)": e.resilience_score,
                "Flood Depth (in)": e.flood_depth_inches,
            }
            for e in result.performance_timeline
        ]
    )
    st.dataframe(df, hide_index=True, use_container_width=True)
    if not df.empty:
        st.line_chart(df.set_index("Year")[["Resilience Score (%)"]])

    st.subheader("Adaptive Recommendations")
    if result.adaptive_recommendations:
        for rec in result.adaptive_recommendations:
            st.markdown(f"- {rec}")
    else:
        st.write("No specific recommendations generated for this design.")

    cba = result.cost_benefit_analysis
    st.subheader("Cost-Benefit Analysis")
    st.markdown(f"**{cba.roi_description}**")
    col1, col2 = st.columns(2)
    with col1:
        st.markdown("**Upfront Cost Breakdown**")
        for line in cba.upfront_cost_breakdown:
            st.write(line)
    with col2:
        st.markdown("**Long-Term Savings Breakdown**")
        for line in cba.long_term_savings_breakdown:
            st.write(line)

    st.download_button(
        "Download result (JSON)",
        data=json.dumps(result.to_dict(), indent=2),
        file_name=f"simulation_{result.id[:8]}.json",
        mime="application/json",
    )
