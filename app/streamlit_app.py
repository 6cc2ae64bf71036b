"""Streamlit UI for the Fotix product image and content kit.

Features:
- Multi-file upload of product photos (PNG, JPG, GIF, WEBP)
- Storefront ("site") and catalog ("erp") renditions at configurable sizes
- Google Gemini product title, description and SEO tags per photo
- Marketing campaign ideas on demand
- Per-image downloads and a ZIP of the whole batch
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import streamlit as st
from dotenv import load_dotenv

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fotix.config import GEMINI_KEY_ENV_VARS, Settings, resolve_api_key
from fotix.content_generator import ProductContentGenerator, to_data_uri
from fotix.errors import FotixError
from fotix.models import MAX_DIMENSION, MIN_DIMENSION, ProcessedUpload, TargetSpec
from fotix.pipeline import build_zip, detect_mime_type, run_batch

load_dotenv()
settings = Settings.from_env()
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)

# ============================================================================
# Page config
# ============================================================================

st.set_page_config(
    page_title="Fotix - Image & Content Kit",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ============================================================================
# Session state initialization
# ============================================================================


def init_session_state():
    defaults = {
        "results": [],
        "uploads": {},
        "campaign_ideas": {},
        "description": "",
    }
    for key, val in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = val


init_session_state()

# ============================================================================
# Sidebar: Global Configuration
# ============================================================================

with st.sidebar:
    st.markdown("### Configuration")

    gemini_key_input = st.text_input(
        "Gemini API Key",
        value="",
        type="password",
        help="Optional: leave blank to use GEMINI_API_KEY, CHAVE_API_GEMINI or GOOGLE_API_KEY from your environment/.env.",
    )
    gemini_key = resolve_api_key(gemini_key_input, *GEMINI_KEY_ENV_VARS)
    if gemini_key_input:
        st.caption("Using Gemini key from sidebar input.")
    elif gemini_key:
        st.caption("Using Gemini key from environment (.env).")

    gemini_model = st.text_input("Gemini model", value=settings.gemini_model)
    enable_ai = st.toggle("Generate AI content", value=True)

    generator = ProductContentGenerator(api_key=gemini_key, model=gemini_model)
    if enable_ai and not generator.available:
        st.warning("No Gemini key configured: only images will be processed.")

# ============================================================================
# Upload form
# ============================================================================

st.title("Image & Content Kit")
st.caption("Upload your product photos and let the AI handle the rest.")

with st.form("process_form"):
    form_col1, form_col2 = st.columns(2)

    with form_col1:
        uploaded_files = st.file_uploader(
            "Product images",
            type=["png", "jpg", "jpeg", "gif", "webp"],
            accept_multiple_files=True,
            help=f"PNG, JPG, GIF or WEBP up to {settings.max_upload_mb}MB each.",
        )
        description = st.text_area(
            "Product description (optional)",
            placeholder="e.g., 100% cotton t-shirt, regular fit, screen-printed logo",
            height=120,
        )

    with form_col2:
        with st.expander("Website image", expanded=True):
            site_w = st.number_input(
                "Width (px)", MIN_DIMENSION, MAX_DIMENSION, settings.site_width, key="site_w"
            )
            site_h = st.number_input(
                "Height (px)", MIN_DIMENSION, MAX_DIMENSION, settings.site_height, key="site_h"
            )
        with st.expander("ERP image", expanded=True):
            erp_w = st.number_input(
                "Width (px)", MIN_DIMENSION, MAX_DIMENSION, settings.erp_width, key="erp_w"
            )
            erp_h = st.number_input(
                "Height (px)", MIN_DIMENSION, MAX_DIMENSION, settings.erp_height, key="erp_h"
            )

    submitted = st.form_submit_button("Process", type="primary", use_container_width=True)

if submitted:
    if not uploaded_files:
        st.error("No image selected. Please upload an image to process.")
    else:
        uploads: list[tuple[str, bytes, str | None]] = []
        for f in uploaded_files:
            data = f.getvalue()
            if len(data) > settings.max_upload_bytes:
                st.error(
                    f"{f.name} is too large. Please upload an image smaller than {settings.max_upload_mb}MB."
                )
                continue
            uploads.append((f.name, data, f.type))

        targets = [
            TargetSpec.site(int(site_w), int(site_h)),
            TargetSpec.erp(int(erp_w), int(erp_h)),
        ]
        active_generator = generator if enable_ai and generator.available else None

        if uploads:
            with st.spinner(f"Processing {len(uploads)} image(s)..."):
                results = run_batch(uploads, targets, generator=active_generator, description=description)

            st.session_state["results"] = results
            # Keyed by upload index: two uploads may share a filename
            st.session_state["uploads"] = dict(enumerate(uploads))
            st.session_state["campaign_ideas"] = {}
            st.session_state["description"] = description

            failed = [r for r in results if not r.ok]
            if failed:
                for r in failed:
                    st.error(f"Processing failed for {r.filename}: {r.error}")
            else:
                st.toast("Success! Your images and AI content are ready.")

# ============================================================================
# Results
# ============================================================================


def render_result(result: ProcessedUpload, index: int) -> None:
    st.subheader(result.filename)
    if not result.ok:
        st.error(result.error)
        return

    img_col, text_col = st.columns([3, 2])

    with img_col:
        cols = st.columns(max(len(result.variants), 1))
        for col, variant in zip(cols, result.variants):
            with col:
                st.image(variant.data, use_container_width=True)
                st.markdown(f"**{variant.target}**: `{variant.name}`")
                st.caption(f"{variant.width}x{variant.height} | {variant.size_label}")
                st.download_button(
                    "Download",
                    data=variant.data,
                    file_name=variant.name,
                    mime=variant.mime_type,
                    key=f"dl_{index}_{variant.name}_{variant.target}",
                    use_container_width=True,
                )

    with text_col:
        content = result.content
        if content is None:
            st.info("AI content was not generated for this image.")
        else:
            st.markdown("**Title**")
            st.code(content.title, language=None)
            st.markdown("**Description**")
            st.code(content.description, language=None, wrap_lines=True)
            st.markdown("**SEO Tags**")
            st.code(", ".join(content.seo_tags), language=None, wrap_lines=True)

        upload = st.session_state["uploads"].get(index)
        if upload is not None and generator.available:
            if st.button("Suggest campaign ideas", key=f"ideas_{index}"):
                with st.spinner("Gemini is brainstorming..."):
                    try:
                        ideas = generator.suggest_campaign_ideas(
                            to_data_uri(upload[1], detect_mime_type(*upload)),
                            st.session_state["description"],
                        )
                        st.session_state["campaign_ideas"][index] = ideas
                    except FotixError as e:
                        st.error(str(e))
                        logger.exception("Campaign idea generation error")

        ideas = st.session_state["campaign_ideas"].get(index)
        if ideas:
            st.markdown("**Campaign ideas**")
            for idea in ideas:
                st.markdown(f"- {idea}")


results = st.session_state["results"]
if results:
    st.divider()
    st.header("Results")

    for i, result in enumerate(results):
        render_result(result, i)
        st.divider()

    if any(r.variants for r in results):
        st.download_button(
            label="Download All (ZIP)",
            data=build_zip(results),
            file_name="fotix_images.zip",
            mime="application/zip",
            use_container_width=True,
        )
elif not submitted:
    st.info("Upload at least one product image to begin.")
