"""
Streamlit rendering for the upload page.

`uploaded` is whatever `st.file_uploader` returned (an object with `name`,
`type`, `size`, `file_id` and `getvalue()`), and `get_client` returns an
UploadClient. Both are passed in so the page can be driven without a browser.
"""
import os

import streamlit as st

from ocr_relay_utils.schemas import Upload

PROGRESS_TEXT = "Extracting text..."


def init_state():
    st.session_state.setdefault("result", None)             # ExtractionResult | None
    st.session_state.setdefault("upload_key", 0)            # bumped by "Clear" to reset the picker
    st.session_state.setdefault("upload_signature", None)   # identity of the file last seen


def reset_result():
    st.session_state["result"] = None


def _signature(uploaded):
    if uploaded is None:
        return None
    return (getattr(uploaded, "file_id", None), uploaded.name, uploaded.size)


def track_upload(uploaded):
    """Forget the previous result as soon as a different file is picked."""
    signature = _signature(uploaded)
    if signature != st.session_state["upload_signature"]:
        st.session_state["upload_signature"] = signature
        reset_result()


def render_upload(uploaded, get_client):
    raw = uploaded.getvalue()
    upload = Upload(data=raw, content_type=uploaded.type or "", filename=uploaded.name)
    st.image(raw)

    col_run, col_clear = st.columns(2)
    run_ocr = col_run.button("Extract text", type="primary", key="extract")
    if col_clear.button("Clear", key="clear"):
        st.session_state["upload_key"] += 1
        reset_result()
        st.rerun()

    if run_ocr:
        reset_result()
        bar = st.progress(0, text=PROGRESS_TEXT)
        result = get_client().extract_text(upload, on_progress=lambda v: bar.progress(v, text=PROGRESS_TEXT))
        bar.empty()
        st.session_state["result"] = result


def render_result(uploaded):
    result = st.session_state.get("result")
    if result is None:
        return
    if result.ok:
        st.subheader("Extracted text")
        st.code(result.text, language=None)
        name = os.path.splitext(uploaded.name)[0] if uploaded is not None else "extracted"
        st.download_button("Download TXT", result.text.encode(), file_name=f"{name}.txt", mime="text/plain")
    else:
        st.error(result.error)
        if result.details:
            with st.expander("Details"):
                st.write(result.details)


def render(uploaded, get_client):
    track_upload(uploaded)
    if uploaded is not None:
        render_upload(uploaded, get_client)
    render_result(uploaded)
