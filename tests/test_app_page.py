"""Streamlit page tests driven through streamlit.testing.v1.AppTest."""

from __future__ import annotations

from pathlib import Path

from streamlit.testing.v1 import AppTest

APP_PATH = Path(__file__).resolve().parent.parent / "fe" / "app.py"


def _page_script():
    # Runs as a standalone Streamlit script: everything it needs is defined here.
    # "picked" in session_state names the file the user has chosen, "outcome"
    # decides what the fake client returns.
    import io

    import streamlit as st
    from PIL import Image

    from ocr_relay_utils.schemas import ExtractionResult
    from ocr_uploader import page

    class PickedFile:
        def __init__(self, name):
            buf = io.BytesIO()
            Image.new("RGB", (8, 8), color=255).save(buf, format="PNG")
            self._data = buf.getvalue()
            self.name = name
            self.type = "image/png"
            self.size = len(self._data)
            self.file_id = f"id-{name}"

        def getvalue(self):
            return self._data

    class RecordingClient:
        def extract_text(self, upload, on_progress=None):
            st.session_state["calls"] = st.session_state.get("calls", 0) + 1
            seen = []
            for value in (10, 20, 40, 70, 100):
                on_progress(value)
                seen.append(value)
            st.session_state["progress_seen"] = seen
            if st.session_state.get("outcome") == "error":
                return ExtractionResult(error="Error: Error processing image with OCR service",
                                        details="The API key is invalid")
            return ExtractionResult(text=f"text of {upload.filename}")

    page.init_state()
    name = st.session_state.get("picked")
    uploaded = PickedFile(name) if name else None
    page.render(uploaded, RecordingClient)


def _app():
    at = AppTest.from_function(_page_script, default_timeout=30)
    return at


def test_extracted_text_is_shown():
    at = _app()
    at.session_state["picked"] = "first.png"
    at.run()

    at.button(key="extract").click().run()

    assert not at.exception
    assert at.session_state["calls"] == 1
    assert at.session_state["progress_seen"] == [10, 20, 40, 70, 100]
    assert at.code[0].value == "text of first.png"
    assert len(at.error) == 0


def test_new_upload_clears_previous_result():
    at = _app()
    at.session_state["picked"] = "first.png"
    at.run()
    at.button(key="extract").click().run()
    assert at.code[0].value == "text of first.png"

    at.session_state["picked"] = "second.png"
    at.run()

    assert not at.exception
    assert len(at.code) == 0
    assert len(at.error) == 0
    assert at.session_state["result"] is None
    assert at.session_state["calls"] == 1


def test_same_upload_keeps_result_across_reruns():
    at = _app()
    at.session_state["picked"] = "first.png"
    at.run()
    at.button(key="extract").click().run()

    at.run()

    assert at.code[0].value == "text of first.png"


def test_error_result_is_rendered_with_st_error():
    at = _app()
    at.session_state["picked"] = "first.png"
    at.session_state["outcome"] = "error"
    at.run()

    at.button(key="extract").click().run()

    assert not at.exception
    assert len(at.error) == 1
    assert at.error[0].value == "Error: Error processing image with OCR service"
    assert len(at.code) == 0


def test_clear_button_drops_result():
    at = _app()
    at.session_state["picked"] = "first.png"
    at.run()
    at.button(key="extract").click().run()

    at.button(key="clear").click().run()

    assert not at.exception
    assert at.session_state["result"] is None
    assert at.session_state["upload_key"] == 1
    assert len(at.code) == 0


def test_no_upload_shows_nothing():
    at = _app()
    at.run()

    assert not at.exception
    assert len(at.button) == 0
    assert len(at.code) == 0


def test_app_script_renders_empty_page():
    at = AppTest.from_file(str(APP_PATH), default_timeout=30)
    at.run()

    assert not at.exception
    assert at.title[0].value == "Image to Text"
    assert len(at.error) == 0
