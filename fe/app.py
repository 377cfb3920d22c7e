# fe/app.py
import streamlit as st
from dotenv import load_dotenv

from ocr_relay_utils import utils
from ocr_uploader import UploadClient, page

# load settings from a .env file, if present
load_dotenv()
utils.setup_logging()

# ============================================================
# Page setup
# ============================================================
st.set_page_config(page_title="Image to Text", page_icon="📄")


@st.cache_resource
def get_client() -> UploadClient:
    return UploadClient.from_env()


page.init_state()

st.title("Image to Text")
st.caption("Upload an image (JPG, PNG or WEBP, up to 5MB) and extract its text.")

uploaded = st.file_uploader(
    "Drop an image here or browse",
    type=["jpg", "jpeg", "png", "webp"],
    key=f"uploader_{st.session_state['upload_key']}",
)

page.render(uploaded, get_client)
