from .uploader import UploadClient, optimize_image, validate_upload

__all__ = ["UploadClient", "optimize_image", "validate_upload"]
