from . import errors, postprocess, schemas, utils

__all__ = ["errors", "postprocess", "schemas", "utils"]
