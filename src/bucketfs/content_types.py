"""Content type lookup by file extension."""

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    "json": "application/json",
    "txt": "text/plain",
    "md": "text/markdown",
    "html": "text/html",
    "css": "text/css",
    "js": "application/javascript",
    "ts": "application/typescript",
    "xml": "application/xml",
    "yaml": "application/yaml",
    "yml": "application/yaml",
    "csv": "text/csv",
    "pdf": "application/pdf",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
}


def content_type_for(path: str) -> str:
    """Infer a content type from the extension of the last path segment."""
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return DEFAULT_CONTENT_TYPE
    extension = name.rsplit(".", 1)[-1].lower()
    return CONTENT_TYPES.get(extension, DEFAULT_CONTENT_TYPE)
