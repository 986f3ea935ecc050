from urllib.parse import urlsplit

DEFAULT_RESOURCE_TYPE = "default"


def _split(resource_id: str):
    parts = urlsplit(resource_id)
    if not parts.scheme or not parts.netloc:
        return None
    return parts


def is_uri(resource_id: str) -> bool:
    return _split(resource_id) is not None


def extract_server_location(resource_id: str) -> str:
    parts = _split(resource_id)
    if parts is None:
        return resource_id
    return f"{parts.scheme}://{parts.netloc}"


def extract_resource_type(resource_id: str) -> str:
    parts = _split(resource_id)
    if parts is None:
        return resource_id
    if len(parts.path) <= 1:
        return DEFAULT_RESOURCE_TYPE
    return parts.path.split("/")[-1] or DEFAULT_RESOURCE_TYPE
