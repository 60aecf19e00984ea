"""Key namespacing shared by every redikit component."""


def prefix_key(prefix: str, key: str) -> str:
    """Prefix a key with a namespace to avoid collisions between components.

    Example:
        >>> prefix_key("rl", "api:login")
        'rl:api:login'
        >>> prefix_key("cache", "user:42")
        'cache:user:42'
    """
    return f"{prefix}:{key}"


def as_str(value) -> str:
    """Decode a Redis reply that may be bytes (``decode_responses=False``)."""
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)
