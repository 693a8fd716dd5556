"""Path sanitization helpers."""

import re


def sanitize_path_component(component: str) -> str:
    """
    Sanitize a string for use as a filesystem path component.

    Example:
        >>> sanitize_path_component("models/veo-3.1")
        'models_veo-3.1'
        >>> sanitize_path_component("text to video")
        'text_to_video'
    """
    return re.sub(r"[^a-zA-Z0-9._-]", "_", component)
