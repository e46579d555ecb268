"""
Render a snippet's content fields into the single text blob that gets embedded.
Field order and labels are fixed so that equal content always yields equal text.
"""

from collections.abc import Mapping
from typing import Any

TAG_DELIMITER = ", "


def snippet_to_text(fields: Mapping[str, Any]) -> str:
    """Title, language, description, tags and code, in that order. Missing fields render empty."""
    tags = fields.get("tags")
    tags_text = TAG_DELIMITER.join(str(t) for t in tags) if isinstance(tags, (list, tuple)) else ""
    return (
        f"Title: {fields.get('title') or ''}\n"
        f"Language: {fields.get('language') or ''}\n"
        f"Description: {fields.get('description') or ''}\n"
        f"Tags: {tags_text}\n"
        f"Code:\n{fields.get('code') or ''}"
    )
