from datetime import datetime, timezone

import bleach


def sanitize(text):
    """Strip all HTML tags from user input."""
    if text is None:
        return text
    return bleach.clean(text, tags=[], strip=True).strip()


def sanitize_list(values):
    """Sanitize each string in a list, dropping entries that end up empty."""
    if values is None:
        return None
    cleaned = (sanitize(v) for v in values)
    return [v for v in cleaned if v]


def utcnow():
    """Timezone-aware now; used as a Python-side column default."""
    return datetime.now(timezone.utc)
