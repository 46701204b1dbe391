from __future__ import annotations

from printbridge.database import PrinterPreference, session_scope


# ============================================================================
# PRINTER PREFERENCE CRUD OPERATIONS
# ============================================================================


def get_preference(key: str) -> str | None:
    """Retrieve a stored preference value.

    Args:
        key: Preference key

    Returns:
        The stored value or None if the key is unknown
    """
    with session_scope() as session:
        preference = session.query(PrinterPreference).filter_by(key=key).first()
        return preference.value if preference else None


def set_preference(key: str, value: str) -> None:
    """Create or update a preference value.

    Args:
        key: Preference key
        value: Value to store
    """
    with session_scope() as session:
        preference = session.query(PrinterPreference).filter_by(key=key).first()
        if preference is None:
            session.add(PrinterPreference(key=key, value=value))
        else:
            preference.value = value

