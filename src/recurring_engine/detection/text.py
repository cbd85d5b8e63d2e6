def normalize(description: str | None) -> str:
    """Comparison key for a description: trimmed and case-folded, ``""`` when blank."""
    if not description:
        return ""
    return description.strip().lower()
