# glossary_bot/normalizer.py


def normalize_key(key) -> str:
    """
    Canonical form used for case-insensitive lookups.
    The stored/displayed text keeps its original casing.
    """
    if not key:
        return ""
    return str(key).strip().lower()


def normalize_value(value) -> str:
    if not value:
        return ""
    return str(value).strip().lower()


def is_valid_key(key) -> bool:
    return len(normalize_key(key)) > 0


def is_valid_value(value) -> bool:
    return len(normalize_value(value)) > 0
