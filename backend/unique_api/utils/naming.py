def default_email(custom_id: str, domain: str, period: str | None = None) -> str:
    """Organization address for a user created without one."""
    if period:
        return f"{period}.{custom_id}@{domain}"
    return f"temp_{custom_id}@{domain}"


def is_temporary_email(email: str) -> bool:
    return "tmp_" in email
