from dataclasses import dataclass

SYSTEM_PRINCIPAL_ID = "system"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller for the lifetime of one request."""

    user_id: str
    session_id: str
    is_system: bool = False


def system_principal() -> Principal:
    return Principal(
        user_id=SYSTEM_PRINCIPAL_ID,
        session_id=SYSTEM_PRINCIPAL_ID,
        is_system=True,
    )
