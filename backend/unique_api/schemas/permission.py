from pydantic import BaseModel


class PermissionsResponse(BaseModel):
    """Effective permissions of a user.

    ``permissions_bit`` is the unsigned 32-bit mask (0..2**32-1). Roles whose
    stored value has bit 31 set still report a positive number here; the
    stored column is signed and is not sign-extended into this field.
    """

    permissions_bit: int
    permissions_text: list[str]


class PermissionDefinition(BaseModel):
    name: str
    bit: int
