from fastapi import APIRouter, Depends

from ..auth.permissions import KNOWN_PERMISSIONS
from ..dependencies import get_principal
from ..schemas.common import DataResponse
from ..schemas.permission import PermissionDefinition

router = APIRouter(
    prefix="/permissions",
    tags=["permissions"],
    dependencies=[Depends(get_principal)],
)


@router.get("", response_model=DataResponse[list[PermissionDefinition]])
async def list_permissions():
    """Catalog of named permission bits in declaration order."""
    return {
        "data": [
            PermissionDefinition(name=name.value, bit=bit)
            for bit, name in KNOWN_PERMISSIONS
        ]
    }
