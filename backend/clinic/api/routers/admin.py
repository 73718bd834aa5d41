from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.db import get_db
from clinic.errors import Conflict
from clinic.schemas import MessageResponse, RoleUpdate
from clinic.services import admin_service
from clinic.services.auth_service import RequestContext, require_admin

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users")
async def list_users(
    nombre: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    rol: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    admin: RequestContext = Depends(require_admin),
):
    data = await admin_service.list_users(db, name=nombre, email=email, role=rol)
    return {"success": True, "data": data}


@router.patch("/users/{user_id}/role", response_model=MessageResponse)
async def change_role(
    user_id: int,
    req: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    admin: RequestContext = Depends(require_admin),
):
    await admin_service.change_role(db, user_id, req.rol_nuevo)
    return MessageResponse(message=f"Rol actualizado a {req.rol_nuevo}.")


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: RequestContext = Depends(require_admin),
):
    if user_id == admin.user_id:
        raise Conflict("No puedes eliminar tu propia cuenta.")
    await admin_service.delete_user(db, user_id)
    return MessageResponse(message="Usuario eliminado correctamente.")
