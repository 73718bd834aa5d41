from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.config import ACCESS_TOKEN_EXPIRE_MINUTES, COOKIE_SECURE, SESSION_COOKIE_NAME
from clinic.db import get_db
from clinic.schemas import LoginRequest, LoginResponse, MessageResponse, RegisterRequest, UsuarioOut
from clinic.services.auth_service import (
    RequestContext, authenticate, create_access_token, get_current_user, register_patient,
)

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(req: LoginRequest, response: Response, db: AsyncSession = Depends(get_db)):
    user = await authenticate(db, req.email, req.password)
    access_token = create_access_token(data={"sub": str(user.id), "role": user.role})
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=access_token,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return LoginResponse(usuario=UsuarioOut(id=user.id, email=user.email, Rol=user.role))


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def register(req: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Alta de pacientes. Los mensajes de validación se devuelven tal cual."""
    await register_patient(
        db,
        first=req.first,
        last=req.last,
        age=req.age,
        phone=req.phone,
        email=req.email,
        password=req.password,
    )
    return MessageResponse(message="Cuenta creada correctamente.")


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE_NAME)
    return {"success": True}


@router.get("/me", response_model=LoginResponse)
async def me(ctx: RequestContext = Depends(get_current_user)):
    return LoginResponse(usuario=UsuarioOut(id=ctx.user_id, email=ctx.email, Rol=ctx.role))
