import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES, SESSION_COOKIE_NAME
from clinic.db import get_db
from clinic.errors import Conflict, Forbidden, InvalidCredentials, Unauthorized
from clinic.models import Patient, User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
# el navegador manda la cookie; el header Bearer queda para clientes de API
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login", auto_error=False)

WRONG_PASSWORD_MESSAGE = "Contraseña incorrecta."
UNKNOWN_EMAIL_MESSAGE = "El correo no está registrado."
EMAIL_TAKEN_MESSAGE = "El correo ya está en uso."


@dataclass(frozen=True)
class RequestContext:
    """Identidad autenticada de la petición; se pasa a cada servicio."""
    user_id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def verify_password(plain_password, password_hash):
    return pwd_context.verify(plain_password, password_hash)

def hash_password(password):
    if not isinstance(password, (str, bytes)):
        raise TypeError("Password must be a string or bytes.")
    return pwd_context.hash(password)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


async def get_user_by_email(db: AsyncSession, email: str):
    res = await db.execute(select(User).where(User.email == email))
    return res.scalar_one_or_none()


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    """Distingue correo desconocido de contraseña incorrecta."""
    user = await get_user_by_email(db, email.strip().lower())
    if user is None:
        logger.info("Login rejected: unknown email")
        raise InvalidCredentials(UNKNOWN_EMAIL_MESSAGE)
    if not verify_password(password.strip(), user.password_hash):
        logger.info("Login rejected: wrong password for user_id=%s", user.id)
        raise InvalidCredentials(WRONG_PASSWORD_MESSAGE)
    logger.info("Login ok: user_id=%s role=%s", user.id, user.role)
    return user


async def register_patient(
    db: AsyncSession,
    *,
    first: str,
    last: str,
    age: int,
    phone: str,
    email: str,
    password: str,
) -> int:
    """Crea la cuenta (rol patient) y su perfil de paciente en una sola transacción."""
    email = email.strip().lower()
    if await get_user_by_email(db, email):
        raise Conflict(EMAIL_TAKEN_MESSAGE)

    try:
        res = await db.execute(
            insert(User)
            .values(email=email, password_hash=hash_password(password.strip()), role="patient")
            .returning(User.id)
        )
        user_id = res.scalar_one()
        await db.execute(
            insert(Patient).values(
                user_id=user_id,
                first_name=first.strip(),
                last_name=last.strip(),
                age=age,
                phone=phone.strip(),
            )
        )
        await db.commit()
    except IntegrityError:
        # otro registro con el mismo correo ganó la carrera
        await db.rollback()
        raise Conflict(EMAIL_TAKEN_MESSAGE)
    logger.info("Registered patient account user_id=%s", user_id)
    return user_id


def _extract_token(request: Request, bearer: Optional[str]) -> Optional[str]:
    return request.cookies.get(SESSION_COOKIE_NAME) or bearer


async def get_current_user(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> RequestContext:
    """
    Valida la cookie de sesión (JWT) y devuelve el contexto de la petición.
    Es el guardián de todas las rutas protegidas.
    """
    token = _extract_token(request, bearer)
    if not token:
        raise Unauthorized()
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise Unauthorized("Sesión inválida o expirada.")

    # el rol puede haber cambiado desde el login: se lee de la BD
    res = await db.execute(select(User).where(User.id == user_id))
    user = res.scalar_one_or_none()
    if user is None:
        raise Unauthorized("Sesión inválida o expirada.")
    return RequestContext(user_id=user.id, email=user.email, role=user.role)


async def require_admin(ctx: RequestContext = Depends(get_current_user)) -> RequestContext:
    if not ctx.is_admin:
        raise Forbidden()
    return ctx
