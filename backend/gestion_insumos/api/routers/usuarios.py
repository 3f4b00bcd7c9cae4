"""
API de Usuarios

Solo datos de referencia: quién registra movimientos y solicita órdenes.
La autenticación queda fuera de este servicio.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from sqlalchemy.orm import Session

from ...dependencies import get_db, ParametrosPagina
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_catalogo import UsuarioService
from ..respuestas import respuesta, paginado

router = APIRouter(prefix="/usuarios", tags=["usuarios"])


class UsuarioIn(BaseModel):
    email: EmailStr
    nombre: str | None = Field(None, max_length=100)
    apellido: str | None = Field(None, max_length=100)
    id_rol: int | None = Field(None, gt=0)
    activo: bool = True

    @field_validator("email", mode="after")
    @classmethod
    def normalizar_email(cls, v: str) -> str:
        return v.lower()

class UsuarioUpdate(BaseModel):
    email: EmailStr | None = None
    nombre: str | None = Field(None, max_length=100)
    apellido: str | None = Field(None, max_length=100)
    id_rol: int | None = Field(None, gt=0)
    activo: bool | None = None

    @field_validator("email", mode="after")
    @classmethod
    def normalizar_email(cls, v: str | None) -> str | None:
        return v.lower() if v else v

class UsuarioOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    nombre: str | None
    apellido: str | None
    id_rol: int | None
    activo: bool
    created_at: datetime | None = None


@router.get("")
def listar_usuarios(
    pag: ParametrosPagina = Depends(),
    id_rol: Optional[int] = None,
    activo: Optional[bool] = None,
    buscar: Optional[str] = None,
    db: Session = Depends(get_db),
):
    items, total = UsuarioService(UnitOfWork(db)).listar(
        pag.page, pag.limit, filtros={"id_rol": id_rol, "activo": activo}, buscar=("email", buscar)
    )
    return paginado([UsuarioOut.model_validate(u) for u in items], pag.page, pag.limit, total)


@router.get("/{usuario_id}")
def obtener_usuario(usuario_id: int, db: Session = Depends(get_db)):
    return respuesta(UsuarioOut.model_validate(UsuarioService(UnitOfWork(db)).obtener(usuario_id)))


@router.post("", status_code=201)
def crear_usuario(payload: UsuarioIn, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        usuario = UsuarioService(uow).crear(payload.model_dump())
    return respuesta(UsuarioOut.model_validate(usuario), message="Usuario creado correctamente")


@router.put("/{usuario_id}")
def actualizar_usuario(usuario_id: int, payload: UsuarioUpdate, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        usuario = UsuarioService(uow).actualizar(usuario_id, payload.model_dump(exclude_unset=True))
    return respuesta(UsuarioOut.model_validate(usuario), message="Usuario actualizado correctamente")


@router.delete("/{usuario_id}")
def eliminar_usuario(usuario_id: int, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        UsuarioService(uow).eliminar(usuario_id)
    return respuesta(message="Usuario eliminado correctamente")
