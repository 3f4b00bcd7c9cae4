from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ...dependencies import get_db, ParametrosPagina
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_catalogo import RolService
from ..respuestas import respuesta, paginado

router = APIRouter(prefix="/roles", tags=["roles"])


class RolIn(BaseModel):
    nombre_rol: str = Field(..., min_length=1, max_length=50)
    descripcion: str | None = Field(None, max_length=500)
    estado_rol: bool = True

class RolUpdate(BaseModel):
    nombre_rol: str | None = Field(None, min_length=1, max_length=50)
    descripcion: str | None = Field(None, max_length=500)
    estado_rol: bool | None = None

class RolOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre_rol: str
    descripcion: str | None
    estado_rol: bool


@router.get("")
def listar_roles(pag: ParametrosPagina = Depends(), db: Session = Depends(get_db)):
    items, total = RolService(UnitOfWork(db)).listar(pag.page, pag.limit)
    return paginado([RolOut.model_validate(r) for r in items], pag.page, pag.limit, total)


@router.get("/{rol_id}")
def obtener_rol(rol_id: int, db: Session = Depends(get_db)):
    return respuesta(RolOut.model_validate(RolService(UnitOfWork(db)).obtener(rol_id)))


@router.post("", status_code=201)
def crear_rol(payload: RolIn, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        rol = RolService(uow).crear(payload.model_dump())
    return respuesta(RolOut.model_validate(rol), message="Rol creado correctamente")


@router.put("/{rol_id}")
def actualizar_rol(rol_id: int, payload: RolUpdate, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        rol = RolService(uow).actualizar(rol_id, payload.model_dump(exclude_unset=True))
    return respuesta(RolOut.model_validate(rol), message="Rol actualizado correctamente")


@router.delete("/{rol_id}")
def eliminar_rol(rol_id: int, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        RolService(uow).eliminar(rol_id)
    return respuesta(message="Rol eliminado correctamente")
