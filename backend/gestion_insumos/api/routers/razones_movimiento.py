from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ...dependencies import get_db, ParametrosPagina
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_catalogo import RazonMovimientoService
from ..respuestas import respuesta, paginado

router = APIRouter(prefix="/razones-movimiento", tags=["razones-movimiento"])


class RazonMovimientoIn(BaseModel):
    nombre_razon: str = Field(..., min_length=1, max_length=100)
    descripcion: str | None = Field(None, max_length=500)
    id_tipo_movimiento: int = Field(..., gt=0)

class RazonMovimientoUpdate(BaseModel):
    nombre_razon: str | None = Field(None, min_length=1, max_length=100)
    descripcion: str | None = Field(None, max_length=500)
    id_tipo_movimiento: int | None = Field(None, gt=0)

class RazonMovimientoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre_razon: str
    descripcion: str | None
    id_tipo_movimiento: int


@router.get("")
def listar_razones(
    pag: ParametrosPagina = Depends(),
    id_tipo_movimiento: Optional[int] = None,
    db: Session = Depends(get_db),
):
    items, total = RazonMovimientoService(UnitOfWork(db)).listar(
        pag.page, pag.limit, filtros={"id_tipo_movimiento": id_tipo_movimiento}
    )
    return paginado([RazonMovimientoOut.model_validate(r) for r in items], pag.page, pag.limit, total)


@router.get("/{razon_id}")
def obtener_razon(razon_id: int, db: Session = Depends(get_db)):
    return respuesta(RazonMovimientoOut.model_validate(RazonMovimientoService(UnitOfWork(db)).obtener(razon_id)))


@router.post("", status_code=201)
def crear_razon(payload: RazonMovimientoIn, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        razon = RazonMovimientoService(uow).crear(payload.model_dump())
    return respuesta(RazonMovimientoOut.model_validate(razon), message="Razón de movimiento creada correctamente")


@router.put("/{razon_id}")
def actualizar_razon(razon_id: int, payload: RazonMovimientoUpdate, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        razon = RazonMovimientoService(uow).actualizar(razon_id, payload.model_dump(exclude_unset=True))
    return respuesta(RazonMovimientoOut.model_validate(razon), message="Razón de movimiento actualizada correctamente")


@router.delete("/{razon_id}")
def eliminar_razon(razon_id: int, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        RazonMovimientoService(uow).eliminar(razon_id)
    return respuesta(message="Razón de movimiento eliminada correctamente")
