from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ...dependencies import get_db, ParametrosPagina
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import TipoMovimientoOut
from ...application.services_catalogo import TipoMovimientoService
from ...domain.enums import AfectaStock
from ..respuestas import respuesta, paginado

router = APIRouter(prefix="/tipos-movimiento", tags=["tipos-movimiento"])


class TipoMovimientoIn(BaseModel):
    nombre_tipo: str = Field(..., min_length=1, max_length=100)
    descripcion: str | None = Field(None, max_length=500)
    afecta_stock: AfectaStock
    estado_tipo: bool = True

class TipoMovimientoUpdate(BaseModel):
    nombre_tipo: str | None = Field(None, min_length=1, max_length=100)
    descripcion: str | None = Field(None, max_length=500)
    afecta_stock: AfectaStock | None = None
    estado_tipo: bool | None = None


@router.get("")
def listar_tipos(
    pag: ParametrosPagina = Depends(),
    afecta_stock: Optional[AfectaStock] = None,
    estado_tipo: Optional[bool] = None,
    db: Session = Depends(get_db),
):
    items, total = TipoMovimientoService(UnitOfWork(db)).listar(
        pag.page, pag.limit, filtros={"afecta_stock": afecta_stock, "estado_tipo": estado_tipo}
    )
    return paginado([TipoMovimientoOut.model_validate(t) for t in items], pag.page, pag.limit, total)


@router.get("/{tipo_id}")
def obtener_tipo(tipo_id: int, db: Session = Depends(get_db)):
    return respuesta(TipoMovimientoOut.model_validate(TipoMovimientoService(UnitOfWork(db)).obtener(tipo_id)))


@router.post("", status_code=201)
def crear_tipo(payload: TipoMovimientoIn, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        tipo = TipoMovimientoService(uow).crear(payload.model_dump())
    return respuesta(TipoMovimientoOut.model_validate(tipo), message="Tipo de movimiento creado correctamente")


@router.put("/{tipo_id}")
def actualizar_tipo(tipo_id: int, payload: TipoMovimientoUpdate, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        tipo = TipoMovimientoService(uow).actualizar(tipo_id, payload.model_dump(exclude_unset=True))
    return respuesta(TipoMovimientoOut.model_validate(tipo), message="Tipo de movimiento actualizado correctamente")


@router.delete("/{tipo_id}")
def eliminar_tipo(tipo_id: int, db: Session = Depends(get_db)):
    """Rechazado mientras existan movimientos o razones que lo referencien."""
    uow = UnitOfWork(db)
    with uow.transaction():
        TipoMovimientoService(uow).eliminar(tipo_id)
    return respuesta(message="Tipo de movimiento eliminado correctamente")
