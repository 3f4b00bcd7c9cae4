from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...dependencies import get_db, ParametrosPagina
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import DetalleMovimientoCreate, DetalleMovimientoUpdate, DetalleMovimientoOut
from ...application.services_movimientos import MovimientoService
from ..respuestas import respuesta, paginado

router = APIRouter(prefix="/detalles-movimiento", tags=["detalles-movimiento"])


@router.get("")
def listar_detalles(
    pag: ParametrosPagina = Depends(),
    id_movimiento: Optional[int] = None,
    id_insumo: Optional[int] = None,
    db: Session = Depends(get_db),
):
    items, total = MovimientoService(UnitOfWork(db)).listar_detalles(
        pag.page, pag.limit, id_movimiento=id_movimiento, id_insumo=id_insumo
    )
    return paginado([DetalleMovimientoOut.model_validate(d) for d in items], pag.page, pag.limit, total)


@router.get("/{detalle_id}")
def obtener_detalle(detalle_id: int, db: Session = Depends(get_db)):
    detalle = MovimientoService(UnitOfWork(db)).obtener_detalle(detalle_id)
    return respuesta(DetalleMovimientoOut.model_validate(detalle))


@router.post("", status_code=201)
def crear_detalle(payload: DetalleMovimientoCreate, db: Session = Depends(get_db)):
    """Solo sobre movimientos que todavía no están COMPLETADO."""
    uow = UnitOfWork(db)
    with uow.transaction():
        detalle = MovimientoService(uow).crear_detalle(payload)
    return respuesta(DetalleMovimientoOut.model_validate(detalle), message="Detalle creado correctamente")


@router.put("/{detalle_id}")
def actualizar_detalle(detalle_id: int, payload: DetalleMovimientoUpdate, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        detalle = MovimientoService(uow).actualizar_detalle(detalle_id, payload)
    return respuesta(DetalleMovimientoOut.model_validate(detalle), message="Detalle actualizado correctamente")


@router.delete("/{detalle_id}")
def eliminar_detalle(detalle_id: int, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        MovimientoService(uow).eliminar_detalle(detalle_id)
    return respuesta(message="Detalle eliminado correctamente")
