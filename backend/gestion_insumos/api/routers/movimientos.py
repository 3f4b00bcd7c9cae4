"""
API de Movimientos de Inventario
================================

Ingresos, egresos y transferencias entre depósitos. Completar un movimiento
(al crearlo o al pasarlo a COMPLETADO) impacta el stock en la misma transacción.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...dependencies import get_db, ParametrosPagina
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import MovimientoIn, MovimientoUpdate, MovimientoOut, MovimientoConTotalesOut
from ...application.calculos import totales_movimiento
from ...application.services_movimientos import MovimientoService
from ...domain.enums import EstadoMovimiento
from ..respuestas import respuesta, paginado

router = APIRouter(prefix="/movimientos-inventario", tags=["movimientos-inventario"])


def _con_totales(movimiento) -> MovimientoConTotalesOut:
    base = MovimientoOut.model_validate(movimiento).model_dump()
    return MovimientoConTotalesOut(**base, **totales_movimiento(movimiento.detalles))


@router.get("")
def listar_movimientos(
    pag: ParametrosPagina = Depends(),
    deposito: Optional[int] = None,
    tipoMovimiento: Optional[int] = None,
    estado: Optional[EstadoMovimiento] = None,
    fechaDesde: Optional[datetime] = None,
    fechaHasta: Optional[datetime] = None,
    db: Session = Depends(get_db),
):
    """Lista movimientos; `deposito` filtra por origen o destino."""
    items, total = MovimientoService(UnitOfWork(db)).listar(
        pag.page, pag.limit,
        id_deposito=deposito, id_tipo=tipoMovimiento, estado=estado,
        desde=fechaDesde, hasta=fechaHasta,
    )
    return paginado([_con_totales(m) for m in items], pag.page, pag.limit, total)


@router.get("/{movimiento_id}")
def obtener_movimiento(movimiento_id: int, db: Session = Depends(get_db)):
    movimiento = MovimientoService(UnitOfWork(db)).obtener(movimiento_id)
    return respuesta(_con_totales(movimiento))


@router.post("", status_code=201)
def crear_movimiento(payload: MovimientoIn, db: Session = Depends(get_db)):
    """
    Crea cabecera y detalles en una sola transacción.
    Si llega COMPLETADO, aplica el stock antes de confirmar.
    """
    uow = UnitOfWork(db)
    with uow.transaction():
        movimiento = MovimientoService(uow).crear(payload)
    return respuesta(_con_totales(movimiento), message="Movimiento creado correctamente")


@router.put("/{movimiento_id}")
def actualizar_movimiento(movimiento_id: int, payload: MovimientoUpdate, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        movimiento = MovimientoService(uow).actualizar(movimiento_id, payload)
    return respuesta(_con_totales(movimiento), message="Movimiento actualizado correctamente")


@router.delete("/{movimiento_id}")
def eliminar_movimiento(movimiento_id: int, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        MovimientoService(uow).eliminar(movimiento_id)
    return respuesta(message="Movimiento eliminado correctamente")
