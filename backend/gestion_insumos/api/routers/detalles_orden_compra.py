"""
API de Detalles de Orden de Compra

Cada alta, modificación o baja recalcula total_orden en la misma transacción.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...dependencies import get_db, ParametrosPagina
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import DetalleOrdenCompraIn, DetalleOrdenCompraUpdate, DetalleOrdenCompraOut
from ...application.services_compras import OrdenCompraService
from ..respuestas import respuesta, paginado

router = APIRouter(prefix="/detalles-orden-compra", tags=["detalles-orden-compra"])


@router.get("")
def listar_detalles_orden(
    pag: ParametrosPagina = Depends(),
    id_orden_compra: Optional[int] = None,
    db: Session = Depends(get_db),
):
    items, total = OrdenCompraService(UnitOfWork(db)).listar_detalles(pag.page, pag.limit, id_orden_compra=id_orden_compra)
    return paginado([DetalleOrdenCompraOut.model_validate(d) for d in items], pag.page, pag.limit, total)


@router.get("/{detalle_id}")
def obtener_detalle_orden(detalle_id: int, db: Session = Depends(get_db)):
    detalle = OrdenCompraService(UnitOfWork(db)).obtener_detalle(detalle_id)
    return respuesta(DetalleOrdenCompraOut.model_validate(detalle))


@router.post("", status_code=201)
def crear_detalle_orden(payload: DetalleOrdenCompraIn, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        detalle = OrdenCompraService(uow).crear_detalle(payload)
    return respuesta(DetalleOrdenCompraOut.model_validate(detalle), message="Detalle de orden creado correctamente")


@router.put("/{detalle_id}")
def actualizar_detalle_orden(detalle_id: int, payload: DetalleOrdenCompraUpdate, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        detalle = OrdenCompraService(uow).actualizar_detalle(detalle_id, payload)
    return respuesta(DetalleOrdenCompraOut.model_validate(detalle), message="Detalle de orden actualizado correctamente")


@router.delete("/{detalle_id}")
def eliminar_detalle_orden(detalle_id: int, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        OrdenCompraService(uow).eliminar_detalle(detalle_id)
    return respuesta(message="Detalle de orden eliminado correctamente")
