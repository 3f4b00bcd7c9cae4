"""
API de Órdenes de Compra

GET por id devuelve la orden con sus detalles y las estadísticas de recepción.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...dependencies import get_db, ParametrosPagina
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import OrdenCompraIn, OrdenCompraUpdate, OrdenCompraOut, OrdenCompraDetalladaOut
from ...application.services_compras import OrdenCompraService
from ...domain.enums import EstadoOrden
from ..respuestas import respuesta, paginado

router = APIRouter(prefix="/ordenes-compra", tags=["ordenes-compra"])


def _detallada(service: OrdenCompraService, orden) -> OrdenCompraDetalladaOut:
    base = OrdenCompraOut.model_validate(orden).model_dump()
    return OrdenCompraDetalladaOut(**base, estadisticas=service.estadisticas(orden))


@router.get("")
def listar_ordenes(
    pag: ParametrosPagina = Depends(),
    estado: Optional[EstadoOrden] = None,
    proveedor: Optional[int] = None,
    fechaDesde: Optional[datetime] = None,
    fechaHasta: Optional[datetime] = None,
    db: Session = Depends(get_db),
):
    items, total = OrdenCompraService(UnitOfWork(db)).listar(
        pag.page, pag.limit, estado=estado, id_proveedor=proveedor, desde=fechaDesde, hasta=fechaHasta
    )
    return paginado([OrdenCompraOut.model_validate(o) for o in items], pag.page, pag.limit, total)


@router.get("/{orden_id}")
def obtener_orden(orden_id: int, db: Session = Depends(get_db)):
    service = OrdenCompraService(UnitOfWork(db))
    return respuesta(_detallada(service, service.obtener(orden_id)))


@router.post("", status_code=201)
def crear_orden(payload: OrdenCompraIn, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    service = OrdenCompraService(uow)
    with uow.transaction():
        orden = service.crear(payload)
    return respuesta(_detallada(service, orden), message="Orden de compra creada correctamente")


@router.put("/{orden_id}")
def actualizar_orden(orden_id: int, payload: OrdenCompraUpdate, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    service = OrdenCompraService(uow)
    with uow.transaction():
        orden = service.actualizar(orden_id, payload)
    return respuesta(_detallada(service, orden), message="Orden de compra actualizada correctamente")


@router.delete("/{orden_id}")
def eliminar_orden(orden_id: int, db: Session = Depends(get_db)):
    """Rechazada si la orden tiene movimientos o facturas asociadas."""
    uow = UnitOfWork(db)
    with uow.transaction():
        OrdenCompraService(uow).eliminar(orden_id)
    return respuesta(message="Orden de compra eliminada correctamente")
