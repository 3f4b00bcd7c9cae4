"""
API de Stock por Depósito

La cantidad se modifica normalmente vía movimientos; la edición directa existe
para ajustes e inventario inicial y también dispara la evaluación de alertas.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...dependencies import get_db, ParametrosPagina
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import StockDepositoIn, StockDepositoUpdate, StockDepositoOut
from ...application.services_stock import StockService
from ..respuestas import respuesta, paginado

router = APIRouter(prefix="/stock-depositos", tags=["stock-depositos"])


@router.get("")
def listar_stock(
    pag: ParametrosPagina = Depends(),
    deposito: Optional[int] = None,
    insumo: Optional[int] = None,
    alertasCriticas: bool = False,
    stockBajo: bool = False,
    db: Session = Depends(get_db),
):
    items, total = StockService(UnitOfWork(db)).listar(
        pag.page, pag.limit,
        id_deposito=deposito, id_insumo=insumo,
        alertas_criticas=alertasCriticas, stock_bajo=stockBajo,
    )
    return paginado([StockDepositoOut.model_validate(s) for s in items], pag.page, pag.limit, total)


@router.get("/{stock_id}")
def obtener_stock(stock_id: int, db: Session = Depends(get_db)):
    return respuesta(StockDepositoOut.model_validate(StockService(UnitOfWork(db)).obtener(stock_id)))


@router.post("", status_code=201)
def registrar_stock(payload: StockDepositoIn, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        fila = StockService(uow).registrar(payload)
    return respuesta(StockDepositoOut.model_validate(fila), message="Stock registrado correctamente")


@router.put("/{stock_id}")
def actualizar_stock(stock_id: int, payload: StockDepositoUpdate, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        fila = StockService(uow).actualizar(stock_id, payload)
    return respuesta(StockDepositoOut.model_validate(fila), message="Stock actualizado correctamente")


@router.delete("/{stock_id}")
def eliminar_stock(stock_id: int, db: Session = Depends(get_db)):
    """Solo filas con cantidad 0; sus alertas se borran en la misma transacción."""
    uow = UnitOfWork(db)
    with uow.transaction():
        StockService(uow).eliminar(stock_id)
    return respuesta(message="Stock eliminado correctamente")
