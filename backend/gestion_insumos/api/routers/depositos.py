from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ...dependencies import get_db, ParametrosPagina
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import StockDepositoOut, AlertaOut
from ...application.services_catalogo import DepositoService
from ..respuestas import respuesta, paginado

router = APIRouter(prefix="/depositos", tags=["depositos"])


class DepositoIn(BaseModel):
    nom_deposito: str = Field(..., min_length=1, max_length=200)
    tel_deposito: str | None = Field(None, max_length=30)
    dir_deposito: str | None = Field(None, max_length=500)
    responsable: str | None = Field(None, max_length=200)
    estado_deposito: bool = True

class DepositoUpdate(BaseModel):
    nom_deposito: str | None = Field(None, min_length=1, max_length=200)
    tel_deposito: str | None = Field(None, max_length=30)
    dir_deposito: str | None = Field(None, max_length=500)
    responsable: str | None = Field(None, max_length=200)
    estado_deposito: bool | None = None

class DepositoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nom_deposito: str
    tel_deposito: str | None
    dir_deposito: str | None
    responsable: str | None
    estado_deposito: bool

class DepositoConDetalleOut(DepositoOut):
    stock: list[StockDepositoOut] | None = None
    alertas: list[AlertaOut] | None = None


@router.get("")
def listar_depositos(
    pag: ParametrosPagina = Depends(),
    estado: Optional[bool] = None,
    buscar: Optional[str] = None,
    includeStock: bool = False,
    includeAlertas: bool = False,
    db: Session = Depends(get_db),
):
    """includeStock agrega las filas de stock de cada depósito; includeAlertas, sus alertas ACTIVAS."""
    service = DepositoService(UnitOfWork(db))
    items, total = service.listar(
        pag.page, pag.limit, filtros={"estado_deposito": estado}, buscar=("nom_deposito", buscar)
    )
    if not (includeStock or includeAlertas):
        return paginado([DepositoOut.model_validate(d) for d in items], pag.page, pag.limit, total)

    ids = [d.id for d in items]
    stock = service.stock_por_deposito(ids) if includeStock else {}
    alertas = service.alertas_activas_por_deposito(ids) if includeAlertas else {}
    data = []
    for d in items:
        out = DepositoConDetalleOut.model_validate(d)
        if includeStock:
            out.stock = [StockDepositoOut.model_validate(s) for s in stock[d.id]]
        if includeAlertas:
            out.alertas = [AlertaOut.model_validate(a) for a in alertas[d.id]]
        data.append(out)
    return paginado(data, pag.page, pag.limit, total)


@router.get("/{deposito_id}")
def obtener_deposito(deposito_id: int, db: Session = Depends(get_db)):
    return respuesta(DepositoOut.model_validate(DepositoService(UnitOfWork(db)).obtener(deposito_id)))


@router.post("", status_code=201)
def crear_deposito(payload: DepositoIn, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        deposito = DepositoService(uow).crear(payload.model_dump())
    return respuesta(DepositoOut.model_validate(deposito), message="Depósito creado correctamente")


@router.put("/{deposito_id}")
def actualizar_deposito(deposito_id: int, payload: DepositoUpdate, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        deposito = DepositoService(uow).actualizar(deposito_id, payload.model_dump(exclude_unset=True))
    return respuesta(DepositoOut.model_validate(deposito), message="Depósito actualizado correctamente")


@router.delete("/{deposito_id}")
def eliminar_deposito(deposito_id: int, db: Session = Depends(get_db)):
    """Baja lógica: el depósito deja de aceptar movimientos pero conserva su historial."""
    uow = UnitOfWork(db)
    with uow.transaction():
        DepositoService(uow).eliminar(deposito_id)
    return respuesta(message="Depósito dado de baja correctamente")
