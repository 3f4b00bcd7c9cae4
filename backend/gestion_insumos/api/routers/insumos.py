"""
API de Insumos

DELETE es una baja lógica (estado_insumo = False). `stock_critico` lista las
filas de stock en o por debajo del mínimo con el nombre del insumo y del depósito.
"""
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, computed_field
from sqlalchemy.orm import Session

from ...dependencies import get_db, ParametrosPagina
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.calculos import dias_para_vencimiento
from ...application.dtos import StockDepositoOut
from ...application.services_catalogo import InsumoService
from ...application.services_stock import StockService
from ..respuestas import respuesta, paginado

router = APIRouter(prefix="/insumos", tags=["insumos"])


class InsumoIn(BaseModel):
    nombre_insumo: str = Field(..., min_length=1, max_length=200)
    descripcion_insumo: str | None = Field(None, max_length=500)
    costo_unitario: Decimal = Field(..., gt=0, description="El costo debe ser positivo")
    fecha_expiracion: date | None = None
    id_categoria: int | None = Field(None, gt=0)
    id_proveedor: int | None = Field(None, gt=0)
    estado_insumo: bool = True

class InsumoUpdate(BaseModel):
    nombre_insumo: str | None = Field(None, min_length=1, max_length=200)
    descripcion_insumo: str | None = Field(None, max_length=500)
    costo_unitario: Decimal | None = Field(None, gt=0)
    fecha_expiracion: date | None = None
    id_categoria: int | None = Field(None, gt=0)
    id_proveedor: int | None = Field(None, gt=0)
    estado_insumo: bool | None = None

class InsumoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre_insumo: str
    descripcion_insumo: str | None
    costo_unitario: Decimal
    fecha_expiracion: date | None
    id_categoria: int | None
    id_proveedor: int | None
    estado_insumo: bool

    @computed_field
    @property
    def dias_para_vencimiento(self) -> int | None:
        return dias_para_vencimiento(self.fecha_expiracion)

class StockCriticoOut(StockDepositoOut):
    nombre_insumo: str
    nom_deposito: str


@router.get("")
def listar_insumos(
    pag: ParametrosPagina = Depends(),
    id_categoria: Optional[int] = None,
    id_proveedor: Optional[int] = None,
    estado_insumo: Optional[bool] = None,
    buscar: Optional[str] = None,
    db: Session = Depends(get_db),
):
    items, total = InsumoService(UnitOfWork(db)).listar(
        pag.page, pag.limit,
        filtros={"id_categoria": id_categoria, "id_proveedor": id_proveedor, "estado_insumo": estado_insumo},
        buscar=("nombre_insumo", buscar),
    )
    return paginado([InsumoOut.model_validate(i) for i in items], pag.page, pag.limit, total)


@router.get("/stock_critico")
def listar_stock_critico(id_deposito: Optional[int] = None, db: Session = Depends(get_db)):
    """Filas con cantidad_actual <= stock_minimo, de menor a mayor cantidad."""
    filas = StockService(UnitOfWork(db)).stock_critico(id_deposito)
    data = [
        StockCriticoOut(
            **StockDepositoOut.model_validate(f).model_dump(exclude={"estado_stock", "porcentaje_stock", "necesita_reposicion"}),
            nombre_insumo=f.insumo.nombre_insumo,
            nom_deposito=f.deposito.nom_deposito,
        )
        for f in filas
    ]
    return respuesta(data)


@router.get("/{insumo_id}")
def obtener_insumo(insumo_id: int, db: Session = Depends(get_db)):
    return respuesta(InsumoOut.model_validate(InsumoService(UnitOfWork(db)).obtener(insumo_id)))


@router.post("", status_code=201)
def crear_insumo(payload: InsumoIn, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        insumo = InsumoService(uow).crear(payload.model_dump())
    return respuesta(InsumoOut.model_validate(insumo), message="Insumo creado correctamente")


@router.put("/{insumo_id}")
def actualizar_insumo(insumo_id: int, payload: InsumoUpdate, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        insumo = InsumoService(uow).actualizar(insumo_id, payload.model_dump(exclude_unset=True))
    return respuesta(InsumoOut.model_validate(insumo), message="Insumo actualizado correctamente")


@router.delete("/{insumo_id}")
def eliminar_insumo(insumo_id: int, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        InsumoService(uow).eliminar(insumo_id)
    return respuesta(message="Insumo dado de baja correctamente")
