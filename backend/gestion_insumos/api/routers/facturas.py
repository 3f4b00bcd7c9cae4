from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy.orm import Session

from ...dependencies import get_db, ParametrosPagina
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_catalogo import FacturaService
from ...domain.enums import EstadoFactura
from ..respuestas import respuesta, paginado

router = APIRouter(prefix="/facturas", tags=["facturas"])


class FacturaIn(BaseModel):
    numero_factura: str = Field(..., min_length=1, max_length=50)
    fecha_emision: date
    fecha_vencimiento: date
    monto_total: Decimal = Field(..., gt=0, description="El monto debe ser positivo")
    id_proveedor: int = Field(..., gt=0)
    id_orden_compra: int | None = Field(None, gt=0)
    estado_factura: EstadoFactura = EstadoFactura.PENDIENTE
    observaciones: str | None = None

    @model_validator(mode="after")
    def validar_fechas(self):
        if self.fecha_vencimiento < self.fecha_emision:
            raise ValueError("La fecha de vencimiento no puede ser anterior a la de emisión")
        return self

class FacturaUpdate(BaseModel):
    numero_factura: str | None = Field(None, min_length=1, max_length=50)
    fecha_emision: date | None = None
    fecha_vencimiento: date | None = None
    monto_total: Decimal | None = Field(None, gt=0)
    id_orden_compra: int | None = Field(None, gt=0)
    estado_factura: EstadoFactura | None = None
    observaciones: str | None = None

class FacturaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    numero_factura: str
    fecha_emision: date
    fecha_vencimiento: date
    monto_total: Decimal
    id_proveedor: int
    id_orden_compra: int | None
    estado_factura: EstadoFactura
    observaciones: str | None


@router.get("")
def listar_facturas(
    pag: ParametrosPagina = Depends(),
    proveedor: Optional[int] = None,
    ordenCompra: Optional[int] = None,
    estado: Optional[EstadoFactura] = None,
    vencidas: bool = False,
    fechaDesde: Optional[date] = None,
    fechaHasta: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """`vencidas` devuelve solo las PENDIENTE cuyo vencimiento ya pasó; las fechas filtran por emisión."""
    items, total = FacturaService(UnitOfWork(db)).listar(
        pag.page, pag.limit,
        filtros={"id_proveedor": proveedor, "id_orden_compra": ordenCompra, "estado_factura": estado},
        vencidas=vencidas, desde=fechaDesde, hasta=fechaHasta,
    )
    return paginado([FacturaOut.model_validate(f) for f in items], pag.page, pag.limit, total)


@router.get("/{factura_id}")
def obtener_factura(factura_id: int, db: Session = Depends(get_db)):
    return respuesta(FacturaOut.model_validate(FacturaService(UnitOfWork(db)).obtener(factura_id)))


@router.post("", status_code=201)
def crear_factura(payload: FacturaIn, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        factura = FacturaService(uow).crear(payload.model_dump())
    return respuesta(FacturaOut.model_validate(factura), message="Factura creada correctamente")


@router.put("/{factura_id}")
def actualizar_factura(factura_id: int, payload: FacturaUpdate, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        factura = FacturaService(uow).actualizar(factura_id, payload.model_dump(exclude_unset=True))
    return respuesta(FacturaOut.model_validate(factura), message="Factura actualizada correctamente")


@router.delete("/{factura_id}")
def eliminar_factura(factura_id: int, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        FacturaService(uow).eliminar(factura_id)
    return respuesta(message="Factura eliminada correctamente")
