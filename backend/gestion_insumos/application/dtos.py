from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal

from ..domain.enums import (
    AfectaStock, EstadoMovimiento, TipoAlerta, EstadoAlerta, EstadoOrden, NivelStock
)
from .calculos import nivel_stock, porcentaje_stock, necesita_reposicion

# ===== PAGINACIÓN =====

class Paginacion(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int

    @classmethod
    def de(cls, page: int, limit: int, total: int) -> "Paginacion":
        return cls(page=page, limit=limit, total=total, totalPages=(total + limit - 1) // limit if limit else 0)

# ===== MOVIMIENTOS =====

class DetalleMovimientoIn(BaseModel):
    id_insumo: int = Field(..., gt=0, description="ID de insumo")
    cantidad: int = Field(..., gt=0, description="La cantidad debe ser positiva")
    costo_unitario: Optional[Decimal] = Field(None, ge=0)
    lote: Optional[str] = Field(None, max_length=50)
    fecha_vencimiento: Optional[date] = None

class MovimientoIn(BaseModel):
    id_deposito_origen: Optional[int] = Field(None, gt=0)
    id_deposito_destino: Optional[int] = Field(None, gt=0)
    id_tipo_movimiento: int = Field(..., gt=0)
    id_razon_movimiento: Optional[int] = Field(None, gt=0)
    id_usuario: int = Field(..., gt=0, description="Usuario que registra el movimiento")
    id_orden_compra: Optional[int] = Field(None, gt=0)
    numero_comprobante: Optional[str] = Field(None, max_length=50)
    observaciones: Optional[str] = None
    estado_movimiento: EstadoMovimiento = EstadoMovimiento.PENDIENTE
    detalles: List[DetalleMovimientoIn] = Field(..., min_length=1, description="Debe incluir al menos un detalle")

class MovimientoUpdate(BaseModel):
    numero_comprobante: Optional[str] = Field(None, max_length=50)
    observaciones: Optional[str] = None
    estado_movimiento: Optional[EstadoMovimiento] = None

class DetalleMovimientoCreate(DetalleMovimientoIn):
    id_movimiento: int = Field(..., gt=0)

class DetalleMovimientoUpdate(BaseModel):
    cantidad: Optional[int] = Field(None, gt=0)
    costo_unitario: Optional[Decimal] = Field(None, ge=0)
    lote: Optional[str] = Field(None, max_length=50)
    fecha_vencimiento: Optional[date] = None

class DetalleMovimientoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    id_movimiento: int
    id_insumo: int
    cantidad: int
    costo_unitario: Optional[Decimal] = None
    lote: Optional[str] = None
    fecha_vencimiento: Optional[date] = None

class MovimientoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    fecha_movimiento: datetime
    id_deposito_origen: Optional[int] = None
    id_deposito_destino: Optional[int] = None
    id_tipo_movimiento: int
    id_razon_movimiento: Optional[int] = None
    id_usuario: int
    id_orden_compra: Optional[int] = None
    numero_comprobante: Optional[str] = None
    observaciones: Optional[str] = None
    estado_movimiento: EstadoMovimiento
    detalles: List[DetalleMovimientoOut] = []

class MovimientoConTotalesOut(MovimientoOut):
    total_insumos: int = 0
    total_cantidad: int = 0
    costo_total: Decimal = Decimal("0")

# ===== STOCK =====

class StockDepositoIn(BaseModel):
    id_deposito: int = Field(..., gt=0)
    id_insumo: int = Field(..., gt=0)
    cantidad_actual: int = Field(0, ge=0, description="La cantidad no puede ser negativa")
    stock_minimo: int = Field(0, ge=0)
    stock_critico: int = Field(0, ge=0)

    @model_validator(mode="after")
    def validar_umbrales(self):
        if self.stock_critico > self.stock_minimo:
            raise ValueError("El stock crítico debe ser menor o igual al stock mínimo")
        return self

class StockDepositoUpdate(BaseModel):
    cantidad_actual: Optional[int] = Field(None, ge=0, description="La cantidad actual no puede ser negativa")
    stock_minimo: Optional[int] = Field(None, ge=0)
    stock_critico: Optional[int] = Field(None, ge=0)
    fecha_ultimo_mov: Optional[datetime] = None

    @model_validator(mode="after")
    def validar_umbrales(self):
        if self.stock_minimo is not None and self.stock_critico is not None and self.stock_critico > self.stock_minimo:
            raise ValueError("El stock crítico debe ser menor o igual al stock mínimo")
        return self

class StockDepositoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    id_deposito: int
    id_insumo: int
    cantidad_actual: int
    stock_minimo: int
    stock_critico: int
    fecha_ultimo_mov: Optional[datetime] = None

    @computed_field
    @property
    def estado_stock(self) -> NivelStock:
        return nivel_stock(self.cantidad_actual, self.stock_minimo, self.stock_critico)

    @computed_field
    @property
    def porcentaje_stock(self) -> int:
        return porcentaje_stock(self.cantidad_actual, self.stock_minimo)

    @computed_field
    @property
    def necesita_reposicion(self) -> bool:
        return necesita_reposicion(self.cantidad_actual, self.stock_minimo)

# ===== ALERTAS =====

class AlertaIn(BaseModel):
    tipo_alerta: TipoAlerta
    mensaje: str = Field(..., min_length=1, max_length=500)
    id_insumo: int = Field(..., gt=0)
    id_deposito: int = Field(..., gt=0)
    id_usuario_asignado: Optional[int] = Field(None, gt=0)
    estado_alerta: EstadoAlerta = EstadoAlerta.ACTIVA

class AlertaUpdate(BaseModel):
    estado_alerta: Optional[EstadoAlerta] = None
    id_usuario_asignado: Optional[int] = Field(None, gt=0)
    fecha_resolucion: Optional[datetime] = None

class AlertaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tipo_alerta: TipoAlerta
    mensaje: str
    id_insumo: int
    id_deposito: int
    id_usuario_asignado: Optional[int] = None
    estado_alerta: EstadoAlerta
    fecha_alerta: datetime
    fecha_resolucion: Optional[datetime] = None

# ===== ÓRDENES DE COMPRA =====

class DetalleOrdenIn(BaseModel):
    id_insumo: int = Field(..., gt=0)
    cantidad_solicitada: int = Field(..., gt=0, description="La cantidad debe ser positiva")
    precio_unitario: Decimal = Field(..., gt=0, description="El precio debe ser positivo")

class OrdenCompraIn(BaseModel):
    numero_orden: str = Field(..., min_length=1, max_length=50)
    id_proveedor: int = Field(..., gt=0)
    id_usuario_solicita: int = Field(..., gt=0)
    fecha_entrega_estimada: Optional[date] = None
    estado_orden: EstadoOrden = EstadoOrden.PENDIENTE
    observaciones: Optional[str] = None
    detalles: List[DetalleOrdenIn] = Field(..., min_length=1, description="Debe incluir al menos un detalle")

class OrdenCompraUpdate(BaseModel):
    fecha_entrega_estimada: Optional[date] = None
    estado_orden: Optional[EstadoOrden] = None
    observaciones: Optional[str] = None

class DetalleOrdenCompraIn(BaseModel):
    id_orden_compra: int = Field(..., gt=0)
    id_insumo: int = Field(..., gt=0)
    cantidad_solicitada: int = Field(..., gt=0, description="La cantidad solicitada debe ser mayor a 0")
    cantidad_recibida: int = Field(0, ge=0, description="La cantidad recibida no puede ser negativa")
    precio_unitario: Decimal = Field(..., gt=0, description="El precio unitario debe ser mayor a 0")

class DetalleOrdenCompraUpdate(BaseModel):
    cantidad_solicitada: Optional[int] = Field(None, gt=0)
    cantidad_recibida: Optional[int] = Field(None, ge=0)
    precio_unitario: Optional[Decimal] = Field(None, gt=0)

class DetalleOrdenCompraOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    id_orden_compra: int
    id_insumo: int
    cantidad_solicitada: int
    cantidad_recibida: int
    precio_unitario: Decimal
    subtotal: Decimal

class OrdenCompraOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    numero_orden: str
    id_proveedor: int
    id_usuario_solicita: int
    fecha_orden: datetime
    fecha_entrega_estimada: Optional[date] = None
    estado_orden: EstadoOrden
    observaciones: Optional[str] = None
    total_orden: Decimal
    detalles: List[DetalleOrdenCompraOut] = []

class EstadisticasOrden(BaseModel):
    total_items: int
    cantidad_total_solicitada: int
    cantidad_total_recibida: int
    porcentaje_recibido: int
    items_pendientes: int
    total_movimientos: int
    total_facturas: int

class OrdenCompraDetalladaOut(OrdenCompraOut):
    estadisticas: EstadisticasOrden

# ===== TIPOS DE MOVIMIENTO =====

class TipoMovimientoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre_tipo: str
    descripcion: Optional[str] = None
    afecta_stock: AfectaStock
    estado_tipo: bool
