"""
Modelos del Dominio de Inventario
==================================

- StockDeposito (stock por depósito e insumo)
- TipoMovimiento / RazonMovimiento
- MovimientoInventario con sus DetalleMovimiento
- AlertaStock
"""
from sqlalchemy import Integer, String, Boolean, ForeignKey, Numeric, Date, DateTime, Text, Enum, UniqueConstraint, CheckConstraint, Index, text
from sqlalchemy.orm import relationship, Mapped, mapped_column
from datetime import datetime, date
from decimal import Decimal
from ..db import Base
from .enums import AfectaStock, EstadoMovimiento, TipoAlerta, EstadoAlerta


class StockDeposito(Base):
    """
    Stock por Insumo y Depósito.
    Una sola fila por par (depósito, insumo). La cantidad solo cambia al completar
    un movimiento o por edición directa del stock.
    """
    __tablename__ = "stock_depositos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    id_deposito: Mapped[int] = mapped_column(ForeignKey("depositos.id"), index=True)
    id_insumo: Mapped[int] = mapped_column(ForeignKey("insumos.id"), index=True)
    cantidad_actual: Mapped[int] = mapped_column(Integer, default=0)
    stock_minimo: Mapped[int] = mapped_column(Integer, default=0)
    stock_critico: Mapped[int] = mapped_column(Integer, default=0)
    fecha_ultimo_mov: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("id_deposito", "id_insumo", name="uq_stock_deposito_insumo"),
        CheckConstraint("stock_critico <= stock_minimo", name="ck_stock_critico_menor_minimo"),
    )

    deposito = relationship("Deposito", back_populates="stocks")
    insumo = relationship("Insumo", back_populates="stocks")


class TipoMovimiento(Base):
    __tablename__ = "tipos_movimiento"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nombre_tipo: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    descripcion: Mapped[str | None] = mapped_column(String(500), nullable=True)
    afecta_stock: Mapped[AfectaStock] = mapped_column(Enum(AfectaStock, name="afecta_stock"))
    estado_tipo: Mapped[bool] = mapped_column(Boolean, default=True)

    razones = relationship("RazonMovimiento", back_populates="tipo_movimiento")


class RazonMovimiento(Base):
    __tablename__ = "razones_movimiento"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nombre_razon: Mapped[str] = mapped_column(String(100))
    descripcion: Mapped[str | None] = mapped_column(String(500), nullable=True)
    id_tipo_movimiento: Mapped[int] = mapped_column(ForeignKey("tipos_movimiento.id"), index=True)

    tipo_movimiento = relationship("TipoMovimiento", back_populates="razones")


class MovimientoInventario(Base):
    """
    Cabecera de un movimiento (ingreso, egreso o transferencia).
    Se crea PENDIENTE o COMPLETADO; el paso a COMPLETADO aplica el stock una sola vez.
    """
    __tablename__ = "movimientos_inventario"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    fecha_movimiento: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    id_deposito_origen: Mapped[int | None] = mapped_column(ForeignKey("depositos.id"), nullable=True, index=True)
    id_deposito_destino: Mapped[int | None] = mapped_column(ForeignKey("depositos.id"), nullable=True, index=True)
    id_tipo_movimiento: Mapped[int] = mapped_column(ForeignKey("tipos_movimiento.id"), index=True)
    id_razon_movimiento: Mapped[int | None] = mapped_column(ForeignKey("razones_movimiento.id"), nullable=True)
    id_usuario: Mapped[int] = mapped_column(ForeignKey("usuarios.id"), index=True)
    id_orden_compra: Mapped[int | None] = mapped_column(ForeignKey("ordenes_compra.id"), nullable=True, index=True)
    numero_comprobante: Mapped[str | None] = mapped_column(String(50), nullable=True)
    observaciones: Mapped[str | None] = mapped_column(Text, nullable=True)
    estado_movimiento: Mapped[EstadoMovimiento] = mapped_column(
        Enum(EstadoMovimiento, name="estado_movimiento"), default=EstadoMovimiento.PENDIENTE, index=True
    )

    deposito_origen = relationship("Deposito", foreign_keys=[id_deposito_origen])
    deposito_destino = relationship("Deposito", foreign_keys=[id_deposito_destino])
    tipo_movimiento = relationship("TipoMovimiento")
    razon_movimiento = relationship("RazonMovimiento")
    usuario = relationship("Usuario")
    orden_compra = relationship("OrdenCompra", back_populates="movimientos")
    detalles = relationship(
        "DetalleMovimiento",
        back_populates="movimiento",
        cascade="all, delete-orphan",
        order_by="DetalleMovimiento.id",
    )


class DetalleMovimiento(Base):
    __tablename__ = "detalles_movimiento"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    id_movimiento: Mapped[int] = mapped_column(ForeignKey("movimientos_inventario.id", ondelete="CASCADE"), index=True)
    id_insumo: Mapped[int] = mapped_column(ForeignKey("insumos.id"), index=True)
    cantidad: Mapped[int] = mapped_column(Integer)
    costo_unitario: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    lote: Mapped[str | None] = mapped_column(String(50), nullable=True)
    fecha_vencimiento: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        UniqueConstraint("id_movimiento", "id_insumo", "lote", name="uq_detalle_movimiento_insumo_lote"),
        CheckConstraint("cantidad > 0", name="ck_detalle_movimiento_cantidad"),
    )

    movimiento = relationship("MovimientoInventario", back_populates="detalles")
    insumo = relationship("Insumo")


class AlertaStock(Base):
    """
    Alerta de stock mínimo, crítico o vencimiento próximo.
    Como máximo una alerta ACTIVA por (insumo, depósito, tipo).
    """
    __tablename__ = "alertas_stock"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tipo_alerta: Mapped[TipoAlerta] = mapped_column(Enum(TipoAlerta, name="tipo_alerta"))
    mensaje: Mapped[str] = mapped_column(String(500))
    id_insumo: Mapped[int] = mapped_column(ForeignKey("insumos.id"), index=True)
    id_deposito: Mapped[int] = mapped_column(ForeignKey("depositos.id"), index=True)
    id_usuario_asignado: Mapped[int | None] = mapped_column(ForeignKey("usuarios.id"), nullable=True)
    estado_alerta: Mapped[EstadoAlerta] = mapped_column(
        Enum(EstadoAlerta, name="estado_alerta"), default=EstadoAlerta.ACTIVA, index=True
    )
    fecha_alerta: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    fecha_resolucion: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index(
            "uq_alerta_activa_insumo_deposito_tipo",
            "id_insumo", "id_deposito", "tipo_alerta",
            unique=True,
            sqlite_where=text("estado_alerta = 'ACTIVA'"),
            postgresql_where=text("estado_alerta = 'ACTIVA'"),
        ),
    )

    insumo = relationship("Insumo")
    deposito = relationship("Deposito")
    usuario_asignado = relationship("Usuario")
