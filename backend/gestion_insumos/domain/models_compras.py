"""
Modelos de Compras
==================

- OrdenCompra: total_orden siempre es la suma de los subtotales de sus detalles
- DetalleOrdenCompra
- Factura de proveedor
"""
from sqlalchemy import Integer, String, ForeignKey, Numeric, Date, DateTime, Text, Enum, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column
from datetime import datetime, date
from decimal import Decimal
from ..db import Base
from .enums import EstadoOrden, EstadoFactura


class OrdenCompra(Base):
    __tablename__ = "ordenes_compra"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    numero_orden: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    id_proveedor: Mapped[int] = mapped_column(ForeignKey("proveedores.id"), index=True)
    id_usuario_solicita: Mapped[int] = mapped_column(ForeignKey("usuarios.id"), index=True)
    fecha_orden: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    fecha_entrega_estimada: Mapped[date | None] = mapped_column(Date, nullable=True)
    estado_orden: Mapped[EstadoOrden] = mapped_column(
        Enum(EstadoOrden, name="estado_orden"), default=EstadoOrden.PENDIENTE, index=True
    )
    observaciones: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_orden: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))

    proveedor = relationship("Proveedor")
    usuario_solicita = relationship("Usuario")
    detalles = relationship(
        "DetalleOrdenCompra",
        back_populates="orden_compra",
        cascade="all, delete-orphan",
        order_by="DetalleOrdenCompra.id",
    )
    movimientos = relationship("MovimientoInventario", back_populates="orden_compra")
    facturas = relationship("Factura", back_populates="orden_compra")


class DetalleOrdenCompra(Base):
    __tablename__ = "detalles_orden_compra"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    id_orden_compra: Mapped[int] = mapped_column(ForeignKey("ordenes_compra.id", ondelete="CASCADE"), index=True)
    id_insumo: Mapped[int] = mapped_column(ForeignKey("insumos.id"), index=True)
    cantidad_solicitada: Mapped[int] = mapped_column(Integer)
    cantidad_recibida: Mapped[int] = mapped_column(Integer, default=0)
    precio_unitario: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    subtotal: Mapped[Decimal] = mapped_column(Numeric(14, 2))  # precio_unitario * cantidad_solicitada

    __table_args__ = (
        UniqueConstraint("id_orden_compra", "id_insumo", name="uq_detalle_orden_insumo"),
        CheckConstraint("cantidad_recibida <= cantidad_solicitada", name="ck_detalle_orden_recibida"),
    )

    orden_compra = relationship("OrdenCompra", back_populates="detalles")
    insumo = relationship("Insumo")


class Factura(Base):
    __tablename__ = "facturas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    numero_factura: Mapped[str] = mapped_column(String(50), index=True)
    fecha_emision: Mapped[date] = mapped_column(Date)
    fecha_vencimiento: Mapped[date] = mapped_column(Date)
    monto_total: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    id_proveedor: Mapped[int] = mapped_column(ForeignKey("proveedores.id"), index=True)
    id_orden_compra: Mapped[int | None] = mapped_column(ForeignKey("ordenes_compra.id"), nullable=True, index=True)
    estado_factura: Mapped[EstadoFactura] = mapped_column(
        Enum(EstadoFactura, name="estado_factura"), default=EstadoFactura.PENDIENTE
    )
    observaciones: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("id_proveedor", "numero_factura", name="uq_factura_proveedor_numero"),
    )

    proveedor = relationship("Proveedor")
    orden_compra = relationship("OrdenCompra", back_populates="facturas")
