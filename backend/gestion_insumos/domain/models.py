"""
Modelos de catálogo
===================

Entidades de referencia del back office de insumos:
- Categoria, Proveedor, Insumo
- Deposito
- Usuario, Rol
"""
from sqlalchemy import Integer, String, Boolean, ForeignKey, Numeric, Date, DateTime, Text
from sqlalchemy.orm import relationship, Mapped, mapped_column
from datetime import datetime, date
from decimal import Decimal
from ..db import Base


class Categoria(Base):
    __tablename__ = "categorias"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nombre_categoria: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    descripcion_categoria: Mapped[str | None] = mapped_column(String(500), nullable=True)
    estado_categoria: Mapped[bool] = mapped_column(Boolean, default=True)

    insumos = relationship("Insumo", back_populates="categoria")


class Proveedor(Base):
    __tablename__ = "proveedores"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nombre_proveedor: Mapped[str] = mapped_column(String(200))
    cuit_proveedor: Mapped[str] = mapped_column(String(20), unique=True, index=True)  # Identificación fiscal
    direccion_proveedor: Mapped[str] = mapped_column(String(500))
    telefono_proveedor: Mapped[str | None] = mapped_column(String(30), nullable=True)
    correo_proveedor: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contacto_responsable: Mapped[str | None] = mapped_column(String(200), nullable=True)
    condiciones_pago: Mapped[str | None] = mapped_column(String(200), nullable=True)
    estado_proveedor: Mapped[bool] = mapped_column(Boolean, default=True)
    observaciones: Mapped[str | None] = mapped_column(Text, nullable=True)

    insumos = relationship("Insumo", back_populates="proveedor")


class Insumo(Base):
    """
    Insumo (artículo de inventario).
    No se borra físicamente: DELETE pasa estado_insumo a False.
    """
    __tablename__ = "insumos"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nombre_insumo: Mapped[str] = mapped_column(String(200), index=True)
    descripcion_insumo: Mapped[str | None] = mapped_column(String(500), nullable=True)
    costo_unitario: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    fecha_expiracion: Mapped[date | None] = mapped_column(Date, nullable=True)
    id_categoria: Mapped[int | None] = mapped_column(ForeignKey("categorias.id"), nullable=True, index=True)
    id_proveedor: Mapped[int | None] = mapped_column(ForeignKey("proveedores.id"), nullable=True, index=True)
    estado_insumo: Mapped[bool] = mapped_column(Boolean, default=True)

    categoria = relationship("Categoria", back_populates="insumos")
    proveedor = relationship("Proveedor", back_populates="insumos")
    stocks = relationship("StockDeposito", back_populates="insumo")


class Deposito(Base):
    """Depósito / almacén físico"""
    __tablename__ = "depositos"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nom_deposito: Mapped[str] = mapped_column(String(200))
    tel_deposito: Mapped[str | None] = mapped_column(String(30), nullable=True)
    dir_deposito: Mapped[str | None] = mapped_column(String(500), nullable=True)
    responsable: Mapped[str | None] = mapped_column(String(200), nullable=True)
    estado_deposito: Mapped[bool] = mapped_column(Boolean, default=True)

    stocks = relationship("StockDeposito", back_populates="deposito")


class Rol(Base):
    __tablename__ = "roles"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nombre_rol: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    descripcion: Mapped[str | None] = mapped_column(String(500), nullable=True)
    estado_rol: Mapped[bool] = mapped_column(Boolean, default=True)

    usuarios = relationship("Usuario", back_populates="rol")


class Usuario(Base):
    __tablename__ = "usuarios"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    nombre: Mapped[str | None] = mapped_column(String(100), nullable=True)
    apellido: Mapped[str | None] = mapped_column(String(100), nullable=True)
    id_rol: Mapped[int | None] = mapped_column(ForeignKey("roles.id"), nullable=True, index=True)
    activo: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    rol = relationship("Rol", back_populates="usuarios")
