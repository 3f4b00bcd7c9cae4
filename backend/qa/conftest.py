"""
Configuración global de pytest.

Toda la suite corre contra SQLite en memoria (una conexión compartida vía
StaticPool); el esquema se crea y se destruye en cada test.
"""
import os
import sys
import tempfile
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace

import pytest

# Agregar backend/ al path para imports
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

# Antes de importar la configuración
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_DIR", str(Path(tempfile.gettempdir()) / "gestion_insumos_logs"))
os.environ["PERMITIR_STOCK_NEGATIVO"] = "false"

from gestion_insumos.db import Base, engine, SessionLocal, _import_all_models
from gestion_insumos.infrastructure.unit_of_work import UnitOfWork
from gestion_insumos.domain.models import Categoria, Proveedor, Insumo, Deposito, Rol, Usuario
from gestion_insumos.domain.models_inventario import TipoMovimiento, RazonMovimiento, StockDeposito
from gestion_insumos.domain.enums import AfectaStock


@pytest.fixture(autouse=True)
def esquema():
    _import_all_models()
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def uow(db):
    return UnitOfWork(db)


@pytest.fixture
def catalogo(db):
    """Datos de referencia mínimos: usuario, dos insumos, dos depósitos y tres tipos de movimiento."""
    rol = Rol(nombre_rol="DEPOSITO", descripcion="Encargado de depósito")
    usuario = Usuario(email="operador@insumos.com.ar", nombre="Ana", apellido="Paz", rol=rol)
    categoria = Categoria(nombre_categoria="Limpieza")
    proveedor = Proveedor(
        nombre_proveedor="Distribuidora Sur",
        cuit_proveedor="30-71234567-8",
        direccion_proveedor="Av. Siempre Viva 123",
    )
    guantes = Insumo(nombre_insumo="Guantes de nitrilo", costo_unitario=Decimal("2.50"),
                     categoria=categoria, proveedor=proveedor)
    alcohol = Insumo(nombre_insumo="Alcohol en gel", costo_unitario=Decimal("4.00"),
                     categoria=categoria, proveedor=proveedor)
    central = Deposito(nom_deposito="Depósito Central")
    norte = Deposito(nom_deposito="Depósito Norte")
    ingreso = TipoMovimiento(nombre_tipo="INGRESO", afecta_stock=AfectaStock.POSITIVO)
    egreso = TipoMovimiento(nombre_tipo="EGRESO", afecta_stock=AfectaStock.NEGATIVO)
    ajuste = TipoMovimiento(nombre_tipo="RECLASIFICACION", afecta_stock=AfectaStock.NEUTRO)
    compra = RazonMovimiento(nombre_razon="Compra a proveedor", tipo_movimiento=ingreso)
    consumo = RazonMovimiento(nombre_razon="Consumo interno", tipo_movimiento=egreso)

    db.add_all([rol, usuario, categoria, proveedor, guantes, alcohol, central, norte,
                ingreso, egreso, ajuste, compra, consumo])
    db.commit()

    return SimpleNamespace(
        usuario=usuario.id, categoria=categoria.id, proveedor=proveedor.id,
        guantes=guantes.id, alcohol=alcohol.id, central=central.id, norte=norte.id,
        ingreso=ingreso.id, egreso=egreso.id, ajuste=ajuste.id,
        razon_compra=compra.id, razon_consumo=consumo.id,
    )


@pytest.fixture
def stock_de(db):
    """Cantidad actual de (depósito, insumo) leída de la BD; None si no hay fila."""
    def _leer(id_deposito, id_insumo):
        db.expire_all()
        fila = db.query(StockDeposito).filter_by(id_deposito=id_deposito, id_insumo=id_insumo).first()
        return None if fila is None else fila.cantidad_actual
    return _leer
