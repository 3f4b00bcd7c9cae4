import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from .config import settings


def _crear_engine(url: str):
    kwargs: dict = {"echo": False, "future": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # Una sola conexión compartida: la BD en memoria vive mientras viva la conexión
            kwargs["poolclass"] = StaticPool
        else:
            os.makedirs("./data", exist_ok=True)
    eng = create_engine(url, **kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(eng, "connect")
        def _activar_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return eng


engine = _crear_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def _import_all_models():
    """Importa todos los modelos para que Base.metadata los registre."""
    from .domain import models  # noqa: F401 - Categoria, Proveedor, Insumo, Deposito, Usuario, Rol
    from .domain import models_inventario  # noqa: F401 - StockDeposito, MovimientoInventario, AlertaStock
    from .domain import models_compras  # noqa: F401 - OrdenCompra, DetalleOrdenCompra, Factura


def init_db():
    """Crear tablas si no existen (arranque normal)."""
    _import_all_models()
    Base.metadata.create_all(bind=engine)
