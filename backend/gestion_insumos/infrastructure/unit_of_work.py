from contextlib import contextmanager
from sqlalchemy.orm import Session
from ..db import SessionLocal
from .repositories import (
    InsumoRepository, DepositoRepository, UsuarioRepository, StockRepository,
    MovimientoRepository, AlertaRepository, OrdenCompraRepository
)

class UnitOfWork:
    def __init__(self, db: Session = None):
        self._owns_session = db is None
        self.db: Session = db if db is not None else SessionLocal()
        self.insumos = InsumoRepository(self.db)
        self.depositos = DepositoRepository(self.db)
        self.usuarios = UsuarioRepository(self.db)
        self.stock = StockRepository(self.db)
        self.movimientos = MovimientoRepository(self.db)
        self.alertas = AlertaRepository(self.db)
        self.ordenes = OrdenCompraRepository(self.db)

    def commit(self): self.db.commit()
    def rollback(self): self.db.rollback()
    def close(self): self.db.close()

    @contextmanager
    def transaction(self):
        """Confirma al salir sin errores; ante cualquier excepción revierte todo y la propaga."""
        try:
            yield self
            self.commit()
        except Exception:
            self.rollback()
            raise
        finally:
            # La sesión inyectada por get_db la cierra la dependencia
            if self._owns_session:
                self.close()
