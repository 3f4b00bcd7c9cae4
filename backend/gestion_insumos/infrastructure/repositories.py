from datetime import datetime
from decimal import Decimal
from sqlalchemy import update, func
from sqlalchemy.orm import Session
from ..domain.models import Insumo, Deposito, Usuario
from ..domain.models_inventario import StockDeposito, TipoMovimiento, RazonMovimiento, MovimientoInventario, DetalleMovimiento, AlertaStock
from ..domain.models_compras import OrdenCompra, DetalleOrdenCompra, Factura
from ..domain.enums import EstadoAlerta, TipoAlerta

def paginar(query, page: int, limit: int):
    """Devuelve (items, total) de la página pedida; page empieza en 1."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total

class InsumoRepository:
    def __init__(self, db: Session): self.db = db
    def get(self, id: int): return self.db.get(Insumo, id)
    def by_ids(self, ids):
        return {i.id: i for i in self.db.query(Insumo).filter(Insumo.id.in_(list(ids))).all()}

class DepositoRepository:
    def __init__(self, db: Session): self.db = db
    def get(self, id: int): return self.db.get(Deposito, id)

class UsuarioRepository:
    def __init__(self, db: Session): self.db = db
    def get(self, id: int): return self.db.get(Usuario, id)

class StockRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, s: StockDeposito): self.db.add(s); return s
    def get(self, id: int): return self.db.get(StockDeposito, id)
    def by_clave(self, id_deposito: int, id_insumo: int, refrescar: bool = False):
        q = self.db.query(StockDeposito).filter(
            StockDeposito.id_deposito == id_deposito,
            StockDeposito.id_insumo == id_insumo
        )
        if refrescar:
            # Los UPDATE atómicos no sincronizan la identity map
            q = q.populate_existing()
        return q.first()

    def incrementar(self, id_deposito: int, id_insumo: int, cantidad: int, fecha: datetime) -> int:
        """UPDATE atómico cantidad_actual = cantidad_actual + :cantidad. Devuelve filas afectadas."""
        result = self.db.execute(
            update(StockDeposito)
            .where(StockDeposito.id_deposito == id_deposito, StockDeposito.id_insumo == id_insumo)
            .values(cantidad_actual=StockDeposito.cantidad_actual + cantidad, fecha_ultimo_mov=fecha)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def decrementar(self, id_deposito: int, id_insumo: int, cantidad: int, fecha: datetime, permitir_negativo: bool) -> int:
        """UPDATE atómico de resta. Sin permitir_negativo solo afecta la fila si alcanza la cantidad."""
        stmt = (
            update(StockDeposito)
            .where(StockDeposito.id_deposito == id_deposito, StockDeposito.id_insumo == id_insumo)
            .values(cantidad_actual=StockDeposito.cantidad_actual - cantidad, fecha_ultimo_mov=fecha)
            .execution_options(synchronize_session=False)
        )
        if not permitir_negativo:
            stmt = stmt.where(StockDeposito.cantidad_actual >= cantidad)
        return self.db.execute(stmt).rowcount

class MovimientoRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, m: MovimientoInventario): self.db.add(m); return m
    def get(self, id: int): return self.db.get(MovimientoInventario, id)
    def get_for_update(self, id: int):
        # SELECT ... FOR UPDATE: serializa transiciones concurrentes del mismo movimiento (ignorado por SQLite)
        return (
            self.db.query(MovimientoInventario)
            .filter(MovimientoInventario.id == id)
            .with_for_update(nowait=False)
            .populate_existing()
            .first()
        )
    def tipo(self, id: int): return self.db.get(TipoMovimiento, id)
    def razon(self, id: int): return self.db.get(RazonMovimiento, id)
    def get_detalle(self, id: int): return self.db.get(DetalleMovimiento, id)
    def detalle_duplicado(self, id_movimiento: int, id_insumo: int, lote: str | None, excluir_id: int | None = None):
        q = self.db.query(DetalleMovimiento).filter(
            DetalleMovimiento.id_movimiento == id_movimiento,
            DetalleMovimiento.id_insumo == id_insumo,
            DetalleMovimiento.lote.is_(None) if lote is None else DetalleMovimiento.lote == lote
        )
        if excluir_id is not None:
            q = q.filter(DetalleMovimiento.id != excluir_id)
        return q.first()
    def usan_tipo(self, id_tipo: int) -> int:
        return self.db.query(MovimientoInventario).filter(MovimientoInventario.id_tipo_movimiento == id_tipo).count()

class AlertaRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, a: AlertaStock): self.db.add(a); return a
    def get(self, id: int): return self.db.get(AlertaStock, id)
    def activa(self, id_insumo: int, id_deposito: int, tipo: TipoAlerta, excluir_id: int | None = None):
        q = self.db.query(AlertaStock).filter(
            AlertaStock.id_insumo == id_insumo,
            AlertaStock.id_deposito == id_deposito,
            AlertaStock.tipo_alerta == tipo,
            AlertaStock.estado_alerta == EstadoAlerta.ACTIVA
        )
        if excluir_id is not None:
            q = q.filter(AlertaStock.id != excluir_id)
        return q.first()
    def delete_por_clave(self, id_insumo: int, id_deposito: int) -> int:
        return self.db.query(AlertaStock).filter(
            AlertaStock.id_insumo == id_insumo,
            AlertaStock.id_deposito == id_deposito
        ).delete(synchronize_session=False)

class OrdenCompraRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, o: OrdenCompra): self.db.add(o); return o
    def get(self, id: int): return self.db.get(OrdenCompra, id)
    def get_for_update(self, id: int):
        return (
            self.db.query(OrdenCompra)
            .filter(OrdenCompra.id == id)
            .with_for_update(nowait=False)
            .populate_existing()
            .first()
        )
    def by_numero(self, numero: str):
        return self.db.query(OrdenCompra).filter(OrdenCompra.numero_orden == numero).first()
    def get_detalle(self, id: int): return self.db.get(DetalleOrdenCompra, id)
    def detalle_por_insumo(self, id_orden: int, id_insumo: int):
        return self.db.query(DetalleOrdenCompra).filter(
            DetalleOrdenCompra.id_orden_compra == id_orden,
            DetalleOrdenCompra.id_insumo == id_insumo
        ).first()
    def sumar_subtotales(self, id_orden: int) -> Decimal:
        total = self.db.query(func.coalesce(func.sum(DetalleOrdenCompra.subtotal), 0)).filter(
            DetalleOrdenCompra.id_orden_compra == id_orden
        ).scalar()
        return Decimal(str(total or 0)).quantize(Decimal("0.01"))
    def contar_movimientos(self, id_orden: int) -> int:
        return self.db.query(MovimientoInventario).filter(MovimientoInventario.id_orden_compra == id_orden).count()
    def contar_facturas(self, id_orden: int) -> int:
        return self.db.query(Factura).filter(Factura.id_orden_compra == id_orden).count()
