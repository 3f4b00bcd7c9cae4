"""
Libro de Stock por Depósito
===========================

Dueño del invariante: una sola fila de stock por (depósito, insumo), y su
cantidad solo cambia al completar un movimiento o por edición directa.

APLICACIÓN DE UN MOVIMIENTO:
- POSITIVO: suma en el depósito destino (upsert atómico)
- NEGATIVO: resta en el depósito origen (UPDATE atómico con guarda de cantidad)
- NEUTRO: no toca stock

Cada fila tocada pasa luego por el Generador de Alertas.
"""
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from ..config import settings
from ..infrastructure.unit_of_work import UnitOfWork
from ..infrastructure.repositories import paginar
from ..domain.models_inventario import StockDeposito, MovimientoInventario
from ..domain.enums import AfectaStock
from .dtos import StockDepositoIn, StockDepositoUpdate
from .errors import ValidacionError, EntidadNoEncontradaError, ConflictoError
from .services_alertas import AlertaService
import logging

logger = logging.getLogger(__name__)


class StockNoEncontradoError(EntidadNoEncontradaError):
    pass


class StockInsuficienteError(ConflictoError):
    """La salida dejaría el stock del depósito en negativo"""
    pass


class StockDuplicadoError(ConflictoError):
    pass


class StockConCantidadError(ConflictoError):
    """Solo se elimina una fila de stock en cero"""
    pass


class UmbralesStockInvalidosError(ValidacionError):
    pass


class StockService:
    def __init__(self, uow: UnitOfWork, permitir_negativo: Optional[bool] = None):
        self.uow = uow
        self.permitir_negativo = settings.permitir_stock_negativo if permitir_negativo is None else permitir_negativo
        self.alertas = AlertaService(uow)

    # ===== APLICACIÓN DE MOVIMIENTOS =====

    def aplicar_movimiento(self, movimiento: MovimientoInventario, afecta_stock: AfectaStock) -> List[StockDeposito]:
        """
        Aplica los detalles del movimiento al stock y evalúa alertas.

        No es idempotente: el motor de movimientos garantiza que se llame una
        sola vez por movimiento, en la transición a COMPLETADO.
        """
        if afecta_stock == AfectaStock.NEUTRO:
            logger.debug("Movimiento %s de tipo NEUTRO: sin efecto en stock", movimiento.id)
            return []

        ahora = datetime.now()
        tocadas: Dict[Tuple[int, int], None] = {}

        if afecta_stock == AfectaStock.POSITIVO:
            id_deposito = movimiento.id_deposito_destino
            if id_deposito is None:
                logger.warning("Movimiento %s POSITIVO sin depósito destino: no se aplica stock", movimiento.id)
                return []
            for detalle in movimiento.detalles:
                self._incrementar(id_deposito, detalle.id_insumo, detalle.cantidad, ahora)
                tocadas[(id_deposito, detalle.id_insumo)] = None
        else:
            id_deposito = movimiento.id_deposito_origen
            if id_deposito is None:
                logger.warning("Movimiento %s NEGATIVO sin depósito origen: no se aplica stock", movimiento.id)
                return []
            for detalle in movimiento.detalles:
                if self._decrementar(id_deposito, detalle.id_insumo, detalle.cantidad, ahora):
                    tocadas[(id_deposito, detalle.id_insumo)] = None

        filas = []
        for id_dep, id_ins in tocadas:
            fila = self.uow.stock.by_clave(id_dep, id_ins, refrescar=True)
            if fila is None:
                continue
            self.alertas.evaluar_stock(fila)
            filas.append(fila)

        logger.info(
            "Movimiento %s aplicado (%s): %s filas de stock actualizadas",
            movimiento.id, afecta_stock.value, len(filas)
        )
        return filas

    def _incrementar(self, id_deposito: int, id_insumo: int, cantidad: int, fecha: datetime) -> None:
        if self.uow.stock.incrementar(id_deposito, id_insumo, cantidad, fecha):
            logger.debug("Stock +%s insumo %s depósito %s", cantidad, id_insumo, id_deposito)
            return

        fila = StockDeposito(
            id_deposito=id_deposito,
            id_insumo=id_insumo,
            cantidad_actual=cantidad,
            stock_minimo=0,
            stock_critico=0,
            fecha_ultimo_mov=fecha,
        )
        try:
            with self.uow.db.begin_nested():
                self.uow.stock.add(fila)
            logger.debug("Fila de stock creada: insumo %s depósito %s cantidad %s", id_insumo, id_deposito, cantidad)
        except IntegrityError:
            # Otra transacción creó la fila: el incremento ahora sí encuentra dónde sumar
            logger.info("Fila de stock (%s, %s) creada concurrentemente, se reintenta el incremento", id_deposito, id_insumo)
            self.uow.stock.incrementar(id_deposito, id_insumo, cantidad, fecha)

    def _decrementar(self, id_deposito: int, id_insumo: int, cantidad: int, fecha: datetime) -> bool:
        if self.uow.stock.decrementar(id_deposito, id_insumo, cantidad, fecha, self.permitir_negativo):
            logger.debug("Stock -%s insumo %s depósito %s", cantidad, id_insumo, id_deposito)
            return True

        if self.permitir_negativo:
            logger.warning("Sin fila de stock para insumo %s en depósito %s: egreso sin efecto", id_insumo, id_deposito)
            return False

        fila = self.uow.stock.by_clave(id_deposito, id_insumo, refrescar=True)
        disponible = fila.cantidad_actual if fila else 0
        raise StockInsuficienteError(
            f"Stock insuficiente para el insumo {id_insumo} en el depósito {id_deposito}: "
            f"disponible {disponible}, requerido {cantidad}"
        )

    # ===== OPERACIONES DIRECTAS =====

    def obtener(self, id: int) -> StockDeposito:
        fila = self.uow.stock.get(id)
        if not fila:
            raise StockNoEncontradoError(f"Stock {id} no encontrado")
        return fila

    def listar(self, page: int, limit: int, id_deposito: Optional[int] = None, id_insumo: Optional[int] = None,
               alertas_criticas: bool = False, stock_bajo: bool = False):
        q = self.uow.db.query(StockDeposito)
        if id_deposito:
            q = q.filter(StockDeposito.id_deposito == id_deposito)
        if id_insumo:
            q = q.filter(StockDeposito.id_insumo == id_insumo)
        if alertas_criticas:
            q = q.filter(StockDeposito.cantidad_actual <= StockDeposito.stock_critico)
        if stock_bajo:
            q = q.filter(StockDeposito.cantidad_actual <= StockDeposito.stock_minimo)
        return paginar(q.order_by(StockDeposito.id_deposito, StockDeposito.id_insumo), page, limit)

    def stock_critico(self, id_deposito: Optional[int] = None) -> List[StockDeposito]:
        """Filas en o por debajo del mínimo, las más comprometidas primero."""
        q = (
            self.uow.db.query(StockDeposito)
            .options(joinedload(StockDeposito.insumo), joinedload(StockDeposito.deposito))
            .filter(StockDeposito.cantidad_actual <= StockDeposito.stock_minimo)
        )
        if id_deposito:
            q = q.filter(StockDeposito.id_deposito == id_deposito)
        return q.order_by(StockDeposito.cantidad_actual, StockDeposito.id).all()

    def registrar(self, datos: StockDepositoIn) -> StockDeposito:
        if not self.uow.depositos.get(datos.id_deposito):
            raise EntidadNoEncontradaError(f"Depósito {datos.id_deposito} no encontrado")
        if not self.uow.insumos.get(datos.id_insumo):
            raise EntidadNoEncontradaError(f"Insumo {datos.id_insumo} no encontrado")
        if self.uow.stock.by_clave(datos.id_deposito, datos.id_insumo):
            raise StockDuplicadoError(
                f"Ya existe stock para el insumo {datos.id_insumo} en el depósito {datos.id_deposito}"
            )

        fila = StockDeposito(**datos.model_dump(), fecha_ultimo_mov=datetime.now())
        self.uow.stock.add(fila)
        self.uow.db.flush()
        logger.info("Stock registrado: insumo %s depósito %s cantidad %s", fila.id_insumo, fila.id_deposito, fila.cantidad_actual)
        return fila

    def actualizar(self, id: int, datos: StockDepositoUpdate) -> StockDeposito:
        """Los umbrales se validan con los valores combinados (actuales + nuevos)."""
        fila = self.obtener(id)
        cambios = {k: v for k, v in datos.model_dump(exclude_unset=True).items() if v is not None}

        minimo = cambios.get("stock_minimo", fila.stock_minimo)
        critico = cambios.get("stock_critico", fila.stock_critico)
        if critico > minimo:
            raise UmbralesStockInvalidosError(
                f"El stock crítico ({critico}) debe ser menor o igual al stock mínimo ({minimo})"
            )

        if "cantidad_actual" in cambios and "fecha_ultimo_mov" not in cambios:
            cambios["fecha_ultimo_mov"] = datetime.now()

        for campo, valor in cambios.items():
            setattr(fila, campo, valor)
        self.uow.db.flush()

        if {"cantidad_actual", "stock_minimo", "stock_critico"} & cambios.keys():
            self.alertas.evaluar_stock(fila)

        logger.info("Stock %s actualizado: %s", fila.id, cambios)
        return fila

    def eliminar(self, id: int) -> None:
        fila = self.obtener(id)
        if fila.cantidad_actual != 0:
            raise StockConCantidadError(
                f"No se puede eliminar el stock {id}: tiene {fila.cantidad_actual} unidades"
            )
        borradas = self.uow.alertas.delete_por_clave(fila.id_insumo, fila.id_deposito)
        self.uow.db.delete(fila)
        self.uow.db.flush()
        logger.info("Stock %s eliminado junto con %s alertas", id, borradas)
