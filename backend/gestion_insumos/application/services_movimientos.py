"""
Motor de Movimientos de Inventario
==================================

Valida, persiste y completa movimientos (ingresos, egresos y transferencias).

CICLO DE VIDA:
- Se crea PENDIENTE o COMPLETADO
- PENDIENTE/CANCELADO -> COMPLETADO aplica el stock exactamente una vez
- COMPLETADO es terminal: no vuelve atrás, no se elimina, sus detalles no cambian

Todas las validaciones de negocio corren antes del primer INSERT/UPDATE; una vez
iniciadas las escrituras, cualquier error revierte la transacción completa.
"""
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import selectinload

from ..infrastructure.unit_of_work import UnitOfWork
from ..infrastructure.repositories import paginar
from ..domain.models_inventario import MovimientoInventario, DetalleMovimiento, TipoMovimiento
from ..domain.enums import EstadoMovimiento
from .dtos import MovimientoIn, MovimientoUpdate, DetalleMovimientoIn, DetalleMovimientoCreate, DetalleMovimientoUpdate
from .errors import ValidacionError, EntidadNoEncontradaError, ConflictoError
from .services_stock import StockService
import logging

logger = logging.getLogger(__name__)


class MovimientoNoEncontradoError(EntidadNoEncontradaError):
    pass


class MovimientoCompletadoError(ConflictoError):
    """Un movimiento COMPLETADO no se elimina ni se modifican sus detalles"""
    pass


class TransicionInvalidaError(ConflictoError):
    """COMPLETADO no puede volver a PENDIENTE ni pasar a CANCELADO"""
    pass


class DetalleDuplicadoError(ConflictoError):
    pass


class MovimientoInvalidoError(ValidacionError):
    pass


class MovimientoService:
    def __init__(self, uow: UnitOfWork, stock: Optional[StockService] = None):
        self.uow = uow
        self.stock = stock or StockService(uow)

    # ===== VALIDACIONES =====

    def _validar_tipo(self, id_tipo: int) -> TipoMovimiento:
        tipo = self.uow.movimientos.tipo(id_tipo)
        if not tipo:
            raise EntidadNoEncontradaError(f"Tipo de movimiento {id_tipo} no encontrado")
        if not tipo.estado_tipo:
            raise MovimientoInvalidoError(f"El tipo de movimiento '{tipo.nombre_tipo}' está inactivo")
        return tipo

    def _validar_razon(self, id_razon: Optional[int], tipo: TipoMovimiento) -> None:
        if id_razon is None:
            return
        razon = self.uow.movimientos.razon(id_razon)
        if not razon:
            raise EntidadNoEncontradaError(f"Razón de movimiento {id_razon} no encontrada")
        if razon.id_tipo_movimiento != tipo.id:
            raise MovimientoInvalidoError(
                f"La razón '{razon.nombre_razon}' no pertenece al tipo de movimiento '{tipo.nombre_tipo}'"
            )

    def _validar_deposito(self, id_deposito: Optional[int], rol: str) -> None:
        if id_deposito is None:
            return
        deposito = self.uow.depositos.get(id_deposito)
        if not deposito:
            raise EntidadNoEncontradaError(f"Depósito {rol} {id_deposito} no encontrado")
        if not deposito.estado_deposito:
            raise MovimientoInvalidoError(f"El depósito {rol} '{deposito.nom_deposito}' está inactivo")

    def _validar_detalles(self, detalles: List[DetalleMovimientoIn]) -> None:
        ids = {d.id_insumo for d in detalles}
        existentes = self.uow.insumos.by_ids(ids)
        faltantes = sorted(ids - existentes.keys())
        if faltantes:
            raise EntidadNoEncontradaError(f"Insumos no encontrados: {', '.join(str(i) for i in faltantes)}")

        vistos = set()
        for d in detalles:
            clave = (d.id_insumo, d.lote)
            if clave in vistos:
                raise DetalleDuplicadoError(
                    f"El insumo {d.id_insumo} aparece más de una vez con el lote {d.lote or '(sin lote)'}"
                )
            vistos.add(clave)

    def _bloquear(self, id: int) -> MovimientoInventario:
        movimiento = self.uow.movimientos.get_for_update(id)
        if not movimiento:
            raise MovimientoNoEncontradoError(f"Movimiento {id} no encontrado")
        return movimiento

    # ===== MOVIMIENTOS =====

    def crear(self, datos: MovimientoIn) -> MovimientoInventario:
        tipo = self._validar_tipo(datos.id_tipo_movimiento)
        self._validar_razon(datos.id_razon_movimiento, tipo)
        self._validar_deposito(datos.id_deposito_origen, "origen")
        self._validar_deposito(datos.id_deposito_destino, "destino")
        if not self.uow.usuarios.get(datos.id_usuario):
            raise EntidadNoEncontradaError(f"Usuario {datos.id_usuario} no encontrado")
        if datos.id_orden_compra is not None and not self.uow.ordenes.get(datos.id_orden_compra):
            raise EntidadNoEncontradaError(f"Orden de compra {datos.id_orden_compra} no encontrada")
        self._validar_detalles(datos.detalles)

        movimiento = MovimientoInventario(
            **datos.model_dump(exclude={"detalles"}),
            fecha_movimiento=datetime.now(),
        )
        movimiento.detalles = [DetalleMovimiento(**d.model_dump()) for d in datos.detalles]
        self.uow.movimientos.add(movimiento)
        self.uow.db.flush()

        logger.info(
            "Movimiento %s creado: tipo=%s estado=%s detalles=%s usuario=%s",
            movimiento.id, tipo.nombre_tipo, movimiento.estado_movimiento.value,
            len(movimiento.detalles), movimiento.id_usuario
        )

        if movimiento.estado_movimiento == EstadoMovimiento.COMPLETADO:
            self.stock.aplicar_movimiento(movimiento, tipo.afecta_stock)
        return movimiento

    def actualizar(self, id: int, datos: MovimientoUpdate) -> MovimientoInventario:
        """
        Actualiza campos del movimiento.

        El paso de un estado no completado a COMPLETADO aplica el stock; la fila
        se lee con bloqueo para que dos completados simultáneos no lo apliquen dos veces.
        """
        movimiento = self._bloquear(id)
        cambios = datos.model_dump(exclude_unset=True)
        if cambios.get("estado_movimiento", "") is None:
            cambios.pop("estado_movimiento")

        anterior = movimiento.estado_movimiento
        nuevo = cambios.get("estado_movimiento", anterior)
        if anterior == EstadoMovimiento.COMPLETADO and nuevo != EstadoMovimiento.COMPLETADO:
            raise TransicionInvalidaError(
                f"El movimiento {id} ya está COMPLETADO y no puede pasar a {nuevo.value}"
            )

        for campo, valor in cambios.items():
            setattr(movimiento, campo, valor)
        self.uow.db.flush()

        if anterior != EstadoMovimiento.COMPLETADO and nuevo == EstadoMovimiento.COMPLETADO:
            tipo = self.uow.movimientos.tipo(movimiento.id_tipo_movimiento)
            logger.info("Movimiento %s: %s -> COMPLETADO", id, anterior.value)
            self.stock.aplicar_movimiento(movimiento, tipo.afecta_stock)
        return movimiento

    def eliminar(self, id: int) -> None:
        movimiento = self._bloquear(id)
        if movimiento.estado_movimiento == EstadoMovimiento.COMPLETADO:
            raise MovimientoCompletadoError(f"No se puede eliminar el movimiento {id}: está COMPLETADO")
        self.uow.db.delete(movimiento)
        self.uow.db.flush()
        logger.info("Movimiento %s eliminado", id)

    def obtener(self, id: int) -> MovimientoInventario:
        movimiento = self.uow.movimientos.get(id)
        if not movimiento:
            raise MovimientoNoEncontradoError(f"Movimiento {id} no encontrado")
        return movimiento

    def listar(self, page: int, limit: int, id_deposito: Optional[int] = None, id_tipo: Optional[int] = None,
               estado: Optional[EstadoMovimiento] = None, desde: Optional[datetime] = None,
               hasta: Optional[datetime] = None) -> Tuple[List[MovimientoInventario], int]:
        q = self.uow.db.query(MovimientoInventario).options(selectinload(MovimientoInventario.detalles))
        if id_deposito:
            q = q.filter(or_(
                MovimientoInventario.id_deposito_origen == id_deposito,
                MovimientoInventario.id_deposito_destino == id_deposito,
            ))
        if id_tipo:
            q = q.filter(MovimientoInventario.id_tipo_movimiento == id_tipo)
        if estado:
            q = q.filter(MovimientoInventario.estado_movimiento == estado)
        if desde:
            q = q.filter(MovimientoInventario.fecha_movimiento >= desde)
        if hasta:
            q = q.filter(MovimientoInventario.fecha_movimiento <= hasta)
        q = q.order_by(MovimientoInventario.fecha_movimiento.desc(), MovimientoInventario.id.desc())
        return paginar(q, page, limit)

    # ===== DETALLES =====

    def _movimiento_editable(self, id_movimiento: int) -> MovimientoInventario:
        movimiento = self._bloquear(id_movimiento)
        if movimiento.estado_movimiento == EstadoMovimiento.COMPLETADO:
            raise MovimientoCompletadoError(
                f"El movimiento {id_movimiento} está COMPLETADO: sus detalles no se pueden modificar"
            )
        return movimiento

    def obtener_detalle(self, id: int) -> DetalleMovimiento:
        detalle = self.uow.movimientos.get_detalle(id)
        if not detalle:
            raise EntidadNoEncontradaError(f"Detalle de movimiento {id} no encontrado")
        return detalle

    def listar_detalles(self, page: int, limit: int, id_movimiento: Optional[int] = None, id_insumo: Optional[int] = None):
        q = self.uow.db.query(DetalleMovimiento)
        if id_movimiento:
            q = q.filter(DetalleMovimiento.id_movimiento == id_movimiento)
        if id_insumo:
            q = q.filter(DetalleMovimiento.id_insumo == id_insumo)
        return paginar(q.order_by(DetalleMovimiento.id), page, limit)

    def crear_detalle(self, datos: DetalleMovimientoCreate) -> DetalleMovimiento:
        movimiento = self._movimiento_editable(datos.id_movimiento)
        if not self.uow.insumos.get(datos.id_insumo):
            raise EntidadNoEncontradaError(f"Insumo {datos.id_insumo} no encontrado")
        if self.uow.movimientos.detalle_duplicado(datos.id_movimiento, datos.id_insumo, datos.lote):
            raise DetalleDuplicadoError(
                f"El movimiento {datos.id_movimiento} ya tiene el insumo {datos.id_insumo} "
                f"con el lote {datos.lote or '(sin lote)'}"
            )

        detalle = DetalleMovimiento(**datos.model_dump())
        movimiento.detalles.append(detalle)
        self.uow.db.flush()
        return detalle

    def actualizar_detalle(self, id: int, datos: DetalleMovimientoUpdate) -> DetalleMovimiento:
        detalle = self.obtener_detalle(id)
        self._movimiento_editable(detalle.id_movimiento)
        cambios = {k: v for k, v in datos.model_dump(exclude_unset=True).items() if not (k == "cantidad" and v is None)}

        if "lote" in cambios and cambios["lote"] != detalle.lote:
            if self.uow.movimientos.detalle_duplicado(detalle.id_movimiento, detalle.id_insumo, cambios["lote"], excluir_id=detalle.id):
                raise DetalleDuplicadoError(
                    f"El movimiento {detalle.id_movimiento} ya tiene el insumo {detalle.id_insumo} "
                    f"con el lote {cambios['lote'] or '(sin lote)'}"
                )

        for campo, valor in cambios.items():
            setattr(detalle, campo, valor)
        self.uow.db.flush()
        return detalle

    def eliminar_detalle(self, id: int) -> None:
        detalle = self.obtener_detalle(id)
        movimiento = self._movimiento_editable(detalle.id_movimiento)
        movimiento.detalles.remove(detalle)
        self.uow.db.flush()
