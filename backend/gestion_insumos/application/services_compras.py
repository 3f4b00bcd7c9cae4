"""
Órdenes de Compra y Agregador de Totales
========================================

total_orden es siempre SUM(subtotal) de los detalles de la orden. Se recalcula
con una consulta de agregación en la misma transacción que crea, modifica o
borra un detalle; nunca se parchea de forma incremental.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from ..infrastructure.unit_of_work import UnitOfWork
from ..infrastructure.repositories import paginar
from ..domain.models import Proveedor
from ..domain.models_compras import OrdenCompra, DetalleOrdenCompra
from ..domain.enums import EstadoOrden, ESTADOS_ORDEN_CERRADOS
from .calculos import subtotal_detalle, estadisticas_orden
from .dtos import OrdenCompraIn, OrdenCompraUpdate, DetalleOrdenCompraIn, DetalleOrdenCompraUpdate
from .errors import ValidacionError, EntidadNoEncontradaError, ConflictoError
import logging

logger = logging.getLogger(__name__)


class OrdenNoEncontradaError(EntidadNoEncontradaError):
    pass


class OrdenCerradaError(ConflictoError):
    """La orden está RECIBIDA_TOTAL o CANCELADA: sus detalles no se modifican"""
    pass


class OrdenConDependenciasError(ConflictoError):
    pass


class NumeroOrdenDuplicadoError(ConflictoError):
    pass


class DetalleOrdenDuplicadoError(ConflictoError):
    pass


class CantidadRecibidaExcedidaError(ValidacionError):
    pass


class OrdenCompraService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def _bloquear(self, id: int) -> OrdenCompra:
        orden = self.uow.ordenes.get_for_update(id)
        if not orden:
            raise OrdenNoEncontradaError(f"Orden de compra {id} no encontrada")
        return orden

    def _validar_abierta(self, orden: OrdenCompra) -> None:
        if orden.estado_orden in ESTADOS_ORDEN_CERRADOS:
            raise OrdenCerradaError(
                f"La orden {orden.numero_orden} está {orden.estado_orden.value}: no se pueden modificar sus detalles"
            )

    @staticmethod
    def _validar_cantidades(solicitada: int, recibida: int) -> None:
        if recibida > solicitada:
            raise CantidadRecibidaExcedidaError(
                f"La cantidad recibida ({recibida}) no puede superar la solicitada ({solicitada})"
            )

    def recalcular_total(self, orden: OrdenCompra) -> OrdenCompra:
        """Reescribe total_orden con la suma de subtotales que ve la transacción actual."""
        self.uow.db.flush()
        orden.total_orden = self.uow.ordenes.sumar_subtotales(orden.id)
        self.uow.db.flush()
        logger.debug("Orden %s: total recalculado %s", orden.id, orden.total_orden)
        return orden

    # ===== ÓRDENES =====

    def obtener(self, id: int) -> OrdenCompra:
        orden = self.uow.ordenes.get(id)
        if not orden:
            raise OrdenNoEncontradaError(f"Orden de compra {id} no encontrada")
        return orden

    def estadisticas(self, orden: OrdenCompra) -> Dict[str, Any]:
        return estadisticas_orden(
            orden.detalles,
            total_movimientos=self.uow.ordenes.contar_movimientos(orden.id),
            total_facturas=self.uow.ordenes.contar_facturas(orden.id),
        )

    def listar(self, page: int, limit: int, estado: Optional[EstadoOrden] = None, id_proveedor: Optional[int] = None,
               desde: Optional[datetime] = None, hasta: Optional[datetime] = None):
        q = self.uow.db.query(OrdenCompra)
        if estado:
            q = q.filter(OrdenCompra.estado_orden == estado)
        if id_proveedor:
            q = q.filter(OrdenCompra.id_proveedor == id_proveedor)
        if desde:
            q = q.filter(OrdenCompra.fecha_orden >= desde)
        if hasta:
            q = q.filter(OrdenCompra.fecha_orden <= hasta)
        return paginar(q.order_by(OrdenCompra.fecha_orden.desc(), OrdenCompra.id.desc()), page, limit)

    def crear(self, datos: OrdenCompraIn) -> OrdenCompra:
        if self.uow.ordenes.by_numero(datos.numero_orden):
            raise NumeroOrdenDuplicadoError(f"Ya existe una orden con número {datos.numero_orden}")
        if not self.uow.db.get(Proveedor, datos.id_proveedor):
            raise EntidadNoEncontradaError(f"Proveedor {datos.id_proveedor} no encontrado")
        if not self.uow.usuarios.get(datos.id_usuario_solicita):
            raise EntidadNoEncontradaError(f"Usuario {datos.id_usuario_solicita} no encontrado")

        ids = [d.id_insumo for d in datos.detalles]
        if len(ids) != len(set(ids)):
            raise DetalleOrdenDuplicadoError("Un insumo no puede repetirse dentro de la misma orden")
        faltantes = sorted(set(ids) - self.uow.insumos.by_ids(ids).keys())
        if faltantes:
            raise EntidadNoEncontradaError(f"Insumos no encontrados: {', '.join(str(i) for i in faltantes)}")

        orden = OrdenCompra(
            **datos.model_dump(exclude={"detalles"}),
            fecha_orden=datetime.now(),
        )
        orden.detalles = [
            DetalleOrdenCompra(
                id_insumo=d.id_insumo,
                cantidad_solicitada=d.cantidad_solicitada,
                cantidad_recibida=0,
                precio_unitario=d.precio_unitario,
                subtotal=subtotal_detalle(d.precio_unitario, d.cantidad_solicitada),
            )
            for d in datos.detalles
        ]
        self.uow.ordenes.add(orden)
        self.recalcular_total(orden)
        logger.info("Orden %s creada: %s detalles, total %s", orden.numero_orden, len(orden.detalles), orden.total_orden)
        return orden

    def actualizar(self, id: int, datos: OrdenCompraUpdate) -> OrdenCompra:
        orden = self._bloquear(id)
        cambios = datos.model_dump(exclude_unset=True)
        if cambios.get("estado_orden", "") is None:
            cambios.pop("estado_orden")
        for campo, valor in cambios.items():
            setattr(orden, campo, valor)
        self.uow.db.flush()
        logger.info("Orden %s actualizada: %s", orden.numero_orden, cambios)
        return orden

    def eliminar(self, id: int) -> None:
        orden = self._bloquear(id)
        movimientos = self.uow.ordenes.contar_movimientos(id)
        facturas = self.uow.ordenes.contar_facturas(id)
        if movimientos or facturas:
            raise OrdenConDependenciasError(
                f"No se puede eliminar la orden {orden.numero_orden}: "
                f"tiene {movimientos} movimientos y {facturas} facturas asociadas"
            )
        self.uow.db.delete(orden)
        self.uow.db.flush()
        logger.info("Orden %s eliminada", orden.numero_orden)

    # ===== DETALLES (disparan el recálculo del total) =====

    def obtener_detalle(self, id: int) -> DetalleOrdenCompra:
        detalle = self.uow.ordenes.get_detalle(id)
        if not detalle:
            raise EntidadNoEncontradaError(f"Detalle de orden {id} no encontrado")
        return detalle

    def listar_detalles(self, page: int, limit: int, id_orden_compra: Optional[int] = None):
        q = self.uow.db.query(DetalleOrdenCompra)
        if id_orden_compra:
            q = q.filter(DetalleOrdenCompra.id_orden_compra == id_orden_compra)
        return paginar(q.order_by(DetalleOrdenCompra.id), page, limit)

    def crear_detalle(self, datos: DetalleOrdenCompraIn) -> DetalleOrdenCompra:
        orden = self._bloquear(datos.id_orden_compra)
        self._validar_abierta(orden)
        if not self.uow.insumos.get(datos.id_insumo):
            raise EntidadNoEncontradaError(f"Insumo {datos.id_insumo} no encontrado")
        self._validar_cantidades(datos.cantidad_solicitada, datos.cantidad_recibida)
        if self.uow.ordenes.detalle_por_insumo(orden.id, datos.id_insumo):
            raise DetalleOrdenDuplicadoError(
                f"La orden {orden.numero_orden} ya tiene un detalle para el insumo {datos.id_insumo}"
            )

        detalle = DetalleOrdenCompra(
            **datos.model_dump(),
            subtotal=subtotal_detalle(datos.precio_unitario, datos.cantidad_solicitada),
        )
        orden.detalles.append(detalle)
        self.recalcular_total(orden)
        return detalle

    def actualizar_detalle(self, id: int, datos: DetalleOrdenCompraUpdate) -> DetalleOrdenCompra:
        detalle = self.obtener_detalle(id)
        orden = self._bloquear(detalle.id_orden_compra)
        self._validar_abierta(orden)

        cambios = {k: v for k, v in datos.model_dump(exclude_unset=True).items() if v is not None}
        solicitada = cambios.get("cantidad_solicitada", detalle.cantidad_solicitada)
        recibida = cambios.get("cantidad_recibida", detalle.cantidad_recibida or 0)
        precio = cambios.get("precio_unitario", detalle.precio_unitario)
        self._validar_cantidades(solicitada, recibida)

        for campo, valor in cambios.items():
            setattr(detalle, campo, valor)
        detalle.subtotal = subtotal_detalle(precio, solicitada)
        self.recalcular_total(orden)
        return detalle

    def eliminar_detalle(self, id: int) -> None:
        detalle = self.obtener_detalle(id)
        orden = self._bloquear(detalle.id_orden_compra)
        self._validar_abierta(orden)
        orden.detalles.remove(detalle)
        self.recalcular_total(orden)
