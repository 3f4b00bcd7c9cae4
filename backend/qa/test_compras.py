"""
Tests de Órdenes de Compra y del Agregador de Totales

total_orden debe coincidir siempre con la suma de subtotales de sus detalles.
"""
from datetime import date
from decimal import Decimal

import pytest

from gestion_insumos.application.dtos import (
    OrdenCompraIn, OrdenCompraUpdate, DetalleOrdenIn, DetalleOrdenCompraIn, DetalleOrdenCompraUpdate,
    MovimientoIn, DetalleMovimientoIn
)
from gestion_insumos.application.errors import EntidadNoEncontradaError
from gestion_insumos.application.services_compras import (
    OrdenCompraService, OrdenCerradaError, OrdenConDependenciasError, NumeroOrdenDuplicadoError,
    DetalleOrdenDuplicadoError, CantidadRecibidaExcedidaError
)
from gestion_insumos.application.services_catalogo import FacturaService
from gestion_insumos.application.services_movimientos import MovimientoService
from gestion_insumos.domain.enums import EstadoOrden
from gestion_insumos.domain.models_compras import OrdenCompra


def _orden(c, numero="OC-0001", detalles=None):
    return OrdenCompraIn(
        numero_orden=numero,
        id_proveedor=c.proveedor,
        id_usuario_solicita=c.usuario,
        detalles=detalles or [DetalleOrdenIn(id_insumo=c.guantes, cantidad_solicitada=2, precio_unitario=Decimal("10"))],
    )


@pytest.fixture
def orden(uow, catalogo):
    with uow.transaction():
        return OrdenCompraService(uow).crear(_orden(catalogo))


def _total(db, id_orden):
    db.expire_all()
    return db.get(OrdenCompra, id_orden).total_orden


class TestTotales:
    def test_alta_con_detalles(self, db, orden):
        assert _total(db, orden.id) == Decimal("20.00")
        assert orden.estado_orden == EstadoOrden.PENDIENTE

    def test_agregar_y_modificar_detalle_recalcula(self, uow, db, catalogo, orden):
        """Detalle 10 x 5 suma 50; llevarlo a 20 unidades deja 20 x 5, sin parches incrementales"""
        service = OrdenCompraService(uow)
        with uow.transaction():
            detalle = service.crear_detalle(DetalleOrdenCompraIn(
                id_orden_compra=orden.id, id_insumo=catalogo.alcohol,
                cantidad_solicitada=10, precio_unitario=Decimal("5"),
            ))
        assert detalle.subtotal == Decimal("50.00")
        assert _total(db, orden.id) == Decimal("70.00")

        with uow.transaction():
            service.actualizar_detalle(detalle.id, DetalleOrdenCompraUpdate(cantidad_solicitada=20))
        assert _total(db, orden.id) == Decimal("120.00")

    def test_modificar_precio_recalcula(self, uow, db, orden):
        with uow.transaction():
            OrdenCompraService(uow).actualizar_detalle(
                orden.detalles[0].id, DetalleOrdenCompraUpdate(precio_unitario=Decimal("12.50"))
            )
        assert _total(db, orden.id) == Decimal("25.00")

    def test_eliminar_detalle_recalcula(self, uow, db, catalogo, orden):
        service = OrdenCompraService(uow)
        with uow.transaction():
            detalle = service.crear_detalle(DetalleOrdenCompraIn(
                id_orden_compra=orden.id, id_insumo=catalogo.alcohol,
                cantidad_solicitada=3, precio_unitario=Decimal("4"),
            ))
        with uow.transaction():
            service.eliminar_detalle(detalle.id)
        assert _total(db, orden.id) == Decimal("20.00")

    def test_orden_sin_detalles_queda_en_cero(self, uow, db, orden):
        with uow.transaction():
            OrdenCompraService(uow).eliminar_detalle(orden.detalles[0].id)
        assert _total(db, orden.id) == Decimal("0.00")

    def test_estadisticas(self, uow, orden):
        with uow.transaction():
            OrdenCompraService(uow).actualizar_detalle(orden.detalles[0].id, DetalleOrdenCompraUpdate(cantidad_recibida=1))
        stats = OrdenCompraService(uow).estadisticas(uow.ordenes.get(orden.id))
        assert stats["total_items"] == 1
        assert stats["cantidad_total_solicitada"] == 2
        assert stats["cantidad_total_recibida"] == 1
        assert stats["porcentaje_recibido"] == 50
        assert stats["items_pendientes"] == 1
        assert stats["total_movimientos"] == 0


class TestValidaciones:
    def test_numero_duplicado(self, uow, catalogo, orden):
        with pytest.raises(NumeroOrdenDuplicadoError):
            with uow.transaction():
                OrdenCompraService(uow).crear(_orden(catalogo))

    def test_insumo_repetido_en_el_alta(self, uow, db, catalogo):
        detalles = [
            DetalleOrdenIn(id_insumo=catalogo.guantes, cantidad_solicitada=1, precio_unitario=Decimal("1")),
            DetalleOrdenIn(id_insumo=catalogo.guantes, cantidad_solicitada=2, precio_unitario=Decimal("1")),
        ]
        with pytest.raises(DetalleOrdenDuplicadoError):
            with uow.transaction():
                OrdenCompraService(uow).crear(_orden(catalogo, detalles=detalles))
        assert db.query(OrdenCompra).count() == 0

    def test_proveedor_inexistente(self, uow, catalogo):
        datos = _orden(catalogo)
        datos.id_proveedor = 999
        with pytest.raises(EntidadNoEncontradaError):
            with uow.transaction():
                OrdenCompraService(uow).crear(datos)

    def test_detalle_duplicado(self, uow, catalogo, orden):
        with pytest.raises(DetalleOrdenDuplicadoError):
            with uow.transaction():
                OrdenCompraService(uow).crear_detalle(DetalleOrdenCompraIn(
                    id_orden_compra=orden.id, id_insumo=catalogo.guantes,
                    cantidad_solicitada=1, precio_unitario=Decimal("1"),
                ))

    def test_recibida_mayor_a_solicitada(self, uow, orden):
        with pytest.raises(CantidadRecibidaExcedidaError):
            with uow.transaction():
                OrdenCompraService(uow).actualizar_detalle(
                    orden.detalles[0].id, DetalleOrdenCompraUpdate(cantidad_recibida=3)
                )

    def test_reducir_solicitada_bajo_lo_recibido(self, uow, orden):
        service = OrdenCompraService(uow)
        with uow.transaction():
            service.actualizar_detalle(orden.detalles[0].id, DetalleOrdenCompraUpdate(cantidad_recibida=2))
        with pytest.raises(CantidadRecibidaExcedidaError):
            with uow.transaction():
                service.actualizar_detalle(orden.detalles[0].id, DetalleOrdenCompraUpdate(cantidad_solicitada=1))

    @pytest.mark.parametrize("estado", [EstadoOrden.RECIBIDA_TOTAL, EstadoOrden.CANCELADA])
    def test_orden_cerrada_no_admite_cambios(self, uow, db, catalogo, orden, estado):
        service = OrdenCompraService(uow)
        with uow.transaction():
            service.actualizar(orden.id, OrdenCompraUpdate(estado_orden=estado))
        with pytest.raises(OrdenCerradaError):
            with uow.transaction():
                service.crear_detalle(DetalleOrdenCompraIn(
                    id_orden_compra=orden.id, id_insumo=catalogo.alcohol,
                    cantidad_solicitada=1, precio_unitario=Decimal("1"),
                ))
        assert _total(db, orden.id) == Decimal("20.00")


class TestEliminarOrden:
    def test_sin_dependencias(self, uow, db, orden):
        with uow.transaction():
            OrdenCompraService(uow).eliminar(orden.id)
        assert db.query(OrdenCompra).count() == 0

    def test_con_movimiento(self, uow, catalogo, orden):
        with uow.transaction():
            MovimientoService(uow).crear(MovimientoIn(
                id_tipo_movimiento=catalogo.ingreso, id_deposito_destino=catalogo.central,
                id_usuario=catalogo.usuario, id_orden_compra=orden.id,
                detalles=[DetalleMovimientoIn(id_insumo=catalogo.guantes, cantidad=2)],
            ))
        with pytest.raises(OrdenConDependenciasError):
            with uow.transaction():
                OrdenCompraService(uow).eliminar(orden.id)

    def test_con_factura(self, uow, catalogo, orden):
        with uow.transaction():
            FacturaService(uow).crear({
                "numero_factura": "A-0001-00000001",
                "fecha_emision": date(2026, 3, 1),
                "fecha_vencimiento": date(2026, 3, 31),
                "monto_total": Decimal("20.00"),
                "id_proveedor": catalogo.proveedor,
                "id_orden_compra": orden.id,
            })
        with pytest.raises(OrdenConDependenciasError):
            with uow.transaction():
                OrdenCompraService(uow).eliminar(orden.id)
