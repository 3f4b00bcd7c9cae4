"""
Tests del Motor de Movimientos y del Libro de Stock

Cubre:
- Ingreso completado crea/suma stock; egreso completado resta
- La transición a COMPLETADO aplica el stock una sola vez
- COMPLETADO es terminal (no vuelve atrás, no se elimina)
- Validaciones previas a cualquier escritura y rollback completo ante errores
- Stock negativo rechazado por defecto y permitido en modo permisivo
"""
from decimal import Decimal

import pytest

from gestion_insumos.application.dtos import (
    MovimientoIn, MovimientoUpdate, DetalleMovimientoIn, DetalleMovimientoCreate, DetalleMovimientoUpdate
)
from gestion_insumos.application.errors import EntidadNoEncontradaError
from gestion_insumos.application.services_movimientos import (
    MovimientoService, MovimientoCompletadoError, TransicionInvalidaError,
    DetalleDuplicadoError, MovimientoInvalidoError
)
from gestion_insumos.application.services_stock import StockService, StockInsuficienteError
from gestion_insumos.domain.enums import EstadoMovimiento
from gestion_insumos.domain.models import Deposito
from gestion_insumos.domain.models_inventario import MovimientoInventario, DetalleMovimiento


def _ingreso(c, cantidad, estado=EstadoMovimiento.COMPLETADO, **extra):
    datos = dict(
        id_tipo_movimiento=c.ingreso,
        id_deposito_destino=c.central,
        id_usuario=c.usuario,
        estado_movimiento=estado,
        detalles=[DetalleMovimientoIn(id_insumo=c.guantes, cantidad=cantidad, costo_unitario=Decimal("2.50"))],
    )
    datos.update(extra)
    return MovimientoIn(**datos)


def _egreso(c, cantidad, estado=EstadoMovimiento.COMPLETADO):
    return MovimientoIn(
        id_tipo_movimiento=c.egreso,
        id_deposito_origen=c.central,
        id_usuario=c.usuario,
        estado_movimiento=estado,
        detalles=[DetalleMovimientoIn(id_insumo=c.guantes, cantidad=cantidad)],
    )


def _crear(uow, datos, service=None):
    with uow.transaction():
        return (service or MovimientoService(uow)).crear(datos)


class TestAplicacionDeStock:
    """Ingresos, egresos y tipos neutros"""

    def test_ingreso_completado_crea_fila_de_stock(self, uow, catalogo, stock_de):
        """Ingreso de 10 sin fila previa: la fila nace con 10"""
        assert stock_de(catalogo.central, catalogo.guantes) is None
        _crear(uow, _ingreso(catalogo, 10))
        assert stock_de(catalogo.central, catalogo.guantes) == 10

    def test_ingreso_y_egreso(self, uow, catalogo, stock_de):
        """Ingreso de 10 y egreso de 4 dejan 6"""
        _crear(uow, _ingreso(catalogo, 10))
        _crear(uow, _egreso(catalogo, 4))
        assert stock_de(catalogo.central, catalogo.guantes) == 6

    def test_ingreso_suma_sobre_fila_existente(self, uow, catalogo, stock_de):
        _crear(uow, _ingreso(catalogo, 10))
        _crear(uow, _ingreso(catalogo, 7))
        assert stock_de(catalogo.central, catalogo.guantes) == 17

    def test_mismo_insumo_en_dos_lotes_suma_ambos(self, uow, catalogo, stock_de):
        datos = _ingreso(catalogo, 1)
        datos.detalles = [
            DetalleMovimientoIn(id_insumo=catalogo.guantes, cantidad=3, lote="A1"),
            DetalleMovimientoIn(id_insumo=catalogo.guantes, cantidad=4, lote="B2"),
        ]
        _crear(uow, datos)
        assert stock_de(catalogo.central, catalogo.guantes) == 7

    def test_pendiente_no_toca_stock(self, uow, catalogo, stock_de):
        _crear(uow, _ingreso(catalogo, 10, estado=EstadoMovimiento.PENDIENTE))
        assert stock_de(catalogo.central, catalogo.guantes) is None

    def test_neutro_no_toca_stock(self, uow, catalogo, stock_de):
        _crear(uow, _ingreso(catalogo, 10, id_tipo_movimiento=catalogo.ajuste))
        assert stock_de(catalogo.central, catalogo.guantes) is None

    def test_positivo_sin_destino_no_aplica(self, uow, catalogo, stock_de):
        movimiento = _crear(uow, _ingreso(catalogo, 10, id_deposito_destino=None))
        assert movimiento.estado_movimiento == EstadoMovimiento.COMPLETADO
        assert stock_de(catalogo.central, catalogo.guantes) is None

    def test_actualiza_fecha_ultimo_movimiento(self, uow, catalogo):
        _crear(uow, _ingreso(catalogo, 10))
        fila = uow.stock.by_clave(catalogo.central, catalogo.guantes, refrescar=True)
        assert fila.fecha_ultimo_mov is not None


class TestStockNegativo:
    def test_egreso_mayor_al_stock_se_rechaza_y_revierte(self, uow, db, catalogo, stock_de):
        _crear(uow, _ingreso(catalogo, 5))
        movimientos_antes = db.query(MovimientoInventario).count()

        with pytest.raises(StockInsuficienteError):
            _crear(uow, _egreso(catalogo, 8))

        assert stock_de(catalogo.central, catalogo.guantes) == 5
        assert db.query(MovimientoInventario).count() == movimientos_antes

    def test_egreso_sin_fila_de_stock_se_rechaza(self, uow, catalogo):
        with pytest.raises(StockInsuficienteError):
            _crear(uow, _egreso(catalogo, 1))

    def test_egreso_exacto_deja_cero(self, uow, catalogo, stock_de):
        _crear(uow, _ingreso(catalogo, 5))
        _crear(uow, _egreso(catalogo, 5))
        assert stock_de(catalogo.central, catalogo.guantes) == 0

    def test_modo_permisivo_permite_negativo(self, uow, catalogo, stock_de):
        service = MovimientoService(uow, stock=StockService(uow, permitir_negativo=True))
        _crear(uow, _ingreso(catalogo, 5), service)
        _crear(uow, _egreso(catalogo, 8), service)
        assert stock_de(catalogo.central, catalogo.guantes) == -3

    def test_modo_permisivo_sin_fila_no_hace_nada(self, uow, catalogo, stock_de):
        service = MovimientoService(uow, stock=StockService(uow, permitir_negativo=True))
        movimiento = _crear(uow, _egreso(catalogo, 2), service)
        assert movimiento.id is not None
        assert stock_de(catalogo.central, catalogo.guantes) is None


class TestTransiciones:
    """PENDIENTE/CANCELADO -> COMPLETADO aplica una vez; COMPLETADO es terminal"""

    def test_completar_pendiente_aplica_stock(self, uow, catalogo, stock_de):
        movimiento = _crear(uow, _ingreso(catalogo, 10, estado=EstadoMovimiento.PENDIENTE))
        with uow.transaction():
            MovimientoService(uow).actualizar(movimiento.id, MovimientoUpdate(estado_movimiento=EstadoMovimiento.COMPLETADO))
        assert stock_de(catalogo.central, catalogo.guantes) == 10

    def test_completar_cancelado_aplica_stock(self, uow, catalogo, stock_de):
        movimiento = _crear(uow, _ingreso(catalogo, 10, estado=EstadoMovimiento.CANCELADO))
        with uow.transaction():
            MovimientoService(uow).actualizar(movimiento.id, MovimientoUpdate(estado_movimiento=EstadoMovimiento.COMPLETADO))
        assert stock_de(catalogo.central, catalogo.guantes) == 10

    def test_recompletar_no_duplica(self, uow, catalogo, stock_de):
        """COMPLETADO -> COMPLETADO es solo una actualización de campos"""
        movimiento = _crear(uow, _ingreso(catalogo, 10))
        with uow.transaction():
            MovimientoService(uow).actualizar(
                movimiento.id,
                MovimientoUpdate(estado_movimiento=EstadoMovimiento.COMPLETADO, observaciones="revisado"),
            )
        assert stock_de(catalogo.central, catalogo.guantes) == 10
        assert uow.movimientos.get(movimiento.id).observaciones == "revisado"

    @pytest.mark.parametrize("destino", [EstadoMovimiento.PENDIENTE, EstadoMovimiento.CANCELADO])
    def test_completado_no_vuelve_atras(self, uow, catalogo, stock_de, destino):
        movimiento = _crear(uow, _ingreso(catalogo, 10))
        with pytest.raises(TransicionInvalidaError):
            with uow.transaction():
                MovimientoService(uow).actualizar(movimiento.id, MovimientoUpdate(estado_movimiento=destino))
        assert uow.movimientos.get(movimiento.id).estado_movimiento == EstadoMovimiento.COMPLETADO
        assert stock_de(catalogo.central, catalogo.guantes) == 10

    def test_actualizar_inexistente(self, uow, catalogo):
        with pytest.raises(EntidadNoEncontradaError):
            with uow.transaction():
                MovimientoService(uow).actualizar(999, MovimientoUpdate(observaciones="x"))

    def test_eliminar_completado_rechazado(self, uow, db, catalogo):
        movimiento = _crear(uow, _ingreso(catalogo, 10))
        with pytest.raises(MovimientoCompletadoError):
            with uow.transaction():
                MovimientoService(uow).eliminar(movimiento.id)
        assert db.get(MovimientoInventario, movimiento.id) is not None

    def test_eliminar_pendiente_borra_detalles(self, uow, db, catalogo):
        movimiento = _crear(uow, _ingreso(catalogo, 10, estado=EstadoMovimiento.PENDIENTE))
        with uow.transaction():
            MovimientoService(uow).eliminar(movimiento.id)
        assert db.get(MovimientoInventario, movimiento.id) is None
        assert db.query(DetalleMovimiento).filter_by(id_movimiento=movimiento.id).count() == 0


class TestValidacionesPrevias:
    """Ninguna validación fallida deja filas escritas"""

    def test_insumo_inexistente_no_deja_cabecera(self, uow, db, catalogo):
        datos = _ingreso(catalogo, 10)
        datos.detalles.append(DetalleMovimientoIn(id_insumo=999, cantidad=1))
        with pytest.raises(EntidadNoEncontradaError):
            _crear(uow, datos)
        assert db.query(MovimientoInventario).count() == 0

    def test_razon_de_otro_tipo(self, uow, catalogo):
        with pytest.raises(MovimientoInvalidoError):
            _crear(uow, _ingreso(catalogo, 10, id_razon_movimiento=catalogo.razon_consumo))

    def test_razon_del_tipo_es_valida(self, uow, catalogo):
        movimiento = _crear(uow, _ingreso(catalogo, 10, id_razon_movimiento=catalogo.razon_compra))
        assert movimiento.id_razon_movimiento == catalogo.razon_compra

    def test_deposito_inactivo(self, uow, db, catalogo):
        db.get(Deposito, catalogo.central).estado_deposito = False
        db.commit()
        with pytest.raises(MovimientoInvalidoError):
            _crear(uow, _ingreso(catalogo, 10))

    def test_usuario_inexistente(self, uow, catalogo):
        with pytest.raises(EntidadNoEncontradaError):
            _crear(uow, _ingreso(catalogo, 10, id_usuario=999))

    def test_insumo_y_lote_repetidos(self, uow, catalogo):
        datos = _ingreso(catalogo, 1)
        datos.detalles = [
            DetalleMovimientoIn(id_insumo=catalogo.guantes, cantidad=3, lote="A1"),
            DetalleMovimientoIn(id_insumo=catalogo.guantes, cantidad=4, lote="A1"),
        ]
        with pytest.raises(DetalleDuplicadoError):
            _crear(uow, datos)

    def test_detalles_vacios_rechazados_por_esquema(self, catalogo):
        with pytest.raises(ValueError):
            MovimientoIn(id_tipo_movimiento=catalogo.ingreso, id_usuario=catalogo.usuario, detalles=[])

    def test_cantidad_no_positiva_rechazada_por_esquema(self):
        with pytest.raises(ValueError):
            DetalleMovimientoIn(id_insumo=1, cantidad=0)


class TestDetallesMovimiento:
    def test_agregar_detalle_a_pendiente(self, uow, catalogo):
        movimiento = _crear(uow, _ingreso(catalogo, 10, estado=EstadoMovimiento.PENDIENTE))
        with uow.transaction():
            detalle = MovimientoService(uow).crear_detalle(
                DetalleMovimientoCreate(id_movimiento=movimiento.id, id_insumo=catalogo.alcohol, cantidad=2)
            )
        assert detalle.id is not None
        assert len(uow.movimientos.get(movimiento.id).detalles) == 2

    def test_detalle_duplicado(self, uow, catalogo):
        movimiento = _crear(uow, _ingreso(catalogo, 10, estado=EstadoMovimiento.PENDIENTE))
        with pytest.raises(DetalleDuplicadoError):
            with uow.transaction():
                MovimientoService(uow).crear_detalle(
                    DetalleMovimientoCreate(id_movimiento=movimiento.id, id_insumo=catalogo.guantes, cantidad=2)
                )

    def test_detalles_de_completado_inmutables(self, uow, catalogo):
        movimiento = _crear(uow, _ingreso(catalogo, 10))
        id_detalle = movimiento.detalles[0].id
        service = MovimientoService(uow)
        with pytest.raises(MovimientoCompletadoError):
            with uow.transaction():
                service.actualizar_detalle(id_detalle, DetalleMovimientoUpdate(cantidad=99))
        with pytest.raises(MovimientoCompletadoError):
            with uow.transaction():
                service.eliminar_detalle(id_detalle)
        assert uow.movimientos.get_detalle(id_detalle).cantidad == 10

    def test_completar_tras_editar_usa_la_cantidad_nueva(self, uow, catalogo, stock_de):
        movimiento = _crear(uow, _ingreso(catalogo, 10, estado=EstadoMovimiento.PENDIENTE))
        service = MovimientoService(uow)
        with uow.transaction():
            service.actualizar_detalle(movimiento.detalles[0].id, DetalleMovimientoUpdate(cantidad=12))
        with uow.transaction():
            service.actualizar(movimiento.id, MovimientoUpdate(estado_movimiento=EstadoMovimiento.COMPLETADO))
        assert stock_de(catalogo.central, catalogo.guantes) == 12
