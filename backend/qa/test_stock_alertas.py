"""
Tests del Libro de Stock (operaciones directas) y del Generador de Alertas
"""
from datetime import date, timedelta

import pytest

from gestion_insumos.application.dtos import (
    StockDepositoIn, StockDepositoUpdate, AlertaIn, AlertaUpdate, MovimientoIn, DetalleMovimientoIn
)
from gestion_insumos.application.errors import EntidadNoEncontradaError
from gestion_insumos.application.services_movimientos import MovimientoService
from gestion_insumos.application.services_stock import (
    StockService, StockDuplicadoError, StockConCantidadError, UmbralesStockInvalidosError
)
from gestion_insumos.application.services_alertas import AlertaService, AlertaDuplicadaError
from gestion_insumos.domain.enums import TipoAlerta, EstadoAlerta, EstadoMovimiento
from gestion_insumos.domain.models import Insumo
from gestion_insumos.domain.models_inventario import AlertaStock


def _registrar(uow, c, cantidad, minimo=10, critico=5, insumo=None):
    with uow.transaction():
        return StockService(uow).registrar(StockDepositoIn(
            id_deposito=c.central, id_insumo=insumo or c.guantes,
            cantidad_actual=cantidad, stock_minimo=minimo, stock_critico=critico,
        ))


def _actualizar(uow, id_stock, **cambios):
    with uow.transaction():
        return StockService(uow).actualizar(id_stock, StockDepositoUpdate(**cambios))


def _alertas(db, estado=EstadoAlerta.ACTIVA):
    db.expire_all()
    return db.query(AlertaStock).filter(AlertaStock.estado_alerta == estado).all()


class TestAlertasDeStock:
    def test_bajar_a_critico_crea_una_sola_alerta(self, uow, db, catalogo):
        """Mínimo 10, crítico 5: llevar la cantidad a 5 dos veces deja una sola alerta activa"""
        fila = _registrar(uow, catalogo, 20)
        _actualizar(uow, fila.id, cantidad_actual=5)
        _actualizar(uow, fila.id, cantidad_actual=5)

        activas = _alertas(db)
        assert len(activas) == 1
        assert activas[0].tipo_alerta == TipoAlerta.STOCK_CRITICO
        assert "Guantes de nitrilo" in activas[0].mensaje
        assert "Depósito Central" in activas[0].mensaje

    def test_entre_critico_y_minimo_es_stock_minimo(self, uow, db, catalogo):
        fila = _registrar(uow, catalogo, 20)
        _actualizar(uow, fila.id, cantidad_actual=8)
        assert [a.tipo_alerta for a in _alertas(db)] == [TipoAlerta.STOCK_MINIMO]

    def test_sobre_el_minimo_no_alerta(self, uow, db, catalogo):
        fila = _registrar(uow, catalogo, 20)
        _actualizar(uow, fila.id, cantidad_actual=11)
        assert _alertas(db) == []

    def test_minimo_y_luego_critico_son_alertas_distintas(self, uow, db, catalogo):
        fila = _registrar(uow, catalogo, 20)
        _actualizar(uow, fila.id, cantidad_actual=8)
        _actualizar(uow, fila.id, cantidad_actual=3)
        assert sorted(a.tipo_alerta.value for a in _alertas(db)) == ["STOCK_CRITICO", "STOCK_MINIMO"]

    def test_resuelta_permite_una_nueva(self, uow, db, catalogo):
        """Resolver la alerta libera la clave: un nuevo cruce de umbral vuelve a alertar"""
        fila = _registrar(uow, catalogo, 20)
        _actualizar(uow, fila.id, cantidad_actual=5)
        alerta = _alertas(db)[0]
        with uow.transaction():
            AlertaService(uow).actualizar(alerta.id, AlertaUpdate(estado_alerta=EstadoAlerta.RESUELTA))

        _actualizar(uow, fila.id, cantidad_actual=4)
        assert len(_alertas(db)) == 1
        assert len(_alertas(db, EstadoAlerta.RESUELTA)) == 1

    def test_cambio_de_umbral_evalua(self, uow, db, catalogo):
        fila = _registrar(uow, catalogo, 12)
        _actualizar(uow, fila.id, stock_minimo=15)
        assert [a.tipo_alerta for a in _alertas(db)] == [TipoAlerta.STOCK_MINIMO]

    def test_egreso_completado_dispara_alerta(self, uow, db, catalogo):
        _registrar(uow, catalogo, 12)
        with uow.transaction():
            MovimientoService(uow).crear(MovimientoIn(
                id_tipo_movimiento=catalogo.egreso, id_deposito_origen=catalogo.central,
                id_usuario=catalogo.usuario, estado_movimiento=EstadoMovimiento.COMPLETADO,
                detalles=[DetalleMovimientoIn(id_insumo=catalogo.guantes, cantidad=9)],
            ))
        activas = _alertas(db)
        assert len(activas) == 1
        assert activas[0].tipo_alerta == TipoAlerta.STOCK_CRITICO
        assert "(3 unidades)" in activas[0].mensaje


class TestCrudAlertas:
    def _alerta(self, c, **extra):
        datos = dict(tipo_alerta=TipoAlerta.STOCK_MINIMO, mensaje="Revisar guantes",
                     id_insumo=c.guantes, id_deposito=c.central)
        datos.update(extra)
        return AlertaIn(**datos)

    def test_alta_manual_duplicada(self, uow, catalogo):
        with uow.transaction():
            AlertaService(uow).crear(self._alerta(catalogo))
        with pytest.raises(AlertaDuplicadaError):
            with uow.transaction():
                AlertaService(uow).crear(self._alerta(catalogo))

    def test_otro_deposito_no_es_duplicado(self, uow, catalogo):
        with uow.transaction():
            AlertaService(uow).crear(self._alerta(catalogo))
            AlertaService(uow).crear(self._alerta(catalogo, id_deposito=catalogo.norte))
        _, total = AlertaService(uow).listar(1, 20, estado=EstadoAlerta.ACTIVA)
        assert total == 2

    def test_resolver_sella_fecha(self, uow, catalogo):
        with uow.transaction():
            alerta = AlertaService(uow).crear(self._alerta(catalogo))
        assert alerta.fecha_resolucion is None
        with uow.transaction():
            alerta = AlertaService(uow).actualizar(alerta.id, AlertaUpdate(estado_alerta=EstadoAlerta.RESUELTA))
        assert alerta.fecha_resolucion is not None

    def test_reactivar_con_otra_activa(self, uow, catalogo):
        service = AlertaService(uow)
        with uow.transaction():
            vieja = service.crear(self._alerta(catalogo, estado_alerta=EstadoAlerta.RESUELTA))
            service.crear(self._alerta(catalogo))
        with pytest.raises(AlertaDuplicadaError):
            with uow.transaction():
                service.actualizar(vieja.id, AlertaUpdate(estado_alerta=EstadoAlerta.ACTIVA))

    def test_asignar_usuario_inexistente(self, uow, catalogo):
        with uow.transaction():
            alerta = AlertaService(uow).crear(self._alerta(catalogo))
        with pytest.raises(EntidadNoEncontradaError):
            with uow.transaction():
                AlertaService(uow).actualizar(alerta.id, AlertaUpdate(id_usuario_asignado=999))

    def test_reabrir_borra_fecha_resolucion(self, uow, catalogo):
        """Una alerta resuelta que vuelve a ACTIVA o VISTA no conserva la fecha de resolución"""
        service = AlertaService(uow)
        with uow.transaction():
            alerta = service.crear(self._alerta(catalogo, estado_alerta=EstadoAlerta.RESUELTA))
        assert alerta.fecha_resolucion is not None

        with uow.transaction():
            alerta = service.actualizar(alerta.id, AlertaUpdate(estado_alerta=EstadoAlerta.ACTIVA))
        assert alerta.fecha_resolucion is None

        with uow.transaction():
            alerta = service.actualizar(alerta.id, AlertaUpdate(estado_alerta=EstadoAlerta.RESUELTA))
        assert alerta.fecha_resolucion is not None
        with uow.transaction():
            alerta = service.actualizar(alerta.id, AlertaUpdate(estado_alerta=EstadoAlerta.VISTA))
        assert alerta.fecha_resolucion is None

    def test_listar_por_usuario_asignado(self, uow, catalogo):
        with uow.transaction():
            AlertaService(uow).crear(self._alerta(catalogo, id_usuario_asignado=catalogo.usuario))
            AlertaService(uow).crear(self._alerta(catalogo, id_deposito=catalogo.norte))
        alertas, total = AlertaService(uow).listar(1, 20, id_usuario_asignado=catalogo.usuario)
        assert total == 1
        assert alertas[0].id_deposito == catalogo.central


class TestVencimientos:
    def test_genera_para_insumos_por_vencer(self, uow, db, catalogo):
        hoy = date(2026, 3, 1)
        db.get(Insumo, catalogo.guantes).fecha_expiracion = hoy + timedelta(days=10)
        db.get(Insumo, catalogo.alcohol).fecha_expiracion = hoy + timedelta(days=90)
        db.commit()
        _registrar(uow, catalogo, 50)
        _registrar(uow, catalogo, 50, insumo=catalogo.alcohol)

        with uow.transaction():
            creadas = AlertaService(uow).generar_alertas_vencimiento(dias=30, hoy=hoy)
        assert len(creadas) == 1
        assert creadas[0].id_insumo == catalogo.guantes
        assert creadas[0].tipo_alerta == TipoAlerta.VENCIMIENTO_PROXIMO
        assert "(10 días)" in creadas[0].mensaje

        with uow.transaction():
            assert AlertaService(uow).generar_alertas_vencimiento(dias=30, hoy=hoy) == []

    def test_sin_existencia_no_alerta(self, uow, db, catalogo):
        hoy = date(2026, 3, 1)
        db.get(Insumo, catalogo.guantes).fecha_expiracion = hoy
        db.commit()
        _registrar(uow, catalogo, 0, minimo=0, critico=0)
        with uow.transaction():
            assert AlertaService(uow).generar_alertas_vencimiento(dias=30, hoy=hoy) == []


class TestOperacionesDirectas:
    def test_registro_duplicado(self, uow, catalogo):
        _registrar(uow, catalogo, 20)
        with pytest.raises(StockDuplicadoError):
            _registrar(uow, catalogo, 5)

    def test_umbrales_combinados(self, uow, catalogo):
        """Solo stock_critico=12 con mínimo actual 10 debe rechazarse"""
        fila = _registrar(uow, catalogo, 20)
        with pytest.raises(UmbralesStockInvalidosError):
            _actualizar(uow, fila.id, stock_critico=12)

    def test_umbrales_en_el_esquema(self):
        with pytest.raises(ValueError):
            StockDepositoIn(id_deposito=1, id_insumo=1, stock_minimo=3, stock_critico=4)

    def test_eliminar_con_cantidad(self, uow, catalogo):
        fila = _registrar(uow, catalogo, 20)
        with pytest.raises(StockConCantidadError):
            with uow.transaction():
                StockService(uow).eliminar(fila.id)

    def test_eliminar_en_cero_borra_sus_alertas(self, uow, db, catalogo):
        fila = _registrar(uow, catalogo, 20)
        _actualizar(uow, fila.id, cantidad_actual=0)
        assert len(_alertas(db)) == 1
        with uow.transaction():
            StockService(uow).eliminar(fila.id)
        assert _alertas(db) == []

    def test_stock_critico_ordenado(self, uow, catalogo):
        _registrar(uow, catalogo, 7)
        _registrar(uow, catalogo, 2, insumo=catalogo.alcohol)
        filas = StockService(uow).stock_critico()
        assert [f.id_insumo for f in filas] == [catalogo.alcohol, catalogo.guantes]

    def test_listar_filtra_criticas(self, uow, catalogo):
        _registrar(uow, catalogo, 7)
        _registrar(uow, catalogo, 2, insumo=catalogo.alcohol)
        filas, total = StockService(uow).listar(1, 20, alertas_criticas=True)
        assert total == 1
        assert filas[0].id_insumo == catalogo.alcohol


class TestCarrerasEntreTransacciones:
    """
    Simula que otra transacción se adelantó entre la consulta y el INSERT:
    las restricciones únicas de la BD resuelven el conflicto.
    """

    def test_fila_de_stock_creada_por_otro(self, uow, catalogo, stock_de, monkeypatch):
        """El primer UPDATE no encuentra fila; el INSERT choca con la existente y se reintenta la suma"""
        _registrar(uow, catalogo, 20)
        incrementar = uow.stock.incrementar
        llamadas = []

        def incrementar_sin_fila_la_primera_vez(*args):
            llamadas.append(args)
            return 0 if len(llamadas) == 1 else incrementar(*args)

        monkeypatch.setattr(uow.stock, "incrementar", incrementar_sin_fila_la_primera_vez)
        with uow.transaction():
            MovimientoService(uow).crear(MovimientoIn(
                id_tipo_movimiento=catalogo.ingreso, id_deposito_destino=catalogo.central,
                id_usuario=catalogo.usuario, estado_movimiento=EstadoMovimiento.COMPLETADO,
                detalles=[DetalleMovimientoIn(id_insumo=catalogo.guantes, cantidad=5)],
            ))

        assert len(llamadas) == 2
        assert stock_de(catalogo.central, catalogo.guantes) == 25

    def test_alerta_activa_creada_por_otro(self, uow, db, catalogo, monkeypatch):
        """La consulta previa no ve la alerta activa; el índice único parcial impide la segunda"""
        fila = _registrar(uow, catalogo, 3)
        assert len(_alertas(db)) == 1

        monkeypatch.setattr(uow.alertas, "activa", lambda *args, **kwargs: None)
        with uow.transaction():
            assert AlertaService(uow).evaluar_stock(fila) is None

        activas = _alertas(db)
        assert len(activas) == 1
        assert activas[0].tipo_alerta == TipoAlerta.STOCK_CRITICO
