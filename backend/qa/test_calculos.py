"""
Tests de campos derivados (funciones puras, sin BD)
"""
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from gestion_insumos.application.calculos import (
    nivel_stock, tipo_alerta_para, porcentaje_stock, necesita_reposicion,
    dias_para_vencimiento, subtotal_detalle, totales_movimiento, estadisticas_orden
)
from gestion_insumos.domain.enums import NivelStock, TipoAlerta


class TestNivelStock:
    """CRITICO <= crítico < BAJO <= mínimo < NORMAL"""

    @pytest.mark.parametrize("cantidad,esperado", [
        (0, NivelStock.CRITICO),
        (5, NivelStock.CRITICO),
        (6, NivelStock.BAJO),
        (10, NivelStock.BAJO),
        (11, NivelStock.NORMAL),
    ])
    def test_umbrales(self, cantidad, esperado):
        assert nivel_stock(cantidad, stock_minimo=10, stock_critico=5) == esperado

    def test_tipo_alerta_prioriza_critico(self):
        assert tipo_alerta_para(5, 10, 5) == TipoAlerta.STOCK_CRITICO
        assert tipo_alerta_para(8, 10, 5) == TipoAlerta.STOCK_MINIMO
        assert tipo_alerta_para(50, 10, 5) is None

    def test_sin_umbrales_solo_cero_es_critico(self):
        assert tipo_alerta_para(0, 0, 0) == TipoAlerta.STOCK_CRITICO
        assert tipo_alerta_para(1, 0, 0) is None


class TestIndicadoresStock:
    def test_porcentaje_redondeado(self):
        assert porcentaje_stock(5, 10) == 50
        assert porcentaje_stock(1, 3) == 33

    def test_porcentaje_con_minimo_cero(self):
        assert porcentaje_stock(100, 0) == 0

    def test_necesita_reposicion_incluye_el_minimo(self):
        assert necesita_reposicion(10, 10) is True
        assert necesita_reposicion(11, 10) is False


class TestVencimiento:
    def test_dias_para_vencimiento(self):
        assert dias_para_vencimiento(date(2026, 1, 31), hoy=date(2026, 1, 1)) == 30

    def test_vencido_da_negativo(self):
        assert dias_para_vencimiento(date(2025, 12, 31), hoy=date(2026, 1, 1)) == -1

    def test_sin_fecha(self):
        assert dias_para_vencimiento(None) is None


class TestTotales:
    def test_subtotal_detalle(self):
        assert subtotal_detalle(Decimal("5"), 10) == Decimal("50.00")
        assert subtotal_detalle(Decimal("0.10"), 3) == Decimal("0.30")

    def test_totales_movimiento(self):
        detalles = [
            SimpleNamespace(cantidad=10, costo_unitario=Decimal("2.50")),
            SimpleNamespace(cantidad=4, costo_unitario=None),
        ]
        totales = totales_movimiento(detalles)
        assert totales == {"total_insumos": 2, "total_cantidad": 14, "costo_total": Decimal("25.00")}

    def test_estadisticas_orden(self):
        detalles = [
            SimpleNamespace(cantidad_solicitada=10, cantidad_recibida=10),
            SimpleNamespace(cantidad_solicitada=30, cantidad_recibida=0),
        ]
        est = estadisticas_orden(detalles, total_movimientos=1, total_facturas=0)
        assert est["total_items"] == 2
        assert est["cantidad_total_solicitada"] == 40
        assert est["cantidad_total_recibida"] == 10
        assert est["porcentaje_recibido"] == 25
        assert est["items_pendientes"] == 1
        assert est["total_movimientos"] == 1

    def test_estadisticas_orden_vacia(self):
        assert estadisticas_orden([])["porcentaje_recibido"] == 0
