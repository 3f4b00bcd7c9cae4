"""
Campos derivados que se calculan al leer y nunca se persisten.
"""
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Dict, Any

from ..domain.enums import NivelStock, TipoAlerta


def nivel_stock(cantidad: int, stock_minimo: int, stock_critico: int) -> NivelStock:
    """CRITICO si cantidad <= crítico, BAJO si cantidad <= mínimo, si no NORMAL."""
    if cantidad <= stock_critico:
        return NivelStock.CRITICO
    if cantidad <= stock_minimo:
        return NivelStock.BAJO
    return NivelStock.NORMAL


def tipo_alerta_para(cantidad: int, stock_minimo: int, stock_critico: int) -> Optional[TipoAlerta]:
    nivel = nivel_stock(cantidad, stock_minimo, stock_critico)
    if nivel == NivelStock.CRITICO:
        return TipoAlerta.STOCK_CRITICO
    if nivel == NivelStock.BAJO:
        return TipoAlerta.STOCK_MINIMO
    return None


def porcentaje_stock(cantidad: int, stock_minimo: int) -> int:
    if stock_minimo <= 0:
        return 0
    return round(cantidad / stock_minimo * 100)


def necesita_reposicion(cantidad: int, stock_minimo: int) -> bool:
    return cantidad <= stock_minimo


def dias_para_vencimiento(fecha_expiracion: Optional[date], hoy: Optional[date] = None) -> Optional[int]:
    if fecha_expiracion is None:
        return None
    return (fecha_expiracion - (hoy or date.today())).days


def subtotal_detalle(precio_unitario: Decimal, cantidad_solicitada: int) -> Decimal:
    return (Decimal(str(precio_unitario)) * cantidad_solicitada).quantize(Decimal("0.01"))


def totales_movimiento(detalles: Iterable[Any]) -> Dict[str, Any]:
    detalles = list(detalles)
    costo_total = sum(
        (d.cantidad * Decimal(str(d.costo_unitario or 0)) for d in detalles),
        Decimal("0")
    )
    return {
        "total_insumos": len(detalles),
        "total_cantidad": sum(d.cantidad for d in detalles),
        "costo_total": costo_total.quantize(Decimal("0.01")),
    }


def estadisticas_orden(detalles: Iterable[Any], total_movimientos: int = 0, total_facturas: int = 0) -> Dict[str, Any]:
    detalles = list(detalles)
    solicitada = sum(d.cantidad_solicitada for d in detalles)
    recibida = sum(d.cantidad_recibida or 0 for d in detalles)
    return {
        "total_items": len(detalles),
        "cantidad_total_solicitada": solicitada,
        "cantidad_total_recibida": recibida,
        "porcentaje_recibido": round(recibida / solicitada * 100) if solicitada > 0 else 0,
        "items_pendientes": sum(1 for d in detalles if (d.cantidad_recibida or 0) < d.cantidad_solicitada),
        "total_movimientos": total_movimientos,
        "total_facturas": total_facturas,
    }
