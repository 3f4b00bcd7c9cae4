from enum import Enum

class AfectaStock(str, Enum):
    POSITIVO = "POSITIVO"  # Ingreso: suma en el depósito destino
    NEGATIVO = "NEGATIVO"  # Egreso: resta en el depósito origen
    NEUTRO = "NEUTRO"      # Reclasificación interna, no toca stock

class EstadoMovimiento(str, Enum):
    PENDIENTE = "PENDIENTE"
    COMPLETADO = "COMPLETADO"
    CANCELADO = "CANCELADO"

class TipoAlerta(str, Enum):
    STOCK_MINIMO = "STOCK_MINIMO"
    STOCK_CRITICO = "STOCK_CRITICO"
    VENCIMIENTO_PROXIMO = "VENCIMIENTO_PROXIMO"

class EstadoAlerta(str, Enum):
    ACTIVA = "ACTIVA"
    VISTA = "VISTA"
    RESUELTA = "RESUELTA"

class NivelStock(str, Enum):
    NORMAL = "NORMAL"
    BAJO = "BAJO"
    CRITICO = "CRITICO"

class EstadoOrden(str, Enum):
    PENDIENTE = "PENDIENTE"
    ENVIADA = "ENVIADA"
    RECIBIDA_PARCIAL = "RECIBIDA_PARCIAL"
    RECIBIDA_TOTAL = "RECIBIDA_TOTAL"
    CANCELADA = "CANCELADA"

ESTADOS_ORDEN_CERRADOS = (EstadoOrden.RECIBIDA_TOTAL, EstadoOrden.CANCELADA)

class EstadoFactura(str, Enum):
    PENDIENTE = "PENDIENTE"
    PAGADA = "PAGADA"
    VENCIDA = "VENCIDA"
    ANULADA = "ANULADA"
