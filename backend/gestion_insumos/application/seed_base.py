"""
Datos base para iniciar el sistema desde cero.

Crea, si no existen:
- Roles (admin, compras, deposito, recepcion, housekeeping)
- Tipos de movimiento INGRESO, EGRESO y RECLASIFICACION con sus razones
- Depósito Central
"""
from typing import Dict, List, Tuple

from sqlalchemy.orm import Session

from ..domain.enums import AfectaStock
from ..domain.models import Deposito, Rol
from ..domain.models_inventario import TipoMovimiento, RazonMovimiento
import logging

logger = logging.getLogger(__name__)

ROLES_BASE: List[Tuple[str, str]] = [
    ("admin", "Administrador del sistema"),
    ("compras", "Órdenes de compra y proveedores"),
    ("deposito", "Movimientos y stock de depósitos"),
    ("recepcion", "Recepción de mercadería"),
    ("housekeeping", "Consulta de stock"),
]

TIPOS_BASE: Dict[str, Tuple[AfectaStock, str, List[str]]] = {
    "INGRESO": (AfectaStock.POSITIVO, "Entrada de insumos al depósito destino",
                ["Compra a proveedor", "Devolución de sector", "Inventario inicial"]),
    "EGRESO": (AfectaStock.NEGATIVO, "Salida de insumos del depósito origen",
               ["Consumo interno", "Vencimiento", "Rotura o pérdida"]),
    "RECLASIFICACION": (AfectaStock.NEUTRO, "Registro administrativo sin impacto en stock",
                        ["Corrección de lote"]),
}

DEPOSITO_CENTRAL = "Depósito Central"


def seed_datos_base(db: Session) -> dict:
    """
    Carga roles, tipos/razones de movimiento y el depósito central.
    Es idempotente: lo que ya existe (por nombre) no se duplica.
    """
    result = {"roles": 0, "tipos": 0, "razones": 0, "depositos": 0}

    for nombre, descripcion in ROLES_BASE:
        if not db.query(Rol).filter(Rol.nombre_rol == nombre).first():
            db.add(Rol(nombre_rol=nombre, descripcion=descripcion))
            result["roles"] += 1

    for nombre, (afecta, descripcion, razones) in TIPOS_BASE.items():
        tipo = db.query(TipoMovimiento).filter(TipoMovimiento.nombre_tipo == nombre).first()
        if not tipo:
            tipo = TipoMovimiento(nombre_tipo=nombre, descripcion=descripcion, afecta_stock=afecta)
            db.add(tipo)
            db.flush()
            result["tipos"] += 1
        existentes = {r.nombre_razon for r in tipo.razones}
        for razon in razones:
            if razon not in existentes:
                db.add(RazonMovimiento(nombre_razon=razon, id_tipo_movimiento=tipo.id))
                result["razones"] += 1

    if not db.query(Deposito).filter(Deposito.nom_deposito == DEPOSITO_CENTRAL).first():
        db.add(Deposito(nom_deposito=DEPOSITO_CENTRAL))
        result["depositos"] += 1

    db.flush()
    logger.info("Datos base cargados: %s", result)
    return result
