"""
Generador de Alertas de Stock
=============================

Evalúa una fila de stock contra sus umbrales y crea, si corresponde, una alerta
STOCK_CRITICO o STOCK_MINIMO. También genera alertas de VENCIMIENTO_PROXIMO.

REGLA DE UNICIDAD:
- Como máximo una alerta ACTIVA por (insumo, depósito, tipo)
- Se consulta antes de insertar; el índice único parcial
  `uq_alerta_activa_insumo_deposito_tipo` cubre la carrera entre dos transacciones
"""
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from ..config import settings
from ..infrastructure.unit_of_work import UnitOfWork
from ..infrastructure.repositories import paginar
from ..domain.models import Insumo
from ..domain.models_inventario import AlertaStock, StockDeposito
from ..domain.enums import TipoAlerta, EstadoAlerta
from .calculos import tipo_alerta_para
from .dtos import AlertaIn, AlertaUpdate
from .errors import EntidadNoEncontradaError, ConflictoError
import logging

logger = logging.getLogger(__name__)


class AlertaNoEncontradaError(EntidadNoEncontradaError):
    pass


class AlertaDuplicadaError(ConflictoError):
    """Ya existe una alerta ACTIVA para el mismo insumo, depósito y tipo"""
    pass


_ETIQUETAS = {
    TipoAlerta.STOCK_CRITICO: "Stock crítico",
    TipoAlerta.STOCK_MINIMO: "Stock mínimo",
}


class AlertaService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def evaluar_stock(self, fila: StockDeposito) -> Optional[AlertaStock]:
        """
        Crea la alerta que corresponda al nivel actual de la fila.

        CRITICO tiene prioridad sobre MINIMO. Si ya hay una ACTIVA del mismo
        tipo no hace nada, así que evaluar dos veces la misma fila es inocuo.
        """
        tipo = tipo_alerta_para(fila.cantidad_actual, fila.stock_minimo, fila.stock_critico)
        if tipo is None:
            return None

        mensaje = (
            f"{_ETIQUETAS[tipo]}: {fila.insumo.nombre_insumo} en {fila.deposito.nom_deposito} "
            f"({fila.cantidad_actual} unidades)"
        )
        return self._crear_si_no_existe(tipo, fila.id_insumo, fila.id_deposito, mensaje)

    def _crear_si_no_existe(self, tipo: TipoAlerta, id_insumo: int, id_deposito: int, mensaje: str) -> Optional[AlertaStock]:
        if self.uow.alertas.activa(id_insumo, id_deposito, tipo):
            logger.debug("Alerta %s ya activa para insumo %s en depósito %s", tipo.value, id_insumo, id_deposito)
            return None

        alerta = AlertaStock(
            tipo_alerta=tipo,
            mensaje=mensaje,
            id_insumo=id_insumo,
            id_deposito=id_deposito,
            estado_alerta=EstadoAlerta.ACTIVA,
            fecha_alerta=datetime.now(),
        )
        try:
            with self.uow.db.begin_nested():
                self.uow.alertas.add(alerta)
        except IntegrityError:
            # Otra transacción la insertó entre la consulta y el INSERT
            logger.info("Alerta %s creada concurrentemente para insumo %s en depósito %s", tipo.value, id_insumo, id_deposito)
            return None

        logger.info("Alerta %s generada: %s", tipo.value, mensaje)
        return alerta

    def generar_alertas_vencimiento(self, dias: Optional[int] = None, hoy: Optional[date] = None) -> List[AlertaStock]:
        """Alertas VENCIMIENTO_PROXIMO para stock con existencia cuyo insumo vence dentro de `dias`."""
        dias = settings.dias_alerta_vencimiento if dias is None else dias
        hoy = hoy or date.today()
        limite = hoy + timedelta(days=dias)

        filas = (
            self.uow.db.query(StockDeposito)
            .join(Insumo, Insumo.id == StockDeposito.id_insumo)
            .filter(
                StockDeposito.cantidad_actual > 0,
                Insumo.estado_insumo == True,
                Insumo.fecha_expiracion.isnot(None),
                Insumo.fecha_expiracion <= limite,
            )
            .order_by(Insumo.fecha_expiracion, StockDeposito.id)
            .all()
        )

        creadas = []
        for fila in filas:
            restantes = (fila.insumo.fecha_expiracion - hoy).days
            mensaje = (
                f"Vencimiento próximo: {fila.insumo.nombre_insumo} en {fila.deposito.nom_deposito} "
                f"vence el {fila.insumo.fecha_expiracion.isoformat()} ({restantes} días)"
            )
            alerta = self._crear_si_no_existe(TipoAlerta.VENCIMIENTO_PROXIMO, fila.id_insumo, fila.id_deposito, mensaje)
            if alerta is not None:
                creadas.append(alerta)

        logger.info("Revisión de vencimientos a %s días: %s filas, %s alertas nuevas", dias, len(filas), len(creadas))
        return creadas

    # ===== CRUD =====

    def obtener(self, id: int) -> AlertaStock:
        alerta = self.uow.alertas.get(id)
        if not alerta:
            raise AlertaNoEncontradaError(f"Alerta {id} no encontrada")
        return alerta

    def listar(self, page: int, limit: int, estado: Optional[EstadoAlerta] = None, tipo: Optional[TipoAlerta] = None,
               id_deposito: Optional[int] = None, id_insumo: Optional[int] = None,
               id_usuario_asignado: Optional[int] = None):
        q = self.uow.db.query(AlertaStock)
        if estado:
            q = q.filter(AlertaStock.estado_alerta == estado)
        if tipo:
            q = q.filter(AlertaStock.tipo_alerta == tipo)
        if id_deposito:
            q = q.filter(AlertaStock.id_deposito == id_deposito)
        if id_insumo:
            q = q.filter(AlertaStock.id_insumo == id_insumo)
        if id_usuario_asignado:
            q = q.filter(AlertaStock.id_usuario_asignado == id_usuario_asignado)
        return paginar(q.order_by(AlertaStock.fecha_alerta.desc(), AlertaStock.id.desc()), page, limit)

    def crear(self, datos: AlertaIn) -> AlertaStock:
        if not self.uow.insumos.get(datos.id_insumo):
            raise EntidadNoEncontradaError(f"Insumo {datos.id_insumo} no encontrado")
        if not self.uow.depositos.get(datos.id_deposito):
            raise EntidadNoEncontradaError(f"Depósito {datos.id_deposito} no encontrado")
        if datos.id_usuario_asignado and not self.uow.usuarios.get(datos.id_usuario_asignado):
            raise EntidadNoEncontradaError(f"Usuario {datos.id_usuario_asignado} no encontrado")
        if datos.estado_alerta == EstadoAlerta.ACTIVA and self.uow.alertas.activa(datos.id_insumo, datos.id_deposito, datos.tipo_alerta):
            raise AlertaDuplicadaError(
                f"Ya existe una alerta {datos.tipo_alerta.value} activa para el insumo {datos.id_insumo} "
                f"en el depósito {datos.id_deposito}"
            )

        alerta = AlertaStock(**datos.model_dump(), fecha_alerta=datetime.now())
        if alerta.estado_alerta == EstadoAlerta.RESUELTA:
            alerta.fecha_resolucion = alerta.fecha_alerta
        self.uow.alertas.add(alerta)
        self.uow.db.flush()
        return alerta

    def actualizar(self, id: int, datos: AlertaUpdate) -> AlertaStock:
        """
        Resolver una alerta sin fecha_resolucion explícita la sella con la hora actual.
        Volver a ACTIVA o VISTA borra la fecha de resolución anterior.
        """
        alerta = self.obtener(id)
        cambios = datos.model_dump(exclude_unset=True)

        nuevo_estado = cambios.get("estado_alerta")
        if nuevo_estado == EstadoAlerta.ACTIVA and alerta.estado_alerta != EstadoAlerta.ACTIVA:
            if self.uow.alertas.activa(alerta.id_insumo, alerta.id_deposito, alerta.tipo_alerta, excluir_id=alerta.id):
                raise AlertaDuplicadaError("Ya existe otra alerta activa para el mismo insumo, depósito y tipo")
        if cambios.get("id_usuario_asignado") and not self.uow.usuarios.get(cambios["id_usuario_asignado"]):
            raise EntidadNoEncontradaError(f"Usuario {cambios['id_usuario_asignado']} no encontrado")

        for campo, valor in cambios.items():
            if campo == "estado_alerta" and valor is None:
                continue
            setattr(alerta, campo, valor)

        if nuevo_estado == EstadoAlerta.RESUELTA and alerta.fecha_resolucion is None:
            alerta.fecha_resolucion = datetime.now()
        elif nuevo_estado is not None and nuevo_estado != EstadoAlerta.RESUELTA:
            alerta.fecha_resolucion = None

        self.uow.db.flush()
        logger.info("Alerta %s actualizada: estado=%s", alerta.id, alerta.estado_alerta.value)
        return alerta

    def eliminar(self, id: int) -> None:
        alerta = self.obtener(id)
        self.uow.db.delete(alerta)
        self.uow.db.flush()
