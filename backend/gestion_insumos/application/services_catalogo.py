"""
CRUD de catálogos: categorías, proveedores, insumos, depósitos, tipos y razones
de movimiento, facturas, usuarios y roles.

Un solo servicio parametrizado por modelo; cada catálogo declara sus claves
únicas, sus referencias y, si corresponde, el campo de baja lógica.
"""
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Type

from ..infrastructure.unit_of_work import UnitOfWork
from ..infrastructure.repositories import paginar
from ..domain.models import Categoria, Proveedor, Insumo, Deposito, Rol, Usuario
from ..domain.models_inventario import TipoMovimiento, RazonMovimiento, MovimientoInventario, StockDeposito, AlertaStock
from ..domain.models_compras import Factura, OrdenCompra
from ..domain.enums import EstadoAlerta, EstadoFactura
from .errors import ValidacionError, EntidadNoEncontradaError, ConflictoError
import logging

logger = logging.getLogger(__name__)


class RegistroDuplicadoError(ConflictoError):
    pass


class RegistroEnUsoError(ConflictoError):
    pass


class FechasFacturaInvalidasError(ValidacionError):
    pass


class CatalogoService:
    modelo: Type = None
    nombre: str = "registro"
    unicos: Sequence[Tuple[str, ...]] = ()
    referencias: Dict[str, Tuple[Type, str]] = {}
    campo_baja: Optional[str] = None
    orden_por: Optional[str] = None

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def obtener(self, id: int):
        obj = self.uow.db.get(self.modelo, id)
        if not obj:
            raise EntidadNoEncontradaError(f"No se encontró {self.nombre} {id}")
        return obj

    def listar(self, page: int, limit: int, filtros: Optional[Dict[str, Any]] = None, buscar: Optional[Tuple[str, str]] = None):
        """filtros: igualdad por columna (se ignoran los None). buscar: (columna, texto) con ILIKE."""
        return paginar(self._consulta(filtros, buscar), page, limit)

    def _consulta(self, filtros=None, buscar=None):
        q = self.uow.db.query(self.modelo)
        for campo, valor in (filtros or {}).items():
            if valor is not None:
                q = q.filter(getattr(self.modelo, campo) == valor)
        if buscar and buscar[1]:
            q = q.filter(getattr(self.modelo, buscar[0]).ilike(f"%{buscar[1]}%"))
        return q.order_by(getattr(self.modelo, self.orden_por or "id"))

    def _validar_referencias(self, datos: Dict[str, Any]) -> None:
        for campo, (modelo, etiqueta) in self.referencias.items():
            valor = datos.get(campo)
            if valor is not None and not self.uow.db.get(modelo, valor):
                raise EntidadNoEncontradaError(f"{etiqueta} {valor} inexistente")

    def _validar_unicos(self, datos: Dict[str, Any], actual=None) -> None:
        for campos in self.unicos:
            valores = {c: datos.get(c, getattr(actual, c, None)) for c in campos}
            if any(v is None for v in valores.values()):
                continue
            if actual is not None and all(getattr(actual, c) == v for c, v in valores.items()):
                continue
            q = self.uow.db.query(self.modelo)
            for c, v in valores.items():
                q = q.filter(getattr(self.modelo, c) == v)
            if actual is not None:
                q = q.filter(self.modelo.id != actual.id)
            if q.first():
                detalle = ", ".join(f"{c}='{v}'" for c, v in valores.items())
                raise RegistroDuplicadoError(f"Ya existe {self.nombre} con {detalle}")

    def _validar(self, datos: Dict[str, Any], actual=None) -> None:
        """Reglas propias de cada catálogo (por defecto ninguna)."""

    def crear(self, datos: Dict[str, Any]):
        self._validar_referencias(datos)
        self._validar_unicos(datos)
        self._validar(datos)
        obj = self.modelo(**datos)
        self.uow.db.add(obj)
        self.uow.db.flush()
        logger.info("%s %s creado", self.nombre.capitalize(), obj.id)
        return obj

    def actualizar(self, id: int, datos: Dict[str, Any]):
        obj = self.obtener(id)
        self._validar_referencias(datos)
        self._validar_unicos(datos, actual=obj)
        self._validar(datos, actual=obj)
        for campo, valor in datos.items():
            setattr(obj, campo, valor)
        self.uow.db.flush()
        return obj

    def _en_uso(self, obj) -> Iterable[str]:
        return ()

    def eliminar(self, id: int) -> None:
        """Baja lógica si el catálogo la define; si no, borrado físico salvo que esté en uso."""
        obj = self.obtener(id)
        if self.campo_baja:
            setattr(obj, self.campo_baja, False)
            self.uow.db.flush()
            logger.info("%s %s dado de baja", self.nombre.capitalize(), id)
            return
        usos = list(self._en_uso(obj))
        if usos:
            raise RegistroEnUsoError(f"No se puede eliminar {self.nombre} {id}: {'; '.join(usos)}")
        self.uow.db.delete(obj)
        self.uow.db.flush()
        logger.info("%s %s eliminado", self.nombre.capitalize(), id)


class CategoriaService(CatalogoService):
    modelo = Categoria
    nombre = "categoría"
    unicos = (("nombre_categoria",),)
    orden_por = "nombre_categoria"

    def _en_uso(self, obj):
        n = self.uow.db.query(Insumo).filter(Insumo.id_categoria == obj.id).count()
        if n:
            yield f"{n} insumos la referencian"


class ProveedorService(CatalogoService):
    modelo = Proveedor
    nombre = "proveedor"
    unicos = (("cuit_proveedor",),)
    orden_por = "nombre_proveedor"

    def _en_uso(self, obj):
        insumos = self.uow.db.query(Insumo).filter(Insumo.id_proveedor == obj.id).count()
        ordenes = self.uow.db.query(OrdenCompra).filter(OrdenCompra.id_proveedor == obj.id).count()
        facturas = self.uow.db.query(Factura).filter(Factura.id_proveedor == obj.id).count()
        if insumos:
            yield f"{insumos} insumos"
        if ordenes:
            yield f"{ordenes} órdenes de compra"
        if facturas:
            yield f"{facturas} facturas"


class InsumoService(CatalogoService):
    modelo = Insumo
    nombre = "insumo"
    referencias = {"id_categoria": (Categoria, "Categoría"), "id_proveedor": (Proveedor, "Proveedor")}
    campo_baja = "estado_insumo"
    orden_por = "nombre_insumo"


class DepositoService(CatalogoService):
    modelo = Deposito
    nombre = "depósito"
    campo_baja = "estado_deposito"
    orden_por = "nom_deposito"

    def stock_por_deposito(self, ids_deposito: Sequence[int]) -> Dict[int, List[StockDeposito]]:
        filas = (
            self.uow.db.query(StockDeposito)
            .filter(StockDeposito.id_deposito.in_(list(ids_deposito)))
            .order_by(StockDeposito.id_insumo)
            .all()
        )
        agrupado = {id: [] for id in ids_deposito}
        for fila in filas:
            agrupado[fila.id_deposito].append(fila)
        return agrupado

    def alertas_activas_por_deposito(self, ids_deposito: Sequence[int]) -> Dict[int, List[AlertaStock]]:
        alertas = (
            self.uow.db.query(AlertaStock)
            .filter(
                AlertaStock.id_deposito.in_(list(ids_deposito)),
                AlertaStock.estado_alerta == EstadoAlerta.ACTIVA,
            )
            .order_by(AlertaStock.fecha_alerta.desc(), AlertaStock.id.desc())
            .all()
        )
        agrupado = {id: [] for id in ids_deposito}
        for alerta in alertas:
            agrupado[alerta.id_deposito].append(alerta)
        return agrupado


class TipoMovimientoService(CatalogoService):
    modelo = TipoMovimiento
    nombre = "tipo de movimiento"
    unicos = (("nombre_tipo",),)
    orden_por = "nombre_tipo"

    def _en_uso(self, obj):
        movimientos = self.uow.movimientos.usan_tipo(obj.id)
        razones = self.uow.db.query(RazonMovimiento).filter(RazonMovimiento.id_tipo_movimiento == obj.id).count()
        if movimientos:
            yield f"{movimientos} movimientos lo referencian"
        if razones:
            yield f"{razones} razones pertenecen a este tipo"


class RazonMovimientoService(CatalogoService):
    modelo = RazonMovimiento
    nombre = "razón de movimiento"
    unicos = (("id_tipo_movimiento", "nombre_razon"),)
    referencias = {"id_tipo_movimiento": (TipoMovimiento, "Tipo de movimiento")}
    orden_por = "nombre_razon"

    def _en_uso(self, obj):
        n = self.uow.db.query(MovimientoInventario).filter(MovimientoInventario.id_razon_movimiento == obj.id).count()
        if n:
            yield f"{n} movimientos la referencian"


class FacturaService(CatalogoService):
    modelo = Factura
    nombre = "factura"
    unicos = (("id_proveedor", "numero_factura"),)
    referencias = {"id_proveedor": (Proveedor, "Proveedor"), "id_orden_compra": (OrdenCompra, "Orden de compra")}
    def listar(self, page: int, limit: int, filtros: Optional[Dict[str, Any]] = None, vencidas: bool = False,
               desde: Optional[date] = None, hasta: Optional[date] = None, hoy: Optional[date] = None):
        """vencidas: PENDIENTE con vencimiento anterior a hoy. desde/hasta acotan la fecha de emisión."""
        q = self._consulta(filtros)
        if vencidas:
            q = q.filter(
                Factura.fecha_vencimiento < (hoy or date.today()),
                Factura.estado_factura == EstadoFactura.PENDIENTE,
            )
        if desde:
            q = q.filter(Factura.fecha_emision >= desde)
        if hasta:
            q = q.filter(Factura.fecha_emision <= hasta)
        return paginar(q, page, limit)

    def _validar(self, datos, actual=None):
        emision = datos.get("fecha_emision", getattr(actual, "fecha_emision", None))
        vencimiento = datos.get("fecha_vencimiento", getattr(actual, "fecha_vencimiento", None))
        if emision and vencimiento and vencimiento < emision:
            raise FechasFacturaInvalidasError("La fecha de vencimiento no puede ser anterior a la de emisión")


class RolService(CatalogoService):
    modelo = Rol
    nombre = "rol"
    unicos = (("nombre_rol",),)
    orden_por = "nombre_rol"

    def _en_uso(self, obj):
        n = self.uow.db.query(Usuario).filter(Usuario.id_rol == obj.id).count()
        if n:
            yield f"{n} usuarios tienen este rol"


class UsuarioService(CatalogoService):
    modelo = Usuario
    nombre = "usuario"
    unicos = (("email",),)
    referencias = {"id_rol": (Rol, "Rol")}
    orden_por = "email"

    def _en_uso(self, obj):
        movimientos = self.uow.db.query(MovimientoInventario).filter(MovimientoInventario.id_usuario == obj.id).count()
        ordenes = self.uow.db.query(OrdenCompra).filter(OrdenCompra.id_usuario_solicita == obj.id).count()
        if movimientos:
            yield f"{movimientos} movimientos registrados"
        if ordenes:
            yield f"{ordenes} órdenes solicitadas"
