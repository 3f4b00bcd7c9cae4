from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...dependencies import get_db, ParametrosPagina
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import AlertaIn, AlertaUpdate, AlertaOut
from ...application.services_alertas import AlertaService
from ...domain.enums import EstadoAlerta, TipoAlerta
from ..respuestas import respuesta, paginado

router = APIRouter(prefix="/alertas-stock", tags=["alertas-stock"])


@router.get("")
def listar_alertas(
    pag: ParametrosPagina = Depends(),
    estado: Optional[EstadoAlerta] = None,
    tipo: Optional[TipoAlerta] = None,
    deposito: Optional[int] = Query(None, description="ID del depósito"),
    insumo: Optional[int] = Query(None, description="ID del insumo"),
    usuario: Optional[int] = Query(None, description="ID del usuario asignado"),
    db: Session = Depends(get_db),
):
    items, total = AlertaService(UnitOfWork(db)).listar(
        pag.page, pag.limit,
        estado=estado, tipo=tipo, id_deposito=deposito, id_insumo=insumo, id_usuario_asignado=usuario,
    )
    return paginado([AlertaOut.model_validate(a) for a in items], pag.page, pag.limit, total)


@router.post("/vencimientos", status_code=201)
def generar_alertas_vencimiento(
    dias: Optional[int] = Query(None, ge=0, description="Ventana en días; por defecto DIAS_ALERTA_VENCIMIENTO"),
    db: Session = Depends(get_db),
):
    """Genera alertas VENCIMIENTO_PROXIMO para insumos con stock que vencen dentro de la ventana."""
    uow = UnitOfWork(db)
    with uow.transaction():
        creadas = AlertaService(uow).generar_alertas_vencimiento(dias)
    return respuesta(
        [AlertaOut.model_validate(a) for a in creadas],
        message=f"{len(creadas)} alertas de vencimiento generadas",
    )


@router.get("/{alerta_id}")
def obtener_alerta(alerta_id: int, db: Session = Depends(get_db)):
    return respuesta(AlertaOut.model_validate(AlertaService(UnitOfWork(db)).obtener(alerta_id)))


@router.post("", status_code=201)
def crear_alerta(payload: AlertaIn, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        alerta = AlertaService(uow).crear(payload)
    return respuesta(AlertaOut.model_validate(alerta), message="Alerta creada correctamente")


@router.put("/{alerta_id}")
def actualizar_alerta(alerta_id: int, payload: AlertaUpdate, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        alerta = AlertaService(uow).actualizar(alerta_id, payload)
    return respuesta(AlertaOut.model_validate(alerta), message="Alerta actualizada correctamente")


@router.delete("/{alerta_id}")
def eliminar_alerta(alerta_id: int, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        AlertaService(uow).eliminar(alerta_id)
    return respuesta(message="Alerta eliminada correctamente")
