from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.orm import Session

from ...dependencies import get_db, ParametrosPagina
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_catalogo import ProveedorService
from ..respuestas import respuesta, paginado

router = APIRouter(prefix="/proveedores", tags=["proveedores"])


class ProveedorIn(BaseModel):
    nombre_proveedor: str = Field(..., min_length=1, max_length=200)
    cuit_proveedor: str = Field(..., min_length=1, max_length=20, description="Identificación fiscal")
    direccion_proveedor: str = Field(..., min_length=1, max_length=500)
    telefono_proveedor: str | None = Field(None, max_length=30)
    correo_proveedor: EmailStr | None = None
    contacto_responsable: str | None = None
    condiciones_pago: str | None = None
    estado_proveedor: bool = True
    observaciones: str | None = None

class ProveedorUpdate(BaseModel):
    nombre_proveedor: str | None = Field(None, min_length=1, max_length=200)
    cuit_proveedor: str | None = Field(None, min_length=1, max_length=20)
    direccion_proveedor: str | None = Field(None, min_length=1, max_length=500)
    telefono_proveedor: str | None = Field(None, max_length=30)
    correo_proveedor: EmailStr | None = None
    contacto_responsable: str | None = None
    condiciones_pago: str | None = None
    estado_proveedor: bool | None = None
    observaciones: str | None = None

class ProveedorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre_proveedor: str
    cuit_proveedor: str
    direccion_proveedor: str
    telefono_proveedor: str | None
    correo_proveedor: str | None
    contacto_responsable: str | None
    condiciones_pago: str | None
    estado_proveedor: bool
    observaciones: str | None


@router.get("")
def listar_proveedores(
    pag: ParametrosPagina = Depends(),
    estado_proveedor: Optional[bool] = None,
    buscar: Optional[str] = None,
    db: Session = Depends(get_db),
):
    items, total = ProveedorService(UnitOfWork(db)).listar(
        pag.page, pag.limit, filtros={"estado_proveedor": estado_proveedor}, buscar=("nombre_proveedor", buscar)
    )
    return paginado([ProveedorOut.model_validate(p) for p in items], pag.page, pag.limit, total)


@router.get("/{proveedor_id}")
def obtener_proveedor(proveedor_id: int, db: Session = Depends(get_db)):
    return respuesta(ProveedorOut.model_validate(ProveedorService(UnitOfWork(db)).obtener(proveedor_id)))


@router.post("", status_code=201)
def crear_proveedor(payload: ProveedorIn, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        proveedor = ProveedorService(uow).crear(payload.model_dump())
    return respuesta(ProveedorOut.model_validate(proveedor), message="Proveedor creado correctamente")


@router.put("/{proveedor_id}")
def actualizar_proveedor(proveedor_id: int, payload: ProveedorUpdate, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        proveedor = ProveedorService(uow).actualizar(proveedor_id, payload.model_dump(exclude_unset=True))
    return respuesta(ProveedorOut.model_validate(proveedor), message="Proveedor actualizado correctamente")


@router.delete("/{proveedor_id}")
def eliminar_proveedor(proveedor_id: int, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        ProveedorService(uow).eliminar(proveedor_id)
    return respuesta(message="Proveedor eliminado correctamente")
