from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ...dependencies import get_db, ParametrosPagina
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_catalogo import CategoriaService
from ..respuestas import respuesta, paginado

router = APIRouter(prefix="/categorias", tags=["categorias"])


class CategoriaIn(BaseModel):
    nombre_categoria: str = Field(..., min_length=1, max_length=100)
    descripcion_categoria: str | None = Field(None, max_length=500)
    estado_categoria: bool = True

class CategoriaUpdate(BaseModel):
    nombre_categoria: str | None = Field(None, min_length=1, max_length=100)
    descripcion_categoria: str | None = Field(None, max_length=500)
    estado_categoria: bool | None = None

class CategoriaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre_categoria: str
    descripcion_categoria: str | None
    estado_categoria: bool


@router.get("")
def listar_categorias(
    pag: ParametrosPagina = Depends(),
    estado_categoria: Optional[bool] = None,
    buscar: Optional[str] = None,
    db: Session = Depends(get_db),
):
    items, total = CategoriaService(UnitOfWork(db)).listar(
        pag.page, pag.limit, filtros={"estado_categoria": estado_categoria}, buscar=("nombre_categoria", buscar)
    )
    return paginado([CategoriaOut.model_validate(c) for c in items], pag.page, pag.limit, total)


@router.get("/{categoria_id}")
def obtener_categoria(categoria_id: int, db: Session = Depends(get_db)):
    return respuesta(CategoriaOut.model_validate(CategoriaService(UnitOfWork(db)).obtener(categoria_id)))


@router.post("", status_code=201)
def crear_categoria(payload: CategoriaIn, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        categoria = CategoriaService(uow).crear(payload.model_dump())
    return respuesta(CategoriaOut.model_validate(categoria), message="Categoría creada correctamente")


@router.put("/{categoria_id}")
def actualizar_categoria(categoria_id: int, payload: CategoriaUpdate, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        categoria = CategoriaService(uow).actualizar(categoria_id, payload.model_dump(exclude_unset=True))
    return respuesta(CategoriaOut.model_validate(categoria), message="Categoría actualizada correctamente")


@router.delete("/{categoria_id}")
def eliminar_categoria(categoria_id: int, db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    with uow.transaction():
        CategoriaService(uow).eliminar(categoria_id)
    return respuesta(message="Categoría eliminada correctamente")
