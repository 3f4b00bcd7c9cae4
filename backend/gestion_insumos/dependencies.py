from typing import Generator
from fastapi import Query
from sqlalchemy.orm import Session
from .db import SessionLocal
from .config import settings


def get_db() -> Generator[Session, None, None]:
    """Una sesión por request; la transacción la abre y cierra el UnitOfWork del endpoint."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class ParametrosPagina:
    """page empieza en 1; limit se recorta a PAGE_SIZE_MAX."""

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Número de página"),
        limit: int = Query(20, ge=1, description="Registros por página"),
    ):
        self.page = page
        self.limit = min(limit, settings.page_size_max)
