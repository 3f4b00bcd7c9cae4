"""
Configuración de logging para la aplicación
Crea archivos de log por día en la carpeta configurada (LOG_DIR)
"""
import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime
from pathlib import Path

from ..config import settings

def setup_logging():
    """Configura el sistema de logging con archivos diarios"""

    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    # Nombre del archivo de log con fecha actual (YYYY-MM-DD)
    today = datetime.now().strftime("%Y-%m-%d")
    log_file = log_dir / f"gestion_insumos_{today}.log"

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    level = getattr(logging, settings.log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Eliminar handlers existentes para evitar duplicados
    root_logger.handlers.clear()

    # maxBytes=10MB, backupCount=5
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)  # el filtro lo pone el nivel de cada logger
    file_handler.setFormatter(logging.Formatter(log_format, date_format))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(log_format, date_format))

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logging.getLogger("gestion_insumos").setLevel(level)
    logging.getLogger("gestion_insumos.api").setLevel(level)

    # Movimientos y stock: nivel DEBUG para poder reconstruir cada aplicación de stock
    for name in (
        "gestion_insumos.application.services_movimientos",
        "gestion_insumos.application.services_stock",
    ):
        logging.getLogger(name).setLevel(logging.DEBUG)

    # Solo warnings y errores de SQL
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)

    logging.info("Sistema de logging configurado. Archivo: %s", log_file)

    return root_logger

def get_logger(name: str = None):
    """Obtiene un logger con el nombre especificado"""
    if name:
        return logging.getLogger(f"gestion_insumos.{name}")
    return logging.getLogger("gestion_insumos")
