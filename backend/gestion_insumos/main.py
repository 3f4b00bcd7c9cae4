import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from .db import init_db
from .api.routers import (
    health, movimientos, detalles_movimiento, stock, alertas, ordenes_compra, detalles_orden_compra,
    categorias, proveedores, insumos, depositos, tipos_movimiento, razones_movimiento, facturas, usuarios, roles
)
from .api.respuestas import registrar_manejadores
from .infrastructure.logging_config import setup_logging
from .config import settings as app_settings

# Configurar logging al iniciar la aplicación
setup_logging()
logger = logging.getLogger(__name__)

# Inicializar BD (no fallar si la conexión no está configurada - primer arranque)
try:
    init_db()
except Exception as e:
    logger.warning("No se pudo inicializar la base de datos: %s. Puede requerir configuración inicial.", e)

app = FastAPI(
    title="Gestión de Insumos",
    version="0.1.0",
    description="Back office de proveedores, insumos, órdenes de compra y stock por depósito",
    docs_url="/docs" if app_settings.environment != "production" else None,
    redoc_url="/redoc" if app_settings.environment != "production" else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With"],
)

# Middleware para agregar headers de seguridad HTTP
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    if app_settings.environment == "production":
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    return response

registrar_manejadores(app)

app.include_router(health.router)
app.include_router(movimientos.router)
app.include_router(detalles_movimiento.router)
app.include_router(stock.router)
app.include_router(alertas.router)
app.include_router(ordenes_compra.router)
app.include_router(detalles_orden_compra.router)
app.include_router(categorias.router)
app.include_router(proveedores.router)
app.include_router(insumos.router)
app.include_router(depositos.router)
app.include_router(tipos_movimiento.router)
app.include_router(razones_movimiento.router)
app.include_router(facturas.router)
app.include_router(usuarios.router)
app.include_router(roles.router)
