#!/usr/bin/env python3
"""
Script para cargar los datos base de Gestión de Insumos.

Uso:
  cd backend && python -m scripts.seed_datos_base
  cd backend && python scripts/seed_datos_base.py

Crea roles, tipos y razones de movimiento y el Depósito Central.
No duplica lo que ya existe.
"""
import sys
from pathlib import Path

# Agregar backend al path
backend_dir = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_dir))

from gestion_insumos.db import SessionLocal, init_db
from gestion_insumos.application.seed_base import seed_datos_base
from gestion_insumos.infrastructure.logging_config import setup_logging


def main():
    setup_logging()
    print("🌱 Gestión de Insumos - Carga de datos base")
    print("=" * 50)

    init_db()
    db = SessionLocal()
    try:
        result = seed_datos_base(db)
        db.commit()
    except Exception as e:
        db.rollback()
        print(f"   ❌ Error: {e}")
        return 1
    finally:
        db.close()

    print(f"   ✓ Roles: {result['roles']} nuevos")
    print(f"   ✓ Tipos de movimiento: {result['tipos']} nuevos ({result['razones']} razones)")
    print(f"   ✓ Depósitos: {result['depositos']} nuevos")
    print("\nListo.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
