"""esquema inicial de gestión de insumos

Revision ID: 20260301_01
Revises:
Create Date: 2026-03-01

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20260301_01'
down_revision = None
branch_labels = None
depends_on = None

AFECTA_STOCK = sa.Enum('POSITIVO', 'NEGATIVO', 'NEUTRO', name='afecta_stock')
ESTADO_MOVIMIENTO = sa.Enum('PENDIENTE', 'COMPLETADO', 'CANCELADO', name='estado_movimiento')
TIPO_ALERTA = sa.Enum('STOCK_MINIMO', 'STOCK_CRITICO', 'VENCIMIENTO_PROXIMO', name='tipo_alerta')
ESTADO_ALERTA = sa.Enum('ACTIVA', 'VISTA', 'RESUELTA', name='estado_alerta')
ESTADO_ORDEN = sa.Enum('PENDIENTE', 'ENVIADA', 'RECIBIDA_PARCIAL', 'RECIBIDA_TOTAL', 'CANCELADA', name='estado_orden')
ESTADO_FACTURA = sa.Enum('PENDIENTE', 'PAGADA', 'VENCIDA', 'ANULADA', name='estado_factura')


def upgrade() -> None:
    # ===== CATÁLOGO =====
    op.create_table(
        'categorias',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nombre_categoria', sa.String(length=100), nullable=False),
        sa.Column('descripcion_categoria', sa.String(length=500), nullable=True),
        sa.Column('estado_categoria', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('ix_categorias_nombre_categoria', 'categorias', ['nombre_categoria'], unique=True)

    op.create_table(
        'proveedores',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nombre_proveedor', sa.String(length=200), nullable=False),
        sa.Column('cuit_proveedor', sa.String(length=20), nullable=False),
        sa.Column('direccion_proveedor', sa.String(length=500), nullable=False),
        sa.Column('telefono_proveedor', sa.String(length=30), nullable=True),
        sa.Column('correo_proveedor', sa.String(length=255), nullable=True),
        sa.Column('contacto_responsable', sa.String(length=200), nullable=True),
        sa.Column('condiciones_pago', sa.String(length=200), nullable=True),
        sa.Column('estado_proveedor', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('observaciones', sa.Text(), nullable=True),
    )
    op.create_index('ix_proveedores_cuit_proveedor', 'proveedores', ['cuit_proveedor'], unique=True)

    op.create_table(
        'insumos',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nombre_insumo', sa.String(length=200), nullable=False),
        sa.Column('descripcion_insumo', sa.String(length=500), nullable=True),
        sa.Column('costo_unitario', sa.Numeric(14, 2), nullable=False),
        sa.Column('fecha_expiracion', sa.Date(), nullable=True),
        sa.Column('id_categoria', sa.Integer(), sa.ForeignKey('categorias.id'), nullable=True),
        sa.Column('id_proveedor', sa.Integer(), sa.ForeignKey('proveedores.id'), nullable=True),
        sa.Column('estado_insumo', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('ix_insumos_nombre_insumo', 'insumos', ['nombre_insumo'])
    op.create_index('ix_insumos_id_categoria', 'insumos', ['id_categoria'])
    op.create_index('ix_insumos_id_proveedor', 'insumos', ['id_proveedor'])

    op.create_table(
        'depositos',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nom_deposito', sa.String(length=200), nullable=False),
        sa.Column('tel_deposito', sa.String(length=30), nullable=True),
        sa.Column('dir_deposito', sa.String(length=500), nullable=True),
        sa.Column('responsable', sa.String(length=200), nullable=True),
        sa.Column('estado_deposito', sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        'roles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nombre_rol', sa.String(length=50), nullable=False),
        sa.Column('descripcion', sa.String(length=500), nullable=True),
        sa.Column('estado_rol', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('ix_roles_nombre_rol', 'roles', ['nombre_rol'], unique=True)

    op.create_table(
        'usuarios',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('nombre', sa.String(length=100), nullable=True),
        sa.Column('apellido', sa.String(length=100), nullable=True),
        sa.Column('id_rol', sa.Integer(), sa.ForeignKey('roles.id'), nullable=True),
        sa.Column('activo', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_usuarios_email', 'usuarios', ['email'], unique=True)
    op.create_index('ix_usuarios_id_rol', 'usuarios', ['id_rol'])

    # ===== COMPRAS =====
    op.create_table(
        'ordenes_compra',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('numero_orden', sa.String(length=50), nullable=False),
        sa.Column('id_proveedor', sa.Integer(), sa.ForeignKey('proveedores.id'), nullable=False),
        sa.Column('id_usuario_solicita', sa.Integer(), sa.ForeignKey('usuarios.id'), nullable=False),
        sa.Column('fecha_orden', sa.DateTime(), nullable=False),
        sa.Column('fecha_entrega_estimada', sa.Date(), nullable=True),
        sa.Column('estado_orden', ESTADO_ORDEN, nullable=False, server_default='PENDIENTE'),
        sa.Column('observaciones', sa.Text(), nullable=True),
        sa.Column('total_orden', sa.Numeric(14, 2), nullable=False, server_default='0'),
    )
    op.create_index('ix_ordenes_compra_numero_orden', 'ordenes_compra', ['numero_orden'], unique=True)
    op.create_index('ix_ordenes_compra_id_proveedor', 'ordenes_compra', ['id_proveedor'])
    op.create_index('ix_ordenes_compra_id_usuario_solicita', 'ordenes_compra', ['id_usuario_solicita'])
    op.create_index('ix_ordenes_compra_fecha_orden', 'ordenes_compra', ['fecha_orden'])
    op.create_index('ix_ordenes_compra_estado_orden', 'ordenes_compra', ['estado_orden'])

    op.create_table(
        'detalles_orden_compra',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('id_orden_compra', sa.Integer(), sa.ForeignKey('ordenes_compra.id', ondelete='CASCADE'), nullable=False),
        sa.Column('id_insumo', sa.Integer(), sa.ForeignKey('insumos.id'), nullable=False),
        sa.Column('cantidad_solicitada', sa.Integer(), nullable=False),
        sa.Column('cantidad_recibida', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('precio_unitario', sa.Numeric(14, 2), nullable=False),
        sa.Column('subtotal', sa.Numeric(14, 2), nullable=False),
        sa.UniqueConstraint('id_orden_compra', 'id_insumo', name='uq_detalle_orden_insumo'),
        sa.CheckConstraint('cantidad_recibida <= cantidad_solicitada', name='ck_detalle_orden_recibida'),
    )
    op.create_index('ix_detalles_orden_compra_id_orden_compra', 'detalles_orden_compra', ['id_orden_compra'])
    op.create_index('ix_detalles_orden_compra_id_insumo', 'detalles_orden_compra', ['id_insumo'])

    op.create_table(
        'facturas',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('numero_factura', sa.String(length=50), nullable=False),
        sa.Column('fecha_emision', sa.Date(), nullable=False),
        sa.Column('fecha_vencimiento', sa.Date(), nullable=False),
        sa.Column('monto_total', sa.Numeric(14, 2), nullable=False),
        sa.Column('id_proveedor', sa.Integer(), sa.ForeignKey('proveedores.id'), nullable=False),
        sa.Column('id_orden_compra', sa.Integer(), sa.ForeignKey('ordenes_compra.id'), nullable=True),
        sa.Column('estado_factura', ESTADO_FACTURA, nullable=False, server_default='PENDIENTE'),
        sa.Column('observaciones', sa.Text(), nullable=True),
        sa.UniqueConstraint('id_proveedor', 'numero_factura', name='uq_factura_proveedor_numero'),
    )
    op.create_index('ix_facturas_numero_factura', 'facturas', ['numero_factura'])
    op.create_index('ix_facturas_id_proveedor', 'facturas', ['id_proveedor'])
    op.create_index('ix_facturas_id_orden_compra', 'facturas', ['id_orden_compra'])

    # ===== INVENTARIO =====
    op.create_table(
        'stock_depositos',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('id_deposito', sa.Integer(), sa.ForeignKey('depositos.id'), nullable=False),
        sa.Column('id_insumo', sa.Integer(), sa.ForeignKey('insumos.id'), nullable=False),
        sa.Column('cantidad_actual', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('stock_minimo', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('stock_critico', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('fecha_ultimo_mov', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('id_deposito', 'id_insumo', name='uq_stock_deposito_insumo'),
        sa.CheckConstraint('stock_critico <= stock_minimo', name='ck_stock_critico_menor_minimo'),
    )
    op.create_index('ix_stock_depositos_id_deposito', 'stock_depositos', ['id_deposito'])
    op.create_index('ix_stock_depositos_id_insumo', 'stock_depositos', ['id_insumo'])

    op.create_table(
        'tipos_movimiento',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nombre_tipo', sa.String(length=100), nullable=False),
        sa.Column('descripcion', sa.String(length=500), nullable=True),
        sa.Column('afecta_stock', AFECTA_STOCK, nullable=False),
        sa.Column('estado_tipo', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('ix_tipos_movimiento_nombre_tipo', 'tipos_movimiento', ['nombre_tipo'], unique=True)

    op.create_table(
        'razones_movimiento',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nombre_razon', sa.String(length=100), nullable=False),
        sa.Column('descripcion', sa.String(length=500), nullable=True),
        sa.Column('id_tipo_movimiento', sa.Integer(), sa.ForeignKey('tipos_movimiento.id'), nullable=False),
    )
    op.create_index('ix_razones_movimiento_id_tipo_movimiento', 'razones_movimiento', ['id_tipo_movimiento'])

    op.create_table(
        'movimientos_inventario',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('fecha_movimiento', sa.DateTime(), nullable=False),
        sa.Column('id_deposito_origen', sa.Integer(), sa.ForeignKey('depositos.id'), nullable=True),
        sa.Column('id_deposito_destino', sa.Integer(), sa.ForeignKey('depositos.id'), nullable=True),
        sa.Column('id_tipo_movimiento', sa.Integer(), sa.ForeignKey('tipos_movimiento.id'), nullable=False),
        sa.Column('id_razon_movimiento', sa.Integer(), sa.ForeignKey('razones_movimiento.id'), nullable=True),
        sa.Column('id_usuario', sa.Integer(), sa.ForeignKey('usuarios.id'), nullable=False),
        sa.Column('id_orden_compra', sa.Integer(), sa.ForeignKey('ordenes_compra.id'), nullable=True),
        sa.Column('numero_comprobante', sa.String(length=50), nullable=True),
        sa.Column('observaciones', sa.Text(), nullable=True),
        sa.Column('estado_movimiento', ESTADO_MOVIMIENTO, nullable=False, server_default='PENDIENTE'),
    )
    for columna in ('fecha_movimiento', 'id_deposito_origen', 'id_deposito_destino', 'id_tipo_movimiento',
                    'id_usuario', 'id_orden_compra', 'estado_movimiento'):
        op.create_index(f'ix_movimientos_inventario_{columna}', 'movimientos_inventario', [columna])

    op.create_table(
        'detalles_movimiento',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('id_movimiento', sa.Integer(), sa.ForeignKey('movimientos_inventario.id', ondelete='CASCADE'), nullable=False),
        sa.Column('id_insumo', sa.Integer(), sa.ForeignKey('insumos.id'), nullable=False),
        sa.Column('cantidad', sa.Integer(), nullable=False),
        sa.Column('costo_unitario', sa.Numeric(14, 2), nullable=True),
        sa.Column('lote', sa.String(length=50), nullable=True),
        sa.Column('fecha_vencimiento', sa.Date(), nullable=True),
        sa.UniqueConstraint('id_movimiento', 'id_insumo', 'lote', name='uq_detalle_movimiento_insumo_lote'),
        sa.CheckConstraint('cantidad > 0', name='ck_detalle_movimiento_cantidad'),
    )
    op.create_index('ix_detalles_movimiento_id_movimiento', 'detalles_movimiento', ['id_movimiento'])
    op.create_index('ix_detalles_movimiento_id_insumo', 'detalles_movimiento', ['id_insumo'])

    op.create_table(
        'alertas_stock',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tipo_alerta', TIPO_ALERTA, nullable=False),
        sa.Column('mensaje', sa.String(length=500), nullable=False),
        sa.Column('id_insumo', sa.Integer(), sa.ForeignKey('insumos.id'), nullable=False),
        sa.Column('id_deposito', sa.Integer(), sa.ForeignKey('depositos.id'), nullable=False),
        sa.Column('id_usuario_asignado', sa.Integer(), sa.ForeignKey('usuarios.id'), nullable=True),
        sa.Column('estado_alerta', ESTADO_ALERTA, nullable=False, server_default='ACTIVA'),
        sa.Column('fecha_alerta', sa.DateTime(), nullable=False),
        sa.Column('fecha_resolucion', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_alertas_stock_id_insumo', 'alertas_stock', ['id_insumo'])
    op.create_index('ix_alertas_stock_id_deposito', 'alertas_stock', ['id_deposito'])
    op.create_index('ix_alertas_stock_estado_alerta', 'alertas_stock', ['estado_alerta'])
    op.create_index('ix_alertas_stock_fecha_alerta', 'alertas_stock', ['fecha_alerta'])
    # Una sola alerta ACTIVA por (insumo, depósito, tipo)
    op.create_index(
        'uq_alerta_activa_insumo_deposito_tipo',
        'alertas_stock',
        ['id_insumo', 'id_deposito', 'tipo_alerta'],
        unique=True,
        sqlite_where=sa.text("estado_alerta = 'ACTIVA'"),
        postgresql_where=sa.text("estado_alerta = 'ACTIVA'"),
    )


def downgrade() -> None:
    op.drop_index('uq_alerta_activa_insumo_deposito_tipo', table_name='alertas_stock')
    for tabla in ('alertas_stock', 'detalles_movimiento', 'movimientos_inventario', 'razones_movimiento',
                  'tipos_movimiento', 'stock_depositos', 'facturas', 'detalles_orden_compra', 'ordenes_compra',
                  'usuarios', 'roles', 'depositos', 'insumos', 'proveedores', 'categorias'):
        op.drop_table(tabla)

    bind = op.get_bind()
    for enum in (ESTADO_FACTURA, ESTADO_ORDEN, ESTADO_ALERTA, TIPO_ALERTA, ESTADO_MOVIMIENTO, AFECTA_STOCK):
        enum.drop(bind, checkfirst=True)
