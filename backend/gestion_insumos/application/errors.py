"""
Jerarquía de errores de negocio.

Cada servicio define sus errores específicos heredando de estas clases;
la API los traduce a HTTP según `status_code`.
"""


class GestionInsumosError(Exception):
    """Excepción base para errores del dominio"""
    status_code = 500


class ValidacionError(GestionInsumosError):
    """Datos fuera de rango o inconsistentes"""
    status_code = 400


class EntidadNoEncontradaError(GestionInsumosError):
    """El id referenciado no existe"""
    status_code = 404


class ConflictoError(GestionInsumosError):
    """Violación de una regla de negocio o clave duplicada"""
    status_code = 400
