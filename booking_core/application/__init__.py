"""
Capa de Aplicación - Motor de reservaciones.

Orquesta la lógica de negocio y define los contratos con la infraestructura.

Estructura:
- interfaces/: Puertos (repositorios, oráculos de existencia, emisor de eventos)
- services/: Verificador de existencia y evaluador de disponibilidad
- use_cases/: Casos de uso del ciclo de vida de la reservación
"""
