"""Casos de uso del ciclo de vida de la reservación."""
