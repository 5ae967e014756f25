"""Servicios del Core (clasificación y renovación de sesión)."""
