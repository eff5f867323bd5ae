"""Application package for the SGA academic-management backend.

This package exposes the container, service, repository and model
modules used by the FastAPI application. Individual modules contain the
concrete implementations and documentation.
"""
