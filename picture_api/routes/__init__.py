# Routes package init
"""
Picture API — Routes Package
==============================

Route Inventory:
    - pictures.py: /api/picture and /api/picture/{id} (CRUD)
    - uploads.py:  GET /uploads/{filename}            (stored files)
    - health.py:   GET /health                        (service health check)

Routes stay thin: they parse the request, call PictureService, and pick
status codes and headers. Business rules live in the services package.
"""
