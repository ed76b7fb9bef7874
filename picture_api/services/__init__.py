# Services package init
"""
Picture API — Services Layer
==============================

Service Inventory:
    - FileService:    upload size checks, unique naming, storage, removal
    - PictureService: picture lifecycle (create, show, edit, delete, list)
"""
