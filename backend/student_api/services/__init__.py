# Services package init
"""
Student API — Services Layer
============================

What:  Operation layer sitting between routes (HTTP) and the CouchDB client.
How:   Services receive the shared CouchDBClient per call (dependency
       injection from the routes), run one store operation, and translate
       failures into ValidationError / NotFoundError / StoreError.

Service Inventory:
    - DocumentService: insert, get, list, changes, update (shallow merge), delete
    - AttachmentService: upload (fetch _rev, then write), download
"""
