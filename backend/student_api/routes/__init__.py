# Routes package init
"""
Student API — API Routes Package
================================

Route Inventory:
    - documents.py: POST   /insert
                    GET    /documents
                    GET    /document/{id}
                    PUT    /document/{docID}
                    DELETE /document/{docID}
                    GET    /changes?address=&age=
    - files.py:     POST   /upload
                    GET    /file/{docID}/{filename}
    - health.py:    GET    /health

Routes stay thin: decode the request, call a service with the injected
CouchDB client, shape the response. Errors are raised as application
exceptions and formatted by the handlers in main.py.
"""
