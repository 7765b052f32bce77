"""
Student API — Application Package Initializer
=============================================

What: HTTP gateway exposing CRUD and attachment operations over the CouchDB
      `student` database.
Who:  Imported by uvicorn (`uvicorn student_api.main:app`) and by pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← path/query/body/form decoding
    ├─────────────────────────────────────┤
    │         Services (Operations)       │  ← one store call per operation
    ├─────────────────────────────────────┤
    │            Schemas (Data)           │  ← Pydantic response models
    ├─────────────────────────────────────┤
    │      Database (CouchDB over HTTP)   │  ← shared httpx client
    └─────────────────────────────────────┘

    Documents are schema-free dicts; the gateway keeps no state between
    requests. Everything lives in the store.
"""

__version__ = "1.0.0"
