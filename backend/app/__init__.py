"""
Flock Backend — Application Package
=====================================

A social network backend: accounts with cookie sessions, a follow graph,
posts with hosted images, likes, comments and a notification ledger.

Layering:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, cookies
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, graph toggles
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← one async session per request
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
