"""
User-admin filter service.

Structure:
- catalog/: filterable fields per entity type
- filters/: filter tree model, construction and pure edits
- validation/: catalog-aware checks of a filter configuration
- query/: SQL predicate building and in-memory evaluation
- presets/: named, reusable filter configurations
- main.py: FastAPI endpoints
"""
