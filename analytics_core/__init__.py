"""Core (UI-agnostic) support-contact analytics logic.

This package contains:
- record model and ingestion (CSV -> typed, immutable records)
- filter normalization and record predicates
- weekly aggregation (JSON-serializable payloads)
- export formatting and chart helpers (Altair -> Vega-Lite spec dict)
"""
