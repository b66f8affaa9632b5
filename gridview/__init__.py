"""Core (UI-agnostic) logic for the New England energy markets dashboard.

This package contains:
- fixture loading (CSV / GeoJSON -> pandas)
- filter state and validation
- aggregation functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
- the dashboard session and filter controller
"""
