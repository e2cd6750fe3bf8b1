"""Core module - source-neutral models, configuration and observability.

This module contains the canonical tenancy records, settings, logging and
metrics. It is intentionally independent of any data source.

Source-specific logic (Odoo, PM CSV exports) belongs in /connectors/ and /sources/.
"""

__version__ = "1.0.0"
