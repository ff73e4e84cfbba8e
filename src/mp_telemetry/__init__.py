"""
mp_telemetry – Trace correlation, resilient logging and metrics for services.

Import path convention::

    from mp_telemetry.config.settings import load_telemetry_settings
    from mp_telemetry.adapters.opentelemetry import init_telemetry
    from mp_telemetry.observability import Observability, create_logger
    from mp_telemetry.adapters.fastapi import FastAPITraceMiddleware
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
