"""
gateway — HTTP ingress for external actors
==========================================

Modules
-------
api
    :func:`create_app` FastAPI application factory.
monitor
    :class:`BusMonitor` cache of the latest bus state.
"""
