"""Routing — module-level prefix dispatch and per-module action matching.

``Dispatcher`` picks the module whose domain prefixes the request URL;
``ActionRouter`` matches the rest of the URL inside that module.
"""
