"""Routing — path templates, route entries, the registry, and dispatch.

Routes are declared against a fresh registry for every request, frozen
once dispatch begins, and discarded after the response is sent.
"""
