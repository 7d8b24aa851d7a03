"""Lifecycle managers for the supervisor.

Managers encapsulate orchestration and raise domain exceptions
(``LookupError``, ``ValueError``, ``LaunchError``, ...), never HTTP
exceptions -- that translation is the router's responsibility.
"""
