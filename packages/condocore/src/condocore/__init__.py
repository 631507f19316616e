"""
Condo Core

Shared infrastructure for condo services: settings, logging, database and Redis.
"""
