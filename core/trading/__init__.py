"""
Shared trading core: domain models and the collaborator interfaces the
session and trading services are built against.
"""
