"""
models/ - Domain Types
======================
Entity table bindings and the tagged results returned by repositories.
"""
