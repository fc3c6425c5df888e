"""
repositories/ - Data Access Layer
==================================
Each repository binds the generic EntityRepository engine (base.py) to one table.
Repositories return plain record dicts and tagged results, never cursor rows.
"""
