"""
Services module.

Contains business logic services for the application: the equivalence
validator, the SQL executor and the query service. Import them from their
modules; the answer cache depends on the validator, and the query service
depends on the answer cache.
"""
