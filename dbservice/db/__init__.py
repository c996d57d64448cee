"""Data access layer (DAL) for dbservice.

This sub-package holds the table schemas, the validation pipeline, and the two
storage engines so the HTTP layer remains storage-agnostic.
"""
