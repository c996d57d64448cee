"""Schema-described row access over an in-memory or relational store."""
