"""
Rendering Module
================

Substitution of resolved values into view templates.
"""
