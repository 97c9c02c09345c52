"""
Providers Module
================

Provider registration and argument-model validation.

Components:
- registry: Provider registry and the reserved system providers
- argument_model: Value kinds and Cerberus-backed argument validation
"""
