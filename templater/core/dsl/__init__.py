"""
DSL Processing Module
====================

Template language preprocessing and parsing.

Components:
- preprocessor: Physical to logical line assembly
- parser: Region splitting and declaration parsing
"""
