"""
Dependency Graph Module
=======================

Execution planning and leveled concurrent execution.

Components:
- builder: Static validation and level assignment
- executor: Batched, level-ordered resolution with partial-failure handling
"""
