"""
Test Suite
==========

Test suite matching the templater/ package structure.

Test Categories:
- unit: Unit tests for individual components
- integration: Full parse, build, execute and render pipeline
"""
