"""
Data Models
===========

Pydantic models shared by the parser, graph builder, executor and renderer.
"""
