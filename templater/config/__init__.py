"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Scheduling, rendering and environment settings
- logging: Structured logging configuration
"""
