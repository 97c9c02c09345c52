"""
Core Business Logic
==================

Core modules for template compilation and resolution.

Modules:
- dsl: Template parsing into a resolution context
- providers: Provider registry and argument models
- graph: Execution planning and leveled execution
- rendering: View substitution
"""
