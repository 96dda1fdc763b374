"""
Core utilities shared across the NCDB package.

Modules:
    - exceptions: Exception hierarchy
    - logging_manager: Rotating structured logging
    - validators: Input validation and normalization
    - paths: Filesystem layout
"""
