#!/usr/bin/env python3
"""
Database configuration modules.

This package contains declarative configurations for database operations:
- cascade_configs: Ownership table for cascade deletion and parent touches
- json_export_configs: Entity serialization for export snapshots
- html_export_configs: Default HTML export template and stylesheet
- achievement_configs: Predefined achievements and their trigger metrics
"""
