#!/usr/bin/env python3
"""
template_manager.py
--------------------
Manages saved ExportTemplate layouts.

An HTML template is a Jinja2 source rendered with the same context as the
default layout (see configs/html_export_configs.py); the template is
compiled on save so a syntax error is reported before it reaches an export.
"""
from typing import Any, Dict, List, Optional, Union

from jinja2 import Environment, TemplateSyntaxError

from ncdb.core.exceptions import ValidationError
from ncdb.core.validators import DataValidator
from ncdb.database.decorators import (
    atomic_operation,
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from ncdb.database.models import ExportTemplate, ExportType
from .base_manager import BaseManager

TemplateRef = Union[ExportTemplate, str]

TEMPLATE_FIELDS = [
    ("name", DataValidator.normalize_string),
    ("export_type", lambda v: DataValidator.normalize_enum(ExportType, v)),
    ("html_template", DataValidator.normalize_string, True),
    ("css_styles", DataValidator.normalize_string, True),
    ("include_images", DataValidator.normalize_bool),
    ("include_ratings", DataValidator.normalize_bool),
    ("include_reviews", DataValidator.normalize_bool),
]


def check_template_syntax(source: Optional[str]) -> None:
    """
    Compile a Jinja2 template source.

    Raises:
        ValidationError: If the source does not compile
    """
    if not source:
        return
    try:
        Environment().parse(source)
    except TemplateSyntaxError as e:
        raise ValidationError(f"Invalid HTML template (line {e.lineno}): {e.message}") from e


class TemplateManager(BaseManager):
    """
    Manages ExportTemplate table operations.
    """

    @handle_db_errors
    @log_database_operation("get_template")
    def get(self, template_id: str) -> Optional[ExportTemplate]:
        return self._get_by_id(ExportTemplate, template_id)

    @handle_db_errors
    @log_database_operation("get_all_templates")
    def get_all(self, export_type: Optional[Union[ExportType, str]] = None) -> List[ExportTemplate]:
        filters = {}
        if export_type is not None:
            filters["export_type"] = DataValidator.normalize_enum(ExportType, export_type)
        return self._get_all(ExportTemplate, order_by="name", **filters)

    @handle_db_errors
    @log_database_operation("create_template")
    @atomic_operation
    @validate_metadata(["name", "export_type"])
    def create(self, metadata: Dict[str, Any]) -> ExportTemplate:
        """
        Save a new export template.

        Args:
            metadata: Dictionary with keys:
                - name: Display name (required)
                - export_type: ExportType or its value (required)
                - html_template / css_styles: Layout overrides (optional)
                - include_images / include_ratings / include_reviews: Options

        Raises:
            ValidationError: If a field is malformed or the template does not compile
        """
        check_template_syntax(metadata.get("html_template"))

        template = ExportTemplate(
            include_images=True,
            include_ratings=True,
            include_reviews=True,
        )
        self._update_scalar_fields(template, metadata, TEMPLATE_FIELDS)
        self.session.add(template)
        self.session.flush()
        return template

    @handle_db_errors
    @log_database_operation("update_template")
    @atomic_operation
    def update(self, template: TemplateRef, metadata: Dict[str, Any]) -> ExportTemplate:
        template = self._resolve_object(template, ExportTemplate)
        if "html_template" in metadata:
            check_template_syntax(metadata["html_template"])
        self._update_scalar_fields(template, metadata, TEMPLATE_FIELDS)
        self.session.flush()
        return template

    @handle_db_errors
    @log_database_operation("delete_template")
    @atomic_operation
    def delete(self, template: TemplateRef) -> None:
        template = self._resolve_object(template, ExportTemplate)
        self.session.delete(template)
        self.session.flush()
