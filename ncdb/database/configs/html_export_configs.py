#!/usr/bin/env python3
"""
html_export_configs.py
----------------------

Default layout for HTML exports.

The template is rendered with Jinja2 (autoescaping on) against the export
snapshot. ExportTemplate.html_template and ExportTemplate.css_styles
replace DEFAULT_TEMPLATE and DEFAULT_CSS when a template is supplied.

Template context:
    productions  - serialized productions, sorted by (title, id)
    stats        - aggregate statistics dict
    exported_at  - ISO 8601 UTC export timestamp
    options      - dict of include_images / include_ratings / include_reviews
    css          - stylesheet text
    placeholders - PLACEHOLDERS below

Missing optional values always render as an explicit placeholder, never as
an empty cell.
"""
from typing import Dict

TEMPLATE_NAME = "export.html.jinja2"

PLACEHOLDERS: Dict[str, str] = {
    "poster": "No poster",
    "review": "No review",
    "rating": "Not rated",
    "value": "N/A",
    "tags": "No tags",
}

DEFAULT_CSS = """\
body { font-family: -apple-system, Helvetica, Arial, sans-serif; margin: 2rem; color: #1c1c1e; }
h1 { color: #b8860b; }
table.stats td { padding: 0.2rem 1rem 0.2rem 0; }
.production { border-bottom: 1px solid #ddd; padding: 1rem 0; display: flex; gap: 1rem; }
.production img { width: 92px; border-radius: 4px; }
.placeholder { color: #8e8e93; font-style: italic; }
.rank { font-weight: bold; color: #b8860b; }
.tag { background: #f2f2f7; border-radius: 4px; padding: 0 0.4rem; margin-right: 0.3rem; }
"""

DEFAULT_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>NCDB Export</title>
<style>
{{ css }}
</style>
</head>
<body>
<h1>NCDB Export</h1>
<p>Exported at {{ exported_at }}</p>
<table class="stats">
<tr><td>Total</td><td>{{ stats.total }}</td></tr>
<tr><td>Watched</td><td>{{ stats.watched }}</td></tr>
<tr><td>Completion</td><td>{{ "%.1f"|format(stats.completion_percentage) }}%</td></tr>
<tr><td>Total runtime</td><td>{{ stats.formatted_runtime }}</td></tr>
{% if options.include_ratings %}
<tr><td>Average rating</td><td>{{ stats.average_rating|placeholder(placeholders.rating) }}</td></tr>
{% endif %}
</table>
{% for p in productions %}
<div class="production">
{% if options.include_images %}
{% if p.poster_url %}
<img src="{{ p.poster_url }}" alt="{{ p.title }}">
{% else %}
<span class="placeholder">{{ placeholders.poster }}</span>
{% endif %}
{% endif %}
<div>
<h2>{% if p.ranking_position %}<span class="rank">#{{ p.ranking_position }}</span> {% endif %}{{ p.title }} ({{ p.release_year }})</h2>
<p>Type: {{ p.production_type }} | Director: {{ p.director|placeholder(placeholders.value) }} | Runtime: {{ p.formatted_runtime|placeholder(placeholders.value) }}</p>
<p>Genres: {{ p.genres|join(", ")|placeholder(placeholders.value) }}</p>
<p>Tags: {% for tag in p.tags %}<span class="tag">{{ tag }}</span>{% else %}<span class="placeholder">{{ placeholders.tags }}</span>{% endfor %}</p>
<p>Watched: {{ "Yes" if p.watched else "No" }} ({{ p.watch_count }} times)</p>
{% if options.include_ratings %}
<p>My rating: {{ p.user_rating|stars|placeholder(placeholders.rating) }}</p>
{% for r in p.external_ratings %}
<p>{{ r.source }}: {{ r.display }}</p>
{% endfor %}
{% endif %}
{% if options.include_reviews %}
<p>Review: {{ p.review|placeholder(placeholders.review) }}</p>
{% endif %}
</div>
</div>
{% endfor %}
</body>
</html>
"""
