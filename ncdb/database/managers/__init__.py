#!/usr/bin/env python3
"""
managers package
--------------------
Modular entity managers for the NCDB catalog database.

Each manager handles operations for one entity type and inherits from
BaseManager. All of them share the session of the enclosing
NCDB.session_scope().

Available Managers:
    BaseManager: Abstract base class with common utilities
    StoreManager: Entity-agnostic create/get/update/delete/query with cascade
    RankingManager: Dense personal ranking over productions
    ProductionManager: Productions and their owned children
    TagManager: CustomTag entities and production memberships
    ArticleManager: NewsArticle entities from the news scraper
    AchievementManager: Achievement progress and unlocks
    PreferencesManager: The single UserPreferences row
    TemplateManager: Saved ExportTemplate layouts

Usage:
    from ncdb.database.managers import ProductionManager, TagManager

    production_mgr = ProductionManager(session, logger)
    tag_mgr = TagManager(session, logger)
"""
from .base_manager import BaseManager
from .store_manager import CascadeResult, StoreManager
from .ranking_manager import RankingManager, RankingStats
from .production_manager import ProductionManager
from .tag_manager import TagManager
from .article_manager import ArticleManager
from .achievement_manager import AchievementManager
from .preferences_manager import PreferencesManager
from .template_manager import TemplateManager

__all__ = [
    "BaseManager",
    "CascadeResult",
    "StoreManager",
    "RankingManager",
    "RankingStats",
    "ProductionManager",
    "TagManager",
    "ArticleManager",
    "AchievementManager",
    "PreferencesManager",
    "TemplateManager",
]
