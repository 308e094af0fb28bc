"""
Reporting modules for the Zone Scope Engine.
"""

from .scope_report import ScopeReportFormatter

__all__ = [
    "ScopeReportFormatter",
]
