"""Respondent Registry.

Data-entry and record management for survey respondents.
"""

__version__ = "0.1.0"
