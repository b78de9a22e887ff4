"""Appraisal docs — WordPress appraisal content into Google Docs and PDF."""

__version__ = "1.0.0"
