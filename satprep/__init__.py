"""
satprep - diagnostic learning-style pipeline for SAT/ACT preparation.

Components:
- core: domain models, errors, client configuration, prep service client
- diagnostic: format-accuracy classifier and the diagnostic submission flow
- study: study-plan generation and the study timer
- db / services / api: the prep service (question bank, scoring, plans)
- cli: the `satprep` terminal client
"""

__version__ = "0.1.0"
