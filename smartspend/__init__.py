"""
SmartSpend - Source Package

Personal finance tracking with a rule-based understanding core that turns
receipt OCR text and free-form commands into structured records.

DESIGN PRINCIPLES:
1. Understanding is deterministic and explainable (no learning)
2. Every understanding function is total - it degrades, it never raises
3. OCR and storage are collaborators behind swappable interfaces
4. Every step of a flow is auditable
"""

__version__ = "1.0.0"
__author__ = "SmartSpend Team"
