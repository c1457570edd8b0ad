"""
AIIE — Imaging Appropriateness Intelligence Engine

Ranks imaging studies for a structured clinical presentation on the ACR
1-9 appropriateness scale and grades learners' imaging orders.
"""

__version__ = "1.0.0"
