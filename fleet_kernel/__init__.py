"""
Fleet Kernel

Domain records, typed exceptions, an injectable clock, and structured
logging shared by the fleet valuation engines:
- Equipment facts and their derived valuation records
- Category defaults table with last-resort fallback
- Decimal-only monetary arithmetic
"""

__version__ = "0.1.0"
