"""
Payroll Kernel - cycle persistence and lifecycle services.

A transactional core for monthly consultant payroll cycles with:
- Rate snapshots captured at cycle creation
- A rolling Payoneer balance chained across cycles
- Lazy, write-once bonus recipient inference
- One-way archival that frees month labels for reuse
"""

__version__ = "0.1.0"
