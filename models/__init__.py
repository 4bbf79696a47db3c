"""
Core data models package for the Production Control Core.

This package contains all data structures used throughout the system:
- Job: A production job and its lifecycle timestamps
- Machine: A production machine with load and status
- Worker: Shop floor staff and their availability
- Alert / Disruption: Operational notifications and the events behind them
- KPICard: Key Performance Indicators shown on the control surface
"""

__all__ = ['Job', 'Machine', 'Worker', 'Alert', 'Disruption', 'KPICard']
