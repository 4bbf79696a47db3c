"""
Agents package for the Production Control Core.

This package contains the decision logic of the control core:
- Metrics Aggregator: KPI cards and trends from snapshots
- Alert Generator: Rule-based operational alerts
- Job Lifecycle Policy: Job status changes and their timestamps
- Rescheduling Agent: LLM-backed recommendation engine client
"""

__all__ = ['calculate_kpis', 'generate_alerts', 'JobLifecyclePolicy', 'ReschedulingAgent']
