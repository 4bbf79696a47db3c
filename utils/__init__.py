"""
Utility functions package for the Production Control Core.

This package contains helper utilities:
- config_loader: Load and parse YAML/JSON control policies
- data_generator: Generate demo scenarios and CSV bulk uploads
- analytics: pandas tables for the analytics page
"""

__all__ = ['config_loader', 'data_generator', 'analytics']
