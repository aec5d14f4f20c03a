"""
Backend Scripts Module

Utility scripts for database setup.

Available scripts:
    - seed_data.py: Creates default departments, SLA rules and the bootstrap admin

Usage:
    python -m scripts.seed_data
"""
