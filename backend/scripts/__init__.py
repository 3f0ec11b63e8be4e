"""
Backend Scripts Module

This module contains utility scripts for database operations and maintenance.

Available scripts:
    - seed_data.py: Creates sample users, leads and automation rules for testing

Usage:
    python -m scripts.seed_data
"""
