# Promotion Service Contracts

"""
Promotion Service Contract Module

This module contains:
- data_contract.py: Pydantic models re-exported for tests, test data factory
"""
