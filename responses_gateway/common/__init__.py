"""
Shared Components
"""
