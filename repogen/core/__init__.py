"""
Core index generation logic for repogen.
"""
