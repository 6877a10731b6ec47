"""
Test suite for embedscope.

This package contains all tests organized by component:
- test_algorithms/: Tests for estimators, validation and failure handling
- test_services/: Tests for the coordinate cache
"""
