"""Test package for docextract.

Provides coverage for all components with unit tests for isolated logic and
integration tests for full extraction workflows.

Structure:
    - unit/: Individual function and class tests
    - integration/: PDF extraction and document assembly end to end
    - data/: Page text fixtures, HTML tables and a non-PDF file

PDF inputs are generated in memory by fixtures in conftest.py.
Leverages pytest with pytest-check for soft assertions.
"""
