"""Unit tests for individual components in isolation.

Ensures fast execution with minimal dependencies.

Coverage:
    - tables/: Number parsing, free-text and HTML table reconstruction
    - parsing/: CMaps, font decoding, space estimation and input validation
    - models/ and ingest/: Document schemas and assembly
    - config: Environment loading and range validation

Leverages pytest-check for multiple assertions per test.
"""
